"""
FastAPI authentication + authorization helpers.

This centralizes:
- Token -> current user dependency (bearer header or session cookie)
- Role-based route guards
- The caller's resolved ``AccessScope``
"""

from __future__ import annotations

from typing import Optional, Union

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from edconnect.api.dependencies import get_db_service
from edconnect.core.access import AccessScope
from edconnect.core.models import User, UserRole
from edconnect.core.roles import has_role
from edconnect.core.services.auth import AuthService, get_auth_service
from edconnect.core.services.database import DatabaseService
from edconnect.core.services.settings_config_service import get_settings_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def session_cookie_name() -> str:
    return get_settings_service().get("security", "cookie_name", "edconnect_session")


def _request_token(request: Request, bearer_token: Optional[str]) -> Optional[str]:
    if bearer_token:
        return bearer_token
    return request.cookies.get(session_cookie_name())


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    token = _request_token(request, token)
    user = auth_service.validate_token(token) if token else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


RoleInput = Union[UserRole, str]


def require_roles(*roles: RoleInput):
    """
    Dependency factory that enforces role membership and returns ``current_user``.

    Usage:
        current_user: User = Depends(require_roles(UserRole.EDUCATOR, UserRole.ADMIN))
    """

    def _dep(current_user: User = Depends(get_current_user)) -> User:
        if not has_role(current_user, *roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized"
            )
        return current_user

    return _dep


def require_educator_or_admin(
    current_user: User = Depends(require_roles(UserRole.EDUCATOR, UserRole.ADMIN))
) -> User:
    return current_user


def require_admin(current_user: User = Depends(require_roles(UserRole.ADMIN))) -> User:
    return current_user


def get_current_scope(
    current_user: User = Depends(get_current_user),
    db_service: DatabaseService = Depends(get_db_service),
) -> AccessScope:
    """Resolve the caller's data boundary once per request."""
    return db_service.resolve_scope(current_user)