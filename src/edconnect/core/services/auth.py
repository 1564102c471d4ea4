"""
Authentication service for EdConnect
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, UserNotFoundError, ValidationError
from ..models import AuditLog, Educator, EventType, Student, User, UserRole, utcnow
from ..roles import parse_user_role, role_str
from ..security import hash_password, verify_password
from ..security_utils import get_or_create_jwt_secret
from .database import get_db_service
from .logging import get_logging_service
from .settings_config_service import get_settings_service

PASSWORD_SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
SELF_REGISTER_ROLES = (UserRole.STUDENT, UserRole.EDUCATOR)


def user_to_dict(user: User) -> Dict[str, Any]:
    """Public user shape used by the API; never includes the password hash."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": role_str(user) or None,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "district_id": user.district_id,
        "school_id": user.school_id,
        "department_id": user.department_id,
        "admin_level": user.admin_level.value if user.admin_level else None,
        "active": user.active,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "last_login": user.last_login.isoformat() if user.last_login else None,
    }


class AuthService:
    """Authentication and authorization service"""

    def __init__(self):
        settings = get_settings_service()
        self.jwt_secret = get_or_create_jwt_secret()
        self.jwt_algorithm = "HS256"
        self.token_expiry_minutes = settings.getint(
            "security", "token_expiry_minutes", 60
        )
        self.password_min_length = settings.getint(
            "security", "password_min_length", 8
        )
        self.logging_service = get_logging_service()

    @property
    def db_service(self):
        # Not cached: tests swap the global database service between runs
        return get_db_service()

    def register_user(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Any = UserRole.STUDENT,
        school_id: Optional[int] = None,
        grade: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Register a student or educator account with its profile record."""
        user_role = parse_user_role(role)
        if user_role not in SELF_REGISTER_ROLES:
            raise AuthenticationError("Only student and educator accounts can register")

        username = (username or "").strip()
        email = (email or "").strip().lower()
        if not username:
            raise AuthenticationError("Username is required")
        if not first_name or not first_name.strip() or not last_name or not last_name.strip():
            raise AuthenticationError("First and last name are required")

        if not self.validate_password(password):
            raise AuthenticationError(
                f"Password must be at least {self.password_min_length} characters and "
                "contain uppercase, lowercase, digit, and special character"
            )

        with self.db_service.get_session() as session:
            if session.execute(
                select(User).where(User.username == username)
            ).scalars().first():
                raise AuthenticationError("Username already exists")

            if session.execute(select(User).where(User.email == email)).scalars().first():
                raise AuthenticationError("Email already exists")

            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=user_role,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                school_id=school_id,
            )
            session.add(user)
            session.flush()

            if user_role == UserRole.STUDENT:
                session.add(Student(user_id=user.id, school_id=school_id, grade=grade))
            else:
                session.add(Educator(user_id=user.id, school_id=school_id))

            session.commit()
            session.refresh(user)

            self._log_event(
                session,
                user.id,
                "auth.register",
                {"username": username, "role": user_role.value},
            )
            self.logging_service.log_auth_event(
                "register", user_id=user.id, username=username, role=user_role.value
            )
            return user_to_dict(user)

    def login_user(self, username: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return JWT token."""
        with self.db_service.get_session() as session:
            user = (
                session.execute(
                    select(User).where(User.username == username, User.active.is_(True))
                )
                .scalars()
                .first()
            )
            if not user or not verify_password(password, user.password_hash):
                self._log_event(
                    session,
                    user.id if user else None,
                    "auth.failed_login",
                    {"username": username},
                )
                self.logging_service.log_auth_event(
                    "login", user_id=user.id if user else None, username=username, success=False
                )
                raise AuthenticationError("Invalid username or password")

            token = self._generate_jwt_token(user)

            user.last_login = utcnow()
            session.commit()
            session.refresh(user)

            self._log_event(session, user.id, "auth.login", {"username": username})
            self.logging_service.log_auth_event("login", user_id=user.id, username=username)

            return {
                "user": user_to_dict(user),
                "token": token,
                "expires_at": datetime.now(timezone.utc)
                + timedelta(minutes=self.token_expiry_minutes),
            }

    def logout_user(self, user: User) -> None:
        with self.db_service.get_session() as session:
            self._log_event(session, user.id, "auth.logout", {"username": user.username})
        self.logging_service.log_auth_event("logout", user_id=user.id, username=user.username)

    def validate_token(self, token: str) -> Optional[User]:
        """Validate JWT token and return user"""
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                options={"require": ["exp"]},
            )
        except jwt.InvalidTokenError:
            return None

        user_id = payload.get("user_id")
        if not user_id:
            return None

        with self.db_service.get_session() as session:
            return (
                session.execute(
                    select(User).where(User.id == user_id, User.active.is_(True))
                )
                .scalars()
                .first()
            )

    def _generate_jwt_token(self, user: User) -> str:
        """Generate JWT token for user"""
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user.id,
            "username": user.username,
            "role": role_str(user) or "unknown",
            "exp": now + timedelta(minutes=self.token_expiry_minutes),
            "iat": now,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def validate_password(self, password: str) -> bool:
        """Validate password strength"""
        if not password or len(password) < self.password_min_length:
            return False
        if not any(c.isupper() for c in password):
            return False
        if not any(c.islower() for c in password):
            return False
        if not any(c.isdigit() for c in password):
            return False
        return any(c in PASSWORD_SPECIAL_CHARACTERS for c in password)

    def update_profile(
        self,
        user_id: int,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Update user profile fields"""
        with self.db_service.get_session() as session:
            user = (
                session.execute(
                    select(User).where(User.id == user_id, User.active.is_(True))
                )
                .scalars()
                .first()
            )
            if not user:
                raise UserNotFoundError("User not found")

            if first_name is not None:
                if not first_name.strip():
                    raise ValidationError("First name cannot be empty")
                user.first_name = first_name.strip()

            if last_name is not None:
                if not last_name.strip():
                    raise ValidationError("Last name cannot be empty")
                user.last_name = last_name.strip()

            if email is not None:
                email = email.strip().lower()
                taken = (
                    session.execute(
                        select(User).where(User.email == email, User.id != user_id)
                    )
                    .scalars()
                    .first()
                )
                if taken:
                    raise ValidationError("Email already in use")
                user.email = email

            session.commit()
            session.refresh(user)

            self._log_event(
                session,
                user_id,
                "auth.profile_update",
                {
                    "updated_fields": [
                        f
                        for f, v in [
                            ("first_name", first_name),
                            ("last_name", last_name),
                            ("email", email),
                        ]
                        if v is not None
                    ]
                },
            )
            return user_to_dict(user)

    def _log_event(
        self,
        session: Session,
        user_id: Optional[int],
        event_key: str,
        details: Dict[str, Any],
    ):
        """Write an audit log row for an auth event"""
        event_type = EventType.AUTH
        if "logout" in event_key:
            event_type = EventType.LOGOUT
        elif "login" in event_key:
            event_type = EventType.LOGIN
        elif "register" in event_key:
            event_type = EventType.CREATE
        elif "update" in event_key:
            event_type = EventType.UPDATE

        session.add(
            AuditLog(
                user_id=user_id,
                event_type=event_type,
                details={**details, "event_key": event_key},
            )
        )
        session.commit()


# Global auth service instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the global authentication service instance"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


def reset_auth_service():
    global _auth_service
    _auth_service = None
