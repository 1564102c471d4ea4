"""
Role normalization helpers (backend).

Canonical contract:
- Internal (DB/runtime): roles are ``UserRole`` and admin levels ``AdminLevel``.
- API boundaries: both are serialized as lowercase strings,
  "student" | "educator" | "admin" and "district" | "school" | "department".

Legacy tolerance:
- "teacher" is read as "educator".
- Enum-ish strings like "UserRole.ADMIN" and objects with ``.value`` are accepted.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from .models import AdminLevel, UserRole

RoleLike = Union[str, UserRole, Any]

_ROLE_ALIASES = {"teacher": UserRole.EDUCATOR.value}
_ROLE_VALUES = {r.value for r in UserRole}
_LEVEL_VALUES = {lvl.value for lvl in AdminLevel}


def _raw_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        value = value.get("value")
    elif hasattr(value, "value"):
        value = getattr(value, "value", value)
    raw = str(value).strip() if value is not None else ""
    # Tolerate enum-ish string representations like "UserRole.ADMIN"
    if "." in raw:
        raw = raw.split(".")[-1].strip()
    return raw.lower()


def normalize_role(role: RoleLike) -> str:
    """Return canonical lowercase role string, or "" if missing."""
    lowered = _raw_value(role)
    return _ROLE_ALIASES.get(lowered, lowered)


def parse_user_role(role: RoleLike) -> Optional[UserRole]:
    """Best-effort conversion to ``UserRole``; returns None if invalid/unknown."""
    role_value = normalize_role(role)
    if role_value not in _ROLE_VALUES:
        return None
    return UserRole(role_value)


def parse_admin_level(level: Any) -> Optional[AdminLevel]:
    """Best-effort conversion to ``AdminLevel``; returns None if invalid/unknown."""
    level_value = _raw_value(level)
    if level_value not in _LEVEL_VALUES:
        return None
    return AdminLevel(level_value)


def role_str(user_or_role: Any) -> str:
    """Accept a user-like object (with ``.role``) or a role value."""
    if hasattr(user_or_role, "role"):
        return normalize_role(getattr(user_or_role, "role", None))
    return normalize_role(user_or_role)


def has_role(user_or_role: Any, *roles: Union[UserRole, str]) -> bool:
    """Return True if the user/role matches any of the given roles."""
    current = role_str(user_or_role)
    if not current:
        return False
    allowed = {normalize_role(r) for r in roles}
    return current in allowed


def is_educator_or_admin(user_or_role: Any) -> bool:
    return has_role(user_or_role, UserRole.EDUCATOR, UserRole.ADMIN)


def is_admin(user_or_role: Any) -> bool:
    return has_role(user_or_role, UserRole.ADMIN)


def is_educator(user_or_role: Any) -> bool:
    return has_role(user_or_role, UserRole.EDUCATOR)


def is_student(user_or_role: Any) -> bool:
    return has_role(user_or_role, UserRole.STUDENT)
