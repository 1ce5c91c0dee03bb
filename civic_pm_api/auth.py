"""
Resolve the calling user from request headers and guard routes by role.

The API sits behind the portal's session layer, which forwards the user as
X-User-Id / X-User-Role headers, plus X-Jurisdiction-Id for council staff.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

from civic_pm_api.config import SETTINGS
from civic_pm_api.models import UserRole

logger = logging.getLogger(__name__)

DEV_USER_ID = "user-1"

STAFF_ROLES = frozenset({UserRole.staff, UserRole.pm, UserRole.admin, UserRole.super_admin})
PM_ROLES = frozenset({UserRole.pm, UserRole.admin, UserRole.super_admin})


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: UserRole
    jurisdiction_id: Optional[str] = None


def get_optional_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_jurisdiction_id: Optional[str] = Header(None),
) -> Optional[CurrentUser]:
    """The caller, or None for an anonymous request."""
    if not x_user_id:
        if SETTINGS.dev_auth:
            return CurrentUser(id=DEV_USER_ID, role=UserRole.staff, jurisdiction_id=x_jurisdiction_id)
        return None
    try:
        role = UserRole(x_user_role or UserRole.citizen.value)
    except ValueError:
        logger.warning(f"Rejected unknown role {x_user_role!r} for user {x_user_id!r}")
        raise HTTPException(status_code=403, detail=f"Unknown role: {x_user_role}")
    return CurrentUser(id=x_user_id, role=role, jurisdiction_id=x_jurisdiction_id)


def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_staff(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Staff access required")
    return user


def require_pm(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role not in PM_ROLES:
        raise HTTPException(status_code=403, detail="PM access required")
    return user
