"""Firebase JWT verification and permission dependencies."""

import logging
from typing import Any, Optional
from uuid import UUID

import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.permissions import Permission, UserRole, has_permission, resolve_role, role_permissions

logger = logging.getLogger(__name__)

settings = get_settings()

security = HTTPBearer(auto_error=False)

UNAUTHORIZED = "Unauthorized"


def _ensure_firebase_app() -> None:
    """Initialize the Firebase Admin SDK on first use."""
    if firebase_admin._apps:
        return
    options = {"projectId": settings.firebase_project_id}
    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
        firebase_admin.initialize_app(cred, options)
    else:
        firebase_admin.initialize_app(options=options)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=UNAUTHORIZED)


class AuthenticatedUser:
    """Represents an authenticated user from Firebase JWT."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        email_verified: bool = False,
        claims: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.email_verified = email_verified
        self.claims = claims or {}
        self.db_user_id: Optional[UUID] = None
        self.org_id: Optional[UUID] = None
        self.org_role: Optional[str] = None

    @property
    def role(self) -> UserRole:
        return resolve_role(self.org_role)

    @property
    def permissions(self) -> list[str]:
        return sorted(p.value for p in role_permissions(self.role))

    def can(self, permission: Permission) -> bool:
        return has_permission(self.role, permission)


async def verify_firebase_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """Verify Firebase JWT and return authenticated user.

    Tokens are only verified here, never minted.
    """
    if credentials is None:
        raise _unauthorized()

    _ensure_firebase_app()
    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        logger.info("Rejected expired ID token")
        raise _unauthorized()
    except auth.InvalidIdTokenError:
        logger.info("Rejected invalid ID token")
        raise _unauthorized()
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        raise _unauthorized()

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )


async def get_current_user(
    auth_user: AuthenticatedUser = Depends(verify_firebase_token),
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Get current user with database context (user_id, org_id, org_role)."""
    from app.models.user import User
    from app.models.org import OrgMembership

    result = await db.execute(
        select(User).where(User.firebase_uid == auth_user.uid)
    )
    user = result.scalar_one_or_none()

    if user and user.is_active:
        auth_user.db_user_id = user.id
        if not auth_user.email:
            auth_user.email = user.email

        membership_result = await db.execute(
            select(OrgMembership).where(OrgMembership.user_id == user.id)
        )
        membership = membership_result.scalar_one_or_none()

        if membership:
            auth_user.org_id = membership.org_id
            auth_user.org_role = membership.role.value

    return auth_user


def require_org_member(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Require user to be a member of an organization."""
    if not current_user.org_id:
        raise _forbidden()
    return current_user


def ensure_permission(current_user: AuthenticatedUser, permission: Permission) -> None:
    """Raise 403 unless the caller's role grants the permission."""
    if not current_user.can(permission):
        logger.info(
            "Permission %s denied for user %s (role %s)",
            permission.value,
            current_user.uid,
            current_user.role.value,
        )
        raise _forbidden()


def require_permission(permission: Permission):
    """Dependency factory: org membership plus one permission."""

    def dependency(
        current_user: AuthenticatedUser = Depends(require_org_member),
    ) -> AuthenticatedUser:
        ensure_permission(current_user, permission)
        return current_user

    return dependency


def require_org_admin(
    current_user: AuthenticatedUser = Depends(require_org_member),
) -> AuthenticatedUser:
    """Require the admin role."""
    if current_user.role != UserRole.ADMIN:
        raise _forbidden()
    return current_user
