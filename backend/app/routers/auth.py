"""Auth router."""

from fastapi import APIRouter, Depends

from app.core.permissions import SECTION_PERMISSIONS, can_access_section
from app.core.security import get_current_user, AuthenticatedUser
from app.schemas.auth import CurrentUserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get current authenticated user info, with role and effective permissions."""
    return CurrentUserResponse(
        uid=current_user.uid,
        email=current_user.email,
        email_verified=current_user.email_verified,
        db_user_id=str(current_user.db_user_id) if current_user.db_user_id else None,
        org_id=str(current_user.org_id) if current_user.org_id else None,
        org_role=current_user.org_role,
        role=current_user.role.value,
        permissions=current_user.permissions,
        sections=[s for s in SECTION_PERMISSIONS if can_access_section(current_user.role, s)],
    )
