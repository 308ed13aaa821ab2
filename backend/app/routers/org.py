"""Organization router."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import require_org_admin, require_org_member, AuthenticatedUser
from app.models.user import User
from app.models.org import Organization, OrgMembership
from app.models.enums import AuditAction
from app.schemas.org import (
    OrgWithMembership,
    OrgMemberResponse,
    OrgMemberListResponse,
    OrgMemberRoleUpdate,
)
from app.services.audit import AuditService

router = APIRouter(prefix="/orgs", tags=["organizations"])


@router.get("/me", response_model=OrgWithMembership)
async def get_my_organization(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Get current user's organization context."""
    result = await db.execute(
        select(Organization).where(Organization.id == current_user.org_id)
    )
    org = result.scalar_one_or_none()

    if not org:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )

    return OrgWithMembership(
        id=org.id,
        name=org.name,
        slug=org.slug,
        email=org.email,
        phone=org.phone,
        address=org.address,
        timezone=org.timezone,
        created_at=org.created_at,
        updated_at=org.updated_at,
        current_user_role=current_user.role,
    )


def _member_response(membership: OrgMembership, user: User) -> OrgMemberResponse:
    return OrgMemberResponse(
        id=membership.id,
        user_id=user.id,
        email=user.email,
        name=user.display_name,
        role=membership.role,
        joined_at=membership.created_at,
    )


@router.get("/members", response_model=OrgMemberListResponse)
async def list_organization_members(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """List all members of the current user's organization."""
    result = await db.execute(
        select(OrgMembership, User)
        .join(User, OrgMembership.user_id == User.id)
        .where(OrgMembership.org_id == current_user.org_id)
        .order_by(OrgMembership.created_at.desc())
    )

    return OrgMemberListResponse(
        members=[_member_response(membership, user) for membership, user in result.all()]
    )


@router.patch("/members/{membership_id}", response_model=OrgMemberResponse)
async def update_member_role(
    membership_id: UUID,
    data: OrgMemberRoleUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_admin),
):
    """Change a member's role (admin only)."""
    result = await db.execute(
        select(OrgMembership, User)
        .join(User, OrgMembership.user_id == User.id)
        .where(
            OrgMembership.id == membership_id,
            OrgMembership.org_id == current_user.org_id,
        )
    )
    row = result.one_or_none()

    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    membership, user = row
    old_role = membership.role
    membership.role = data.role

    await AuditService(db).record(
        current_user,
        AuditAction.UPDATE,
        "org_membership",
        membership.id,
        {"before": {"role": old_role.value}, "after": {"role": data.role.value}},
        request,
    )
    await db.commit()

    return _member_response(membership, user)
