"""Organization schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from app.schemas.base import BaseSchema, IDMixin, TimestampMixin
from app.core.permissions import UserRole


class OrgResponse(BaseSchema, IDMixin, TimestampMixin):
    """Organization response."""

    name: str
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    timezone: str


class OrgWithMembership(OrgResponse):
    """Org response with current user's membership."""

    current_user_role: UserRole


class OrgMemberResponse(BaseSchema):
    """Member in organization list."""

    id: UUID
    user_id: UUID
    email: str
    name: Optional[str] = None
    role: UserRole
    joined_at: datetime


class OrgMemberListResponse(BaseSchema):
    """Response for organization members list."""

    members: list[OrgMemberResponse]


class OrgMemberRoleUpdate(BaseSchema):
    role: UserRole
