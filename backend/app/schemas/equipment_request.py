"""Equipment request schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin
from app.models.enums import EquipmentRequestPriority, EquipmentRequestStatus


class EquipmentItem(BaseSchema):
    """One requested item."""

    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1)
    description: Optional[str] = Field(None, max_length=1000)
    estimated_cost: Optional[float] = Field(None, gt=0)
    link: Optional[str] = None

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Link must be a valid URL")
        return v or None


class EquipmentRequestCreate(BaseSchema):
    property_id: UUID
    room_id: Optional[UUID] = None
    priority: EquipmentRequestPriority = EquipmentRequestPriority.MEDIUM
    items: list[EquipmentItem] = Field(..., min_length=1)
    reason: Optional[str] = None
    notes: Optional[str] = None


class EquipmentRequestUpdate(PartialUpdate):
    not_nullable = ("priority", "items")

    room_id: Optional[UUID] = None
    priority: Optional[EquipmentRequestPriority] = None
    items: Optional[list[EquipmentItem]] = Field(None, min_length=1)
    reason: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class EquipmentRequestStatusUpdate(BaseSchema):
    status: EquipmentRequestStatus
    rejected_reason: Optional[str] = None
    internal_notes: Optional[str] = None


class EquipmentRequestResponse(BaseSchema, IDMixin, TimestampMixin):
    property_id: UUID
    property_name: Optional[str] = None
    room_id: Optional[UUID] = None
    room_name: Optional[str] = None
    requested_by: str
    requested_by_email: Optional[str] = None
    status: EquipmentRequestStatus
    priority: EquipmentRequestPriority
    items: list[EquipmentItem]
    item_count: int = 0
    reason: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_by_email: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None
    completed_at: Optional[datetime] = None


class EquipmentRequestListResponse(BaseSchema):
    requests: list[EquipmentRequestResponse]
    total: int
    page: int
    limit: int
    total_pages: int
