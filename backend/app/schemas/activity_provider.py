"""Activity provider schemas."""

from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin


class ActivityProviderBase(BaseSchema):
    description: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=500)
    opening_hours: Optional[str] = Field(None, max_length=500)
    price_range: Optional[str] = Field(None, max_length=50)
    amenities: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    image_urls: Optional[list[str]] = None
    comments: Optional[str] = None
    internal_notes: Optional[str] = None


class ActivityProviderCreate(ActivityProviderBase):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=100)
    property_ids: list[UUID] = []


class ActivityProviderUpdate(ActivityProviderBase, PartialUpdate):
    not_nullable = ("name", "type", "amenities", "tags", "image_urls")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, min_length=1, max_length=100)


class LinkedPropertySummary(BaseSchema):
    property_id: UUID
    property_name: str
    notes: Optional[str] = None
    distance: Optional[float] = None
    walking_time: Optional[int] = None
    driving_time: Optional[int] = None


class ActivityProviderResponse(ActivityProviderBase, IDMixin, TimestampMixin):
    org_id: UUID
    name: str
    type: str
    email: Optional[str] = None
    property_count: int = 0
    properties: list[LinkedPropertySummary] = []


class ActivityProviderListResponse(BaseSchema):
    providers: list[ActivityProviderResponse]
    total: int
    page: int
    page_size: int
    page_count: int


class ProviderLinkRequest(BaseSchema):
    property_id: UUID
    notes: Optional[str] = Field(None, max_length=500)
    distance: Optional[float] = Field(None, ge=0)
    walking_time: Optional[int] = Field(None, ge=0)
    driving_time: Optional[int] = Field(None, ge=0)


class ActivityProviderImportRequest(BaseSchema):
    providers: list[ActivityProviderCreate] = Field(..., min_length=1)
    skip_duplicates: bool = True


class ActivityProviderImportResponse(BaseSchema):
    imported: int
    skipped: int
    errors: list[str] = []
