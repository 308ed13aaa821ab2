"""Destination schemas."""

from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin


class DestinationCreate(BaseSchema):
    """Create a destination."""

    name: str = Field(..., min_length=2, max_length=255)
    country: str = Field(..., min_length=2, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    image_alt_text: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class DestinationUpdate(PartialUpdate):
    """Update a destination."""

    not_nullable = ("name", "country")

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    country: Optional[str] = Field(None, min_length=2, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    image_alt_text: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class DestinationResponse(BaseSchema, IDMixin, TimestampMixin):
    """Destination response."""

    org_id: UUID
    name: str
    country: str
    region: Optional[str] = None
    image_url: Optional[str] = None
    image_alt_text: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    property_count: int = 0


class DestinationOption(BaseSchema):
    id: UUID
    name: str
    region: Optional[str] = None
    label: str
    property_count: int = 0


class DestinationListResponse(BaseSchema):
    destinations: list[DestinationResponse]
    grouped: dict[str, list[DestinationOption]]
    total: int
