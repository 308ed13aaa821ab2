"""Booking and availability request schemas."""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, EmailStr, Field, model_validator

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin
from app.models.enums import (
    AvailabilityRequestStatus,
    BookingSource,
    BookingStatus,
    BookingType,
    GUEST_BOOKING_TYPES,
    RequestUrgency,
)


class BookingCreate(BaseSchema):
    """Create a booking or calendar block."""

    property_id: UUID
    type: BookingType
    status: BookingStatus = BookingStatus.CONFIRMED
    source: BookingSource = BookingSource.MANUAL
    start_date: date
    end_date: date
    guest_name: Optional[str] = Field(None, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = Field(None, max_length=50)
    number_of_guests: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    external_id: Optional[str] = Field(None, max_length=255)
    total_amount: Optional[float] = Field(None, ge=0)
    metadata: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def validate_booking(self):
        """End after start; guest bookings need name and email."""
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if self.type in GUEST_BOOKING_TYPES and not (self.guest_name and self.guest_email):
            raise ValueError("Guest name and email are required for this booking type")
        return self


class BookingUpdate(PartialUpdate):
    """Update a booking."""

    not_nullable = ("type", "status", "start_date", "end_date")

    type: Optional[BookingType] = None
    status: Optional[BookingStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    guest_name: Optional[str] = Field(None, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = Field(None, max_length=50)
    number_of_guests: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    external_id: Optional[str] = Field(None, max_length=255)
    total_amount: Optional[float] = Field(None, ge=0)
    metadata: Optional[dict[str, Any]] = None


class BookingResponse(BaseSchema, IDMixin, TimestampMixin):
    """Booking response."""

    property_id: UUID
    type: BookingType
    status: BookingStatus
    source: BookingSource
    start_date: date
    end_date: date
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    number_of_guests: Optional[int] = None
    notes: Optional[str] = None
    external_id: Optional[str] = None
    total_amount: Optional[float] = None
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("extra_data", "metadata")
    )
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    property_name: Optional[str] = None


class BookingListResponse(BaseSchema):
    bookings: list[BookingResponse]
    total: int
    page: int
    limit: int
    pages: int


class BookingConflict(BaseSchema):
    id: UUID
    type: BookingType
    start_date: date
    end_date: date
    guest_name: Optional[str] = None
    severity: Optional[str] = None
    conflict_type: Optional[str] = None


class AvailabilityResponse(BaseSchema):
    available: bool
    conflicts: list[BookingConflict] = []


class AdvancedAvailabilityRequest(BaseSchema):
    property_id: UUID
    start_date: date
    end_date: date
    grace_period_hours: float = Field(0, ge=0, le=72)
    suggest_alternatives: bool = True
    exclude_booking_id: Optional[UUID] = None

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class AvailabilitySuggestion(BaseSchema):
    start_date: datetime
    end_date: datetime
    reason: str
    confidence: str


class GracePeriodViolation(BaseSchema):
    booking_id: UUID
    hours: float
    type: str


class AdvancedAvailabilityResponse(BaseSchema):
    available: bool
    conflicts: list[BookingConflict] = []
    suggestions: list[AvailabilitySuggestion] = []
    grace_period_violations: list[GracePeriodViolation] = []


class BookingStatsResponse(BaseSchema):
    total_bookings: int
    total_nights: int
    occupancy_rate: float
    bookings_by_type: dict[str, int]
    total_revenue: float
    average_stay_length: float


class BookingImportRow(BaseSchema):
    type: BookingType = BookingType.CONFIRMED
    start_date: date
    end_date: date
    guest_name: Optional[str] = Field(None, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = Field(None, max_length=50)
    number_of_guests: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    external_id: Optional[str] = Field(None, max_length=255)
    total_amount: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class BookingImportRequest(BaseSchema):
    property_id: UUID
    bookings: list[BookingImportRow] = Field(..., min_length=1)


class BookingImportResponse(BaseSchema):
    success: bool
    imported: int
    errors: list[str] = []


# --- Availability requests ---

class AvailabilityRequestCreate(BaseSchema):
    """Ask whether a property is free for given dates."""

    property_id: UUID
    start_date: date
    end_date: date
    guest_name: str = Field(..., min_length=1, max_length=255)
    guest_email: EmailStr
    guest_phone: Optional[str] = Field(None, max_length=50)
    number_of_guests: int = Field(..., ge=1)
    urgency: RequestUrgency = RequestUrgency.NORMAL
    message: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class AvailabilityRequestStatusUpdate(BaseSchema):
    status: AvailabilityRequestStatus


class AvailabilityRequestResponse(BaseSchema, IDMixin, TimestampMixin):
    property_id: UUID
    start_date: date
    end_date: date
    guest_name: str
    guest_email: str
    guest_phone: Optional[str] = None
    number_of_guests: int
    urgency: RequestUrgency
    message: Optional[str] = None
    status: AvailabilityRequestStatus
    requested_by: Optional[str] = None
    property_name: Optional[str] = None


class AvailabilityRequestListResponse(BaseSchema):
    requests: list[AvailabilityRequestResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
