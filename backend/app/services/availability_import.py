"""Availability (booking) import from CSV rows keyed by the template's camelCase headers."""

import logging
from datetime import date
from typing import Any, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AuthenticatedUser
from app.models.booking import Booking
from app.models.enums import AuditAction, BookingSource, BookingStatus, BookingType
from app.models.property import Property
from app.services.audit import AuditService, snapshot
from app.services.availability import find_conflicts
from app.services.property_import import ImportResult

logger = logging.getLogger(__name__)

TEMPLATE_HEADERS = [
    "propertyName",
    "bookingType",
    "startDate",
    "endDate",
    "guestName",
    "guestEmail",
    "guestPhone",
    "numberOfGuests",
    "totalAmount",
    "notes",
]


class BookingImportRow(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)

    property_name: str = Field(..., min_length=1, alias="propertyName")
    booking_type: BookingType = Field(..., alias="bookingType")
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    guest_name: Optional[str] = Field(None, alias="guestName")
    guest_email: Optional[EmailStr] = Field(None, alias="guestEmail")
    guest_phone: Optional[str] = Field(None, alias="guestPhone")
    number_of_guests: Optional[int] = Field(None, ge=0, alias="numberOfGuests")
    total_amount: Optional[float] = Field(None, ge=0, alias="totalAmount")
    notes: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("booking_type", mode="before")
    @classmethod
    def upper_type(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


def describe_errors(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {message}" if loc else message)
    return "; ".join(parts)


class AvailabilityImporter:
    """Create bookings from CSV rows, matching properties by name."""

    def __init__(self, db: AsyncSession, current_user: AuthenticatedUser, request: Optional[Request] = None):
        self.db = db
        self.current_user = current_user
        self.request = request
        self.audit = AuditService(db)

    async def _properties(self) -> dict[str, Any]:
        result = await self.db.execute(
            select(Property.id, Property.name).where(Property.org_id == self.current_user.org_id)
        )
        return {name.lower(): pid for pid, name in result.all()}

    async def run(self, rows: list[dict[str, Any]]) -> ImportResult:
        properties = await self._properties()
        result = ImportResult()

        for index, raw in enumerate(rows):
            row_number = index + 2
            try:
                row = BookingImportRow.model_validate(raw)
            except ValidationError as e:
                result.fail(row_number, describe_errors(e))
                continue

            property_id = properties.get(row.property_name.lower())
            if property_id is None:
                result.errors.append({
                    "row": row_number,
                    "field": "propertyName",
                    "message": f'Property "{row.property_name}" not found. Please import properties first.',
                })
                result.failed += 1
                continue

            if await find_conflicts(self.db, property_id, row.start_date, row.end_date):
                result.warnings.append({
                    "row": row_number,
                    "field": "dates",
                    "message": f'Booking overlaps with existing booking for "{row.property_name}"',
                })

            booking = Booking(
                property_id=property_id,
                type=row.booking_type,
                status=BookingStatus.CONFIRMED,
                source=BookingSource.IMPORT,
                start_date=row.start_date,
                end_date=row.end_date,
                guest_name=row.guest_name,
                guest_email=row.guest_email,
                guest_phone=row.guest_phone,
                number_of_guests=row.number_of_guests,
                total_amount=row.total_amount,
                notes=row.notes,
                created_by=self.current_user.uid,
                updated_by=self.current_user.uid,
            )
            self.db.add(booking)
            await self.db.flush()
            await self.audit.record(
                self.current_user,
                AuditAction.CREATE,
                "booking",
                booking.id,
                {"created": snapshot(booking), "imported_from_csv": True},
                self.request,
            )
            result.imported += 1

        result.success = result.imported > 0
        logger.info(
            "Availability import finished: %d created, %d failed, %d warnings",
            result.imported, result.failed, len(result.warnings),
        )
        return result
