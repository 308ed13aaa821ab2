"""Bookings and availability router."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.pagination import ilike_any, page_count, paginate
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.booking import Booking
from app.models.enums import (
    AuditAction,
    BookingSource,
    BookingStatus,
    BookingType,
    GUEST_BOOKING_TYPES,
    OWNER_BOOKING_TYPES,
)
from app.models.property import Property
from app.routers.properties import get_org_property
from app.schemas.booking import (
    AdvancedAvailabilityRequest,
    AdvancedAvailabilityResponse,
    AvailabilityResponse,
    BookingConflict,
    BookingCreate,
    BookingImportRequest,
    BookingImportResponse,
    BookingListResponse,
    BookingResponse,
    BookingStatsResponse,
    BookingUpdate,
)
from app.services.audit import AuditService, snapshot
from app.services.availability import (
    analyze_conflict,
    check_advanced_availability,
    find_conflicts,
    get_booking_stats,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])

SORT_COLUMNS = {
    "start_date": Booking.start_date,
    "end_date": Booking.end_date,
    "created_at": Booking.created_at,
    "guest_name": Booking.guest_name,
}


def _conflict_error(conflicts) -> HTTPException:
    types = ", ".join(c.type.value for c in conflicts)
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Booking conflicts with existing bookings: {types}",
    )


def _booking_response(booking: Booking, property_name: Optional[str] = None) -> BookingResponse:
    response = BookingResponse.model_validate(booking)
    response.property_name = property_name
    return response


async def _get_booking(db: AsyncSession, booking_id: UUID, org_id: UUID) -> tuple[Booking, str]:
    result = await db.execute(
        select(Booking, Property.name)
        .join(Property, Property.id == Booking.property_id)
        .where(Booking.id == booking_id, Property.org_id == org_id)
    )
    row = result.one_or_none()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return row[0], row[1]


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    property_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    types: Optional[list[BookingType]] = Query(None, alias="type"),
    statuses: Optional[list[BookingStatus]] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort_by: str = Query("start_date", pattern="^(start_date|end_date|created_at|guest_name)$"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """List bookings with filters, sorting and pagination."""
    stmt = (
        select(Booking, Property.name)
        .join(Property, Property.id == Booking.property_id)
        .where(Property.org_id == current_user.org_id)
    )
    if property_id:
        stmt = stmt.where(Booking.property_id == property_id)
    if start_date:
        stmt = stmt.where(Booking.end_date >= start_date)
    if end_date:
        stmt = stmt.where(Booking.start_date <= end_date)
    if types:
        stmt = stmt.where(Booking.type.in_(types))
    if statuses:
        stmt = stmt.where(Booking.status.in_(statuses))
    if search:
        stmt = stmt.where(ilike_any(
            search,
            Booking.guest_name,
            Booking.guest_email,
            Booking.guest_phone,
            Booking.notes,
            Booking.external_id,
        ))

    column = SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.desc() if sort_order == "desc" else column.asc())

    rows, total = await paginate(db, stmt, page, limit, scalars=False)

    return BookingListResponse(
        bookings=[_booking_response(booking, name) for booking, name in rows],
        total=total,
        page=page,
        limit=limit,
        pages=page_count(total, limit),
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    property_id: UUID,
    start_date: date,
    end_date: date,
    exclude_booking_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Whether the property is free between the two dates."""
    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )
    await get_org_property(db, property_id, current_user.org_id)

    conflicts = await find_conflicts(db, property_id, start_date, end_date, exclude_booking_id)
    return AvailabilityResponse(
        available=not conflicts,
        conflicts=[BookingConflict.model_validate(c) for c in conflicts],
    )


@router.post("/availability/advanced", response_model=AdvancedAvailabilityResponse)
async def check_availability_advanced(
    data: AdvancedAvailabilityRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Availability with conflict analysis, grace periods and alternative dates."""
    await get_org_property(db, data.property_id, current_user.org_id)

    outcome = await check_advanced_availability(
        db,
        data.property_id,
        data.start_date,
        data.end_date,
        grace_period_hours=data.grace_period_hours,
        suggest_alternatives=data.suggest_alternatives,
        exclude_booking_id=data.exclude_booking_id,
    )
    return AdvancedAvailabilityResponse(
        available=outcome.available,
        conflicts=outcome.conflicts,
        suggestions=outcome.suggestions,
        grace_period_violations=outcome.grace_period_violations,
    )


@router.get("/stats", response_model=BookingStatsResponse)
async def booking_stats(
    property_id: UUID,
    start_date: date,
    end_date: date,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Occupancy and revenue of confirmed bookings over a period."""
    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )
    await get_org_property(db, property_id, current_user.org_id)
    return BookingStatsResponse(**await get_booking_stats(db, property_id, start_date, end_date))


@router.post("/import", response_model=BookingImportResponse)
async def import_bookings(
    data: BookingImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Import a batch of bookings for one property.

    Rows that collide with stored bookings, or with earlier rows of the
    same batch, are reported and skipped. The rest are committed together.
    """
    await get_org_property(db, data.property_id, current_user.org_id)

    errors: list[str] = []
    accepted: list[Booking] = []

    for index, row in enumerate(data.bookings, start=1):
        if row.type in GUEST_BOOKING_TYPES and not (row.guest_name and row.guest_email):
            errors.append(f"Booking {index}: Guest name and email are required")
            continue

        conflicts = await find_conflicts(db, data.property_id, row.start_date, row.end_date)
        batch_conflict = any(
            analyze_conflict(row.start_date, row.end_date, b.start_date, b.end_date)
            for b in accepted
        )
        if conflicts or batch_conflict:
            errors.append(
                f"Booking {index}: Conflicts with existing bookings "
                f"({row.start_date.isoformat()} to {row.end_date.isoformat()})"
            )
            continue

        accepted.append(Booking(
            property_id=data.property_id,
            status=BookingStatus.CONFIRMED,
            source=BookingSource.IMPORT,
            created_by=current_user.uid,
            updated_by=current_user.uid,
            **row.model_dump(),
        ))

    if accepted:
        db.add_all(accepted)
        await db.flush()
        audit = AuditService(db)
        for booking in accepted:
            await audit.log_create(current_user, "booking", booking, request, action=AuditAction.IMPORT)
        await db.commit()

    logger.info(
        "Imported %d bookings for property %s (%d errors)",
        len(accepted), data.property_id, len(errors),
    )
    return BookingImportResponse(success=not errors, imported=len(accepted), errors=errors)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Create a booking after checking the calendar."""
    prop = await get_org_property(db, data.property_id, current_user.org_id)

    if data.status != BookingStatus.CANCELLED:
        conflicts = await find_conflicts(db, data.property_id, data.start_date, data.end_date)
        if conflicts:
            raise _conflict_error(conflicts)

    booking_data = data.model_dump(exclude={"metadata"})
    booking = Booking(
        **booking_data,
        extra_data=data.metadata,
        created_by=current_user.uid,
        updated_by=current_user.uid,
    )
    db.add(booking)
    await db.flush()

    if booking.type in OWNER_BOOKING_TYPES:
        await AuditService(db).log_create(current_user, "booking", booking, request)

    await db.commit()
    await db.refresh(booking)

    return _booking_response(booking, prop.name)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Get a booking by ID."""
    booking, property_name = await _get_booking(db, booking_id, current_user.org_id)
    return _booking_response(booking, property_name)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: UUID,
    data: BookingUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Update a booking, re-checking the calendar for the new dates."""
    booking, property_name = await _get_booking(db, booking_id, current_user.org_id)
    before = snapshot(booking)

    update_data = data.model_dump(exclude_unset=True)
    if "metadata" in update_data:
        update_data["extra_data"] = update_data.pop("metadata")

    start_date = update_data.get("start_date", booking.start_date)
    end_date = update_data.get("end_date", booking.end_date)
    booking_type = update_data.get("type") or booking.type
    booking_status = update_data.get("status") or booking.status

    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )
    if booking_type in GUEST_BOOKING_TYPES:
        guest_name = update_data.get("guest_name", booking.guest_name)
        guest_email = update_data.get("guest_email", booking.guest_email)
        if not (guest_name and guest_email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Guest name and email are required for this booking type",
            )

    if booking_status != BookingStatus.CANCELLED:
        conflicts = await find_conflicts(
            db, booking.property_id, start_date, end_date, exclude_booking_id=booking.id
        )
        if conflicts:
            raise _conflict_error(conflicts)

    for field, value in update_data.items():
        setattr(booking, field, value)
    booking.updated_by = current_user.uid

    await db.flush()
    if booking.type in OWNER_BOOKING_TYPES:
        await AuditService(db).log_update(
            current_user, "booking", booking.id, before, snapshot(booking), request
        )
    await db.commit()
    await db.refresh(booking)

    return _booking_response(booking, property_name)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    booking, _ = await _get_booking(db, booking_id, current_user.org_id)

    await AuditService(db).log_delete(current_user, "booking", booking, request)
    await db.delete(booking)
    await db.commit()
