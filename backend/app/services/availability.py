"""Booking conflict detection, advanced availability and occupancy stats."""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.enums import BookingStatus

SEARCH_WINDOW_DAYS = 7
MAX_SUGGESTIONS = 5


def round_to(value: float, digits: int) -> float:
    """Round half up, the way the UI displays figures."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def conflict_clause(start_date: date, end_date: date):
    """Rows whose stay touches [start_date, end_date)."""
    return or_(
        and_(Booking.start_date >= start_date, Booking.start_date < end_date),
        and_(Booking.end_date > start_date, Booking.end_date <= end_date),
        and_(Booking.start_date <= start_date, Booking.end_date >= end_date),
    )


def window_clause(start_date: date, end_date: date):
    """Rows that overlap the inclusive window [start_date, end_date]."""
    return or_(
        and_(Booking.start_date >= start_date, Booking.start_date <= end_date),
        and_(Booking.end_date >= start_date, Booking.end_date <= end_date),
        and_(Booking.start_date <= start_date, Booking.end_date >= end_date),
    )


async def find_conflicts(
    db: AsyncSession,
    property_id: UUID,
    start_date: date,
    end_date: date,
    exclude_booking_id: Optional[UUID] = None,
) -> Sequence[Booking]:
    """Non-cancelled bookings on the property that collide with the stay."""
    stmt = select(Booking).where(
        Booking.property_id == property_id,
        Booking.status != BookingStatus.CANCELLED,
        conflict_clause(start_date, end_date),
    )
    if exclude_booking_id:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    result = await db.execute(stmt.order_by(Booking.start_date))
    return result.scalars().all()


def analyze_conflict(
    request_start: date,
    request_end: date,
    booking_start: date,
    booking_end: date,
) -> Optional[str]:
    """Classify how a booking collides with a request; None when it does not."""
    if request_end <= booking_start or request_start >= booking_end:
        return None
    if request_start <= booking_start and request_end >= booking_end:
        return "encompassing"
    if booking_start <= request_start and booking_end >= request_end:
        return "encompassed"
    return "overlap"


def _at_midnight(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _label(booking: Any) -> str:
    return booking.guest_name or getattr(booking.type, "value", booking.type)


@dataclass
class AdvancedAvailability:
    available: bool
    conflicts: list[dict[str, Any]]
    suggestions: list[dict[str, Any]]
    grace_period_violations: list[dict[str, Any]]


def evaluate_availability(
    bookings: Sequence[Any],
    start_date: date,
    end_date: date,
    grace_period_hours: float = 0,
    suggest_alternatives: bool = True,
) -> AdvancedAvailability:
    """Conflicts, grace violations and alternative slots for a requested stay.

    `bookings` are the non-cancelled bookings inside the search window,
    ordered by start date.
    """
    request_start = _at_midnight(start_date)
    request_end = _at_midnight(end_date)
    search_start = request_start - timedelta(days=SEARCH_WINDOW_DAYS)
    search_end = request_end + timedelta(days=SEARCH_WINDOW_DAYS)
    grace = timedelta(hours=grace_period_hours)

    conflicts: list[dict[str, Any]] = []
    violations: list[dict[str, Any]] = []

    for booking in bookings:
        b_start = _at_midnight(booking.start_date)
        b_end = _at_midnight(booking.end_date)
        kind = analyze_conflict(request_start, request_end, b_start, b_end)
        if kind:
            conflicts.append({
                "id": booking.id,
                "type": booking.type,
                "start_date": booking.start_date,
                "end_date": booking.end_date,
                "guest_name": booking.guest_name,
                "severity": "blocking",
                "conflict_type": kind,
            })

        before_gap = request_start - b_end
        after_gap = b_start - request_end
        if timedelta(0) < before_gap < grace:
            violations.append({
                "booking_id": booking.id,
                "hours": round_to(before_gap.total_seconds() / 3600, 1),
                "type": "after",
            })
        if timedelta(0) < after_gap < grace:
            violations.append({
                "booking_id": booking.id,
                "hours": round_to(after_gap.total_seconds() / 3600, 1),
                "type": "before",
            })

    suggestions: list[dict[str, Any]] = []
    if suggest_alternatives and conflicts:
        duration = request_end - request_start

        for current, following in zip(bookings, bookings[1:]):
            gap_start = _at_midnight(current.end_date) + grace
            gap_end = _at_midnight(following.start_date) - grace
            if gap_end - gap_start >= duration:
                suggestions.append({
                    "start_date": gap_start,
                    "end_date": gap_start + duration,
                    "reason": f"Available between {_label(current)} and {_label(following)}",
                    "confidence": "high",
                })

        if bookings:
            first, last = bookings[0], bookings[-1]
            before_end = _at_midnight(first.start_date) - grace
            before_start = before_end - duration
            if before_start >= search_start:
                suggestions.append({
                    "start_date": before_start,
                    "end_date": before_end,
                    "reason": f"Available before {_label(first)}",
                    "confidence": "medium",
                })

            after_start = _at_midnight(last.end_date) + grace
            after_end = after_start + duration
            if after_end <= search_end:
                suggestions.append({
                    "start_date": after_start,
                    "end_date": after_end,
                    "reason": f"Available after {_label(last)}",
                    "confidence": "medium",
                })

    return AdvancedAvailability(
        available=not conflicts,
        conflicts=conflicts,
        suggestions=suggestions[:MAX_SUGGESTIONS],
        grace_period_violations=violations,
    )


async def check_advanced_availability(
    db: AsyncSession,
    property_id: UUID,
    start_date: date,
    end_date: date,
    grace_period_hours: float = 0,
    suggest_alternatives: bool = True,
    exclude_booking_id: Optional[UUID] = None,
) -> AdvancedAvailability:
    window_start = start_date - timedelta(days=SEARCH_WINDOW_DAYS)
    window_end = end_date + timedelta(days=SEARCH_WINDOW_DAYS)

    stmt = select(Booking).where(
        Booking.property_id == property_id,
        Booking.status != BookingStatus.CANCELLED,
        window_clause(window_start, window_end),
    )
    if exclude_booking_id:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    result = await db.execute(stmt.order_by(Booking.start_date))
    bookings = result.scalars().all()

    return evaluate_availability(
        bookings, start_date, end_date, grace_period_hours, suggest_alternatives
    )


def booking_stats(bookings: Iterable[Any], start_date: date, end_date: date) -> dict[str, Any]:
    """Occupancy figures for confirmed bookings overlapping [start_date, end_date]."""
    bookings = list(bookings)
    total_nights = 0
    total_revenue = 0.0
    by_type: dict[str, int] = {}

    for booking in bookings:
        clipped_start = max(booking.start_date, start_date)
        clipped_end = min(booking.end_date, end_date)
        total_nights += (clipped_end - clipped_start).days
        total_revenue += booking.total_amount or 0
        key = getattr(booking.type, "value", booking.type)
        by_type[key] = by_type.get(key, 0) + 1

    possible_nights = (end_date - start_date).days
    occupancy = total_nights / possible_nights * 100 if possible_nights > 0 else 0
    average_stay = (
        sum((b.end_date - b.start_date).days for b in bookings) / len(bookings)
        if bookings else 0
    )

    return {
        "total_bookings": len(bookings),
        "total_nights": total_nights,
        "occupancy_rate": round_to(occupancy, 2),
        "bookings_by_type": by_type,
        "total_revenue": total_revenue,
        "average_stay_length": round_to(average_stay, 2),
    }


async def get_booking_stats(
    db: AsyncSession,
    property_id: UUID,
    start_date: date,
    end_date: date,
) -> dict[str, Any]:
    result = await db.execute(
        select(Booking).where(
            Booking.property_id == property_id,
            Booking.status == BookingStatus.CONFIRMED,
            window_clause(start_date, end_date),
        )
    )
    return booking_stats(result.scalars().all(), start_date, end_date)
