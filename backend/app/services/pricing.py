"""Commission math and price range helpers."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from app.services.availability import round_to


@dataclass
class DateRange:
    start_date: date
    end_date: date
    id: Optional[UUID] = None


def calculate_public_price(owner_price: float, commission_rate: float) -> float:
    """Public price such that the owner receives `owner_price` after commission.

    Rounded half up to the nearest whole unit.
    """
    if commission_rate >= 100:
        raise ValueError("Commission rate must be below 100")
    return round_to(owner_price / (1 - commission_rate / 100), 0)


def calculate_commission_amount(public_price: float, owner_price: float) -> float:
    return public_price - owner_price


def public_rate(owner_rate: Optional[float], commission_rate: float) -> Optional[float]:
    if owner_rate is None:
        return None
    return calculate_public_price(owner_rate, commission_rate)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive overlap test."""
    return a_start <= b_end and b_start <= a_end


def validate_date_range_overlap(
    existing: Iterable[DateRange],
    new_range: DateRange,
    exclude_id: Optional[UUID] = None,
) -> bool:
    """True when `new_range` does not touch any existing range."""
    for current in existing:
        if exclude_id is not None and current.id == exclude_id:
            continue
        if ranges_overlap(current.start_date, current.end_date, new_range.start_date, new_range.end_date):
            return False
    return True
