"""Pricing models: per-property settings, seasonal price ranges, stay rules and costs."""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, DateTime, Enum as SQLEnum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import BookingCondition, OperationalCostType, PriceType

if TYPE_CHECKING:
    from app.models.property import Property


class PropertyPricing(Base):
    """Commission and deposit settings, one row per property."""

    __tablename__ = "property_pricing"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    display_on_website: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    retro_commission: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_pricing_update: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    security_deposit: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # e.g. "30-40-30"
    payment_schedule: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    min_owner_accepted_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    min_lc_accepted_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    public_minimum_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Percentages, 0-100
    net_owner_commission: Mapped[float] = mapped_column(Float, default=25.0, nullable=False)
    public_price_commission: Mapped[float] = mapped_column(Float, default=20.0, nullable=False)
    b2b2c_partner_commission: Mapped[float] = mapped_column(Float, default=10.0, nullable=False)
    public_taxes: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    client_fees: Mapped[float] = mapped_column(Float, default=2.0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped["Property"] = relationship("Property", back_populates="pricing")


class PriceRange(Base):
    """Seasonal owner and public rates for a date range."""

    __tablename__ = "price_ranges"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Legacy single-rate fields, cleared by the legacy migration
    nightly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    weekly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    monthly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    owner_nightly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    owner_weekly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    commission_rate: Mapped[float] = mapped_column(Float, default=25.0, nullable=False)
    public_nightly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    public_weekly_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    is_validated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    minimum_stay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped["Property"] = relationship("Property", back_populates="price_ranges")


class MinimumStayRule(Base):
    """Minimum number of nights, optionally limited to a period."""

    __tablename__ = "minimum_stay_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    booking_condition: Mapped[BookingCondition] = mapped_column(SQLEnum(BookingCondition), nullable=False)
    minimum_nights: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped["Property"] = relationship("Property", back_populates="minimum_stay_rules")


class OperationalCost(Base):
    """Housekeeping, linen and package costs charged around a stay."""

    __tablename__ = "operational_costs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    cost_type: Mapped[OperationalCostType] = mapped_column(SQLEnum(OperationalCostType), nullable=False)
    price_type: Mapped[PriceType] = mapped_column(SQLEnum(PriceType), nullable=False)
    estimated_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    public_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    paid_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped["Property"] = relationship("Property", back_populates="operational_costs")
