"""EquipmentRequest model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import EquipmentRequestPriority, EquipmentRequestStatus

if TYPE_CHECKING:
    from app.models.property import Property, Room


class EquipmentRequest(Base):
    """A request to buy equipment for a property, approved by a manager."""

    __tablename__ = "equipment_requests"

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
    room_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
    )

    requested_by: Mapped[str] = mapped_column(String(128), nullable=False)
    requested_by_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[EquipmentRequestStatus] = mapped_column(
        SQLEnum(EquipmentRequestStatus),
        default=EquipmentRequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    priority: Mapped[EquipmentRequestPriority] = mapped_column(
        SQLEnum(EquipmentRequestPriority),
        default=EquipmentRequestPriority.MEDIUM,
        nullable=False,
    )

    # [{name, quantity, description, estimated_cost, link}]
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)

    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    internal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    approved_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    approved_by_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejected_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped["Property"] = relationship("Property", back_populates="equipment_requests")
    room: Mapped[Optional["Room"]] = relationship("Room")
