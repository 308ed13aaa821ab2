"""Property, Room, Photo and Resource models."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import ConciergeServiceOffer, LicenseType, PropertyStatus, RoomType

if TYPE_CHECKING:
    from app.models.org import Organization
    from app.models.destination import Destination
    from app.models.booking import Booking, AvailabilityRequest
    from app.models.contact import ContactProperty
    from app.models.pricing import PropertyPricing, PriceRange, MinimumStayRule, OperationalCost
    from app.models.equipment_request import EquipmentRequest


class Property(Base):
    """A rental house managed by an organization."""

    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    destination_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("destinations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    original_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        default=PropertyStatus.ONBOARDING,
        nullable=False,
    )

    # Capacity and size
    number_of_rooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    number_of_bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_guests: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    adult_capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    property_size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    plot_size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    furnished_floors: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Location
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    postcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    additional_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Licensing and operation
    license_type: Mapped[Optional[LicenseType]] = mapped_column(SQLEnum(LicenseType), nullable=True)
    license_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    concierge_service: Mapped[bool] = mapped_column(Boolean, default=False)
    concierge_service_offer: Mapped[Optional[ConciergeServiceOffer]] = mapped_column(
        SQLEnum(ConciergeServiceOffer), nullable=True
    )
    operated_by_agency: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    categories: Mapped[list[str]] = mapped_column(JSONB, default=list)

    # Description
    house_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    architectural_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    adjoining_house: Mapped[bool] = mapped_column(Boolean, default=False)

    # Promotion
    exclusivity: Mapped[bool] = mapped_column(Boolean, default=False)
    position: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    segment: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    iconic_collection: Mapped[bool] = mapped_column(Boolean, default=False)
    online_reservation: Mapped[bool] = mapped_column(Boolean, default=False)
    flexible_cancellation: Mapped[bool] = mapped_column(Boolean, default=False)
    onboarding_fees: Mapped[bool] = mapped_column(Boolean, default=False)

    # Accessibility and policies
    elevator: Mapped[bool] = mapped_column(Boolean, default=False)
    prm_suitability: Mapped[bool] = mapped_column(Boolean, default=False)
    accessibility_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    children_policy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    children_accessories: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    animals_policy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    live_in_staff: Mapped[bool] = mapped_column(Boolean, default=False)

    # Comfort
    heating_system: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    heating_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ac_system: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ac_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Events
    suitable_for_events: Mapped[bool] = mapped_column(Boolean, default=False)
    event_types: Mapped[list[str]] = mapped_column(JSONB, default=list)
    event_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_rules: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_layout_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_tariffs: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_deposit: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    event_drive_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Services
    transport_services: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    staff_services: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meal_services: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Stay
    check_in_time: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    check_out_time: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    check_in_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    wifi_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    wifi_password: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    wifi_in_all_rooms: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    wifi_speed: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    mobile_network_coverage: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    has_fire_extinguisher: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_fire_alarm: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    electric_meter_accessible: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    electric_meter_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    good_to_know: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    surroundings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    # Sections keyed access, maintenance, network, security and villa_book_comment
    stay_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)

    # Marketing
    listing_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    marketing_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviews: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Internal only (internal:view)
    internal_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    warning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    org: Mapped["Organization"] = relationship("Organization", back_populates="properties")
    destination: Mapped[Optional["Destination"]] = relationship("Destination", back_populates="properties")
    rooms: Mapped[list["Room"]] = relationship(
        "Room", back_populates="property", cascade="all, delete-orphan"
    )
    photos: Mapped[list["Photo"]] = relationship(
        "Photo", back_populates="property", cascade="all, delete-orphan"
    )
    resources: Mapped[list["Resource"]] = relationship(
        "Resource", back_populates="property", cascade="all, delete-orphan"
    )
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="property", cascade="all, delete-orphan"
    )
    availability_requests: Mapped[list["AvailabilityRequest"]] = relationship(
        "AvailabilityRequest", back_populates="property", cascade="all, delete-orphan"
    )
    contact_links: Mapped[list["ContactProperty"]] = relationship(
        "ContactProperty", back_populates="property", cascade="all, delete-orphan"
    )
    pricing: Mapped[Optional["PropertyPricing"]] = relationship(
        "PropertyPricing", back_populates="property", cascade="all, delete-orphan", uselist=False
    )
    price_ranges: Mapped[list["PriceRange"]] = relationship(
        "PriceRange", back_populates="property", cascade="all, delete-orphan"
    )
    minimum_stay_rules: Mapped[list["MinimumStayRule"]] = relationship(
        "MinimumStayRule", back_populates="property", cascade="all, delete-orphan"
    )
    operational_costs: Mapped[list["OperationalCost"]] = relationship(
        "OperationalCost", back_populates="property", cascade="all, delete-orphan"
    )
    equipment_requests: Mapped[list["EquipmentRequest"]] = relationship(
        "EquipmentRequest", back_populates="property", cascade="all, delete-orphan"
    )


class Room(Base):
    """A room within a property."""

    __tablename__ = "rooms"

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
    type: Mapped[RoomType] = mapped_column(SQLEnum(RoomType), default=RoomType.OTHER, nullable=False)
    group_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    general_info: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    view: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    equipment: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped["Property"] = relationship("Property", back_populates="rooms")
    photos: Mapped[list["Photo"]] = relationship("Photo", back_populates="room")


class Photo(Base):
    """A property photo stored in object storage."""

    __tablename__ = "photos"

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

    # Object path inside the bucket
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_main: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    property: Mapped["Property"] = relationship("Property", back_populates="photos")
    room: Mapped[Optional["Room"]] = relationship("Room", back_populates="photos")


class Resource(Base):
    """A document or link attached to a property (floor plan, brochure...)."""

    __tablename__ = "resources"

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

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    # True when `url` is an object path we own and must delete
    is_stored: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    property: Mapped["Property"] = relationship("Property", back_populates="resources")
