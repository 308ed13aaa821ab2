"""Property, room, photo and resource schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin
from app.models.enums import (
    ConciergeServiceOffer,
    LicenseType,
    PropertyStatus,
    RoomType,
)


class PropertyFields(BaseSchema):
    """Every editable property attribute, all optional."""

    original_name: Optional[str] = Field(None, max_length=255)
    status: Optional[PropertyStatus] = None
    destination_id: Optional[UUID] = None

    number_of_rooms: Optional[int] = Field(None, ge=0)
    number_of_bathrooms: Optional[int] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=0)
    adult_capacity: Optional[int] = Field(None, ge=0)
    property_size: Optional[float] = Field(None, ge=0)
    plot_size: Optional[float] = Field(None, ge=0)
    furnished_floors: Optional[int] = Field(None, ge=0)

    address: Optional[str] = Field(None, max_length=500)
    postcode: Optional[str] = Field(None, max_length=20)
    city: Optional[str] = Field(None, max_length=100)
    additional_details: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    license_type: Optional[LicenseType] = None
    license_number: Optional[str] = Field(None, max_length=100)
    concierge_service: Optional[bool] = None
    concierge_service_offer: Optional[ConciergeServiceOffer] = None
    operated_by_agency: Optional[str] = Field(None, max_length=255)
    categories: Optional[list[str]] = None

    house_type: Optional[str] = Field(None, max_length=100)
    architectural_type: Optional[str] = Field(None, max_length=100)
    adjoining_house: Optional[bool] = None

    exclusivity: Optional[bool] = None
    position: Optional[str] = Field(None, max_length=100)
    segment: Optional[str] = Field(None, max_length=100)
    iconic_collection: Optional[bool] = None
    online_reservation: Optional[bool] = None
    flexible_cancellation: Optional[bool] = None
    onboarding_fees: Optional[bool] = None

    elevator: Optional[bool] = None
    prm_suitability: Optional[bool] = None
    accessibility_notes: Optional[str] = None
    children_policy: Optional[str] = None
    children_accessories: Optional[str] = None
    animals_policy: Optional[str] = None
    live_in_staff: Optional[bool] = None

    heating_system: Optional[str] = Field(None, max_length=255)
    heating_comments: Optional[str] = None
    ac_system: Optional[str] = Field(None, max_length=255)
    ac_comments: Optional[str] = None

    suitable_for_events: Optional[bool] = None
    event_types: Optional[list[str]] = None
    event_notes: Optional[str] = None
    event_rules: Optional[str] = None
    event_layout_link: Optional[str] = None
    event_tariffs: Optional[str] = None
    event_deposit: Optional[float] = Field(None, ge=0)
    event_drive_link: Optional[str] = None

    transport_services: Optional[str] = None
    staff_services: Optional[str] = None
    meal_services: Optional[str] = None

    check_in_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    check_out_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    wifi_name: Optional[str] = Field(None, max_length=100)
    wifi_password: Optional[str] = Field(None, max_length=100)
    good_to_know: Optional[str] = None

    listing_url: Optional[str] = None
    marketing_notes: Optional[str] = None
    reviews: Optional[str] = None

    internal_comment: Optional[str] = None
    warning: Optional[str] = None


class PropertyCreate(PropertyFields):
    """Create a new property."""

    name: str = Field(..., min_length=1, max_length=255)
    status: PropertyStatus = PropertyStatus.ONBOARDING


class PropertyUpdate(PropertyFields, PartialUpdate):
    """Update property."""

    not_nullable = (
        "name", "status", "concierge_service", "categories", "adjoining_house", "exclusivity",
        "iconic_collection", "online_reservation", "flexible_cancellation", "onboarding_fees",
        "elevator", "prm_suitability", "live_in_staff", "suitable_for_events", "event_types",
    )

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class PropertyResponse(PropertyFields, IDMixin, TimestampMixin):
    """Property response."""

    org_id: UUID
    name: str
    status: PropertyStatus
    destination_name: Optional[str] = None

    check_in_person: Optional[str] = None
    wifi_in_all_rooms: bool = False
    wifi_speed: Optional[str] = None
    mobile_network_coverage: Optional[str] = None
    has_fire_extinguisher: bool = False
    has_fire_alarm: bool = False
    electric_meter_accessible: bool = False
    electric_meter_location: Optional[str] = None
    surroundings: Optional[dict[str, Any]] = None
    stay_metadata: Optional[dict[str, Any]] = None


class PropertyListResponse(BaseSchema):
    properties: list[PropertyResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PropertySearchResult(BaseSchema):
    id: UUID
    name: str
    original_name: Optional[str] = None
    status: PropertyStatus
    city: Optional[str] = None
    address: Optional[str] = None
    destination_id: Optional[UUID] = None
    number_of_rooms: Optional[int] = None
    score: Optional[float] = None


class MapDestination(BaseSchema):
    id: UUID
    name: str
    country: str


class PropertyMapItem(BaseSchema):
    """A pin on the properties map."""

    id: UUID
    name: str
    status: PropertyStatus
    latitude: float
    longitude: float
    destination: Optional[MapDestination] = None


class PropertyMapResponse(BaseSchema):
    properties: list[PropertyMapItem]
    total: int


# --- Rooms ---

class RoomCreate(BaseSchema):
    """Create a room."""

    name: str = Field(..., min_length=1, max_length=255)
    type: RoomType = RoomType.OTHER
    group_name: Optional[str] = Field(None, max_length=100)
    general_info: Optional[dict[str, Any]] = None
    view: Optional[str] = Field(None, max_length=255)
    equipment: Optional[dict[str, Any]] = None


class RoomUpdate(PartialUpdate):
    """Update a room."""

    not_nullable = ("name", "type", "position")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[RoomType] = None
    group_name: Optional[str] = Field(None, max_length=100)
    position: Optional[int] = Field(None, ge=0)
    general_info: Optional[dict[str, Any]] = None
    view: Optional[str] = Field(None, max_length=255)
    equipment: Optional[dict[str, Any]] = None


class RoomResponse(BaseSchema, IDMixin, TimestampMixin):
    """Room response."""

    property_id: UUID
    name: str
    type: RoomType
    group_name: Optional[str] = None
    position: int
    general_info: Optional[dict[str, Any]] = None
    view: Optional[str] = None
    equipment: Optional[dict[str, Any]] = None


# --- Photos ---

class PhotoUpdate(PartialUpdate):
    not_nullable = ("is_main", "position")

    caption: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    room_id: Optional[UUID] = None
    is_main: Optional[bool] = None
    position: Optional[int] = Field(None, ge=0)


class PhotoResponse(BaseSchema, IDMixin):
    """Photo response. `url` is the storage object path."""

    property_id: UUID
    room_id: Optional[UUID] = None
    url: str
    caption: Optional[str] = None
    category: Optional[str] = None
    position: int
    is_main: bool
    created_at: datetime
    download_url: Optional[str] = None


# --- Resources ---

class ResourceCreate(BaseSchema):
    """Create a link resource."""

    type: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=1024)


class ResourceResponse(BaseSchema, IDMixin):
    property_id: UUID
    type: str
    name: str
    url: str
    is_stored: bool
    uploaded_by: Optional[str] = None
    created_at: datetime
