"""Stay information sections of a property: surroundings, check-in, access, upkeep, network, safety."""

from typing import Literal, Optional

from pydantic import Field

from app.schemas.base import BaseSchema, PartialUpdate

TIME_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"

ServiceFrequency = Literal["none", "daily", "weekly", "biweekly", "monthly", "custom"]


class SurroundingsInfo(BaseSchema):
    filters: list[str] = Field(default_factory=list)
    custom_notes: Optional[str] = None


class SurroundingsUpdate(BaseSchema):
    """Replaces the surroundings; null clears them."""

    surroundings: Optional[SurroundingsInfo] = None


class CheckInDetailsUpdate(BaseSchema):
    check_in_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    check_out_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    check_in_person: Optional[str] = Field(None, max_length=255)


class AccessInfo(BaseSchema):
    airports: list[str] = Field(default_factory=list)
    train_stations: list[str] = Field(default_factory=list)
    cars: list[str] = Field(default_factory=list)
    road_type: Optional[Literal["asphalt", "winding", "dirt"]] = None
    special_attention: Optional[bool] = None
    special_attention_note: Optional[str] = None
    key_count: Optional[int] = Field(None, ge=0)
    beeper_count: Optional[int] = Field(None, ge=0)


class AccessInfoUpdate(BaseSchema):
    access: AccessInfo


class ServiceSchedule(BaseSchema):
    frequency: ServiceFrequency
    custom_schedule: Optional[str] = None
    arrival_time: Optional[str] = None


class OptionalService(ServiceSchedule):
    enabled: Optional[bool] = None


class PoolMaintenance(OptionalService):
    includes_linen: Optional[bool] = None


class MaintenanceSchedules(BaseSchema):
    linen_change: Optional[ServiceSchedule] = None
    towel_change: Optional[ServiceSchedule] = None
    gardening_service: Optional[OptionalService] = None
    pool_maintenance: Optional[PoolMaintenance] = None


class MaintenanceSchedulesUpdate(BaseSchema):
    maintenance: MaintenanceSchedules


class NetworkDetails(BaseSchema):
    fiber_optic: Optional[bool] = None
    router_accessible: Optional[bool] = None
    router_location: Optional[str] = None
    supplier: Optional[str] = None
    wired_internet: Optional[bool] = None
    comment: Optional[str] = None


class NetworkInfoUpdate(PartialUpdate):
    """Omitted fields keep their value; `network` replaces that section when given."""

    not_nullable = ("wifi_in_all_rooms",)

    wifi_name: Optional[str] = Field(None, max_length=100)
    wifi_password: Optional[str] = Field(None, max_length=100)
    wifi_in_all_rooms: Optional[bool] = None
    wifi_speed: Optional[str] = Field(None, max_length=50)
    mobile_network_coverage: Optional[Literal["good", "average", "poor", "none"]] = None
    network: Optional[NetworkDetails] = None


class NearestHospital(BaseSchema):
    name: Optional[str] = None
    country: Optional[str] = None
    distance: Optional[str] = None


class SecurityDetails(BaseSchema):
    surveillance: list[str] = Field(default_factory=list)
    nearest_hospital: Optional[NearestHospital] = None
    first_aid_location: Optional[str] = None
    first_aid_kit: Optional[bool] = None
    fire_extinguisher_location: Optional[str] = None
    smoke_detector_location: Optional[str] = None
    specific_measures: Optional[str] = None


class SecurityInfoUpdate(PartialUpdate):
    not_nullable = ("has_fire_extinguisher", "has_fire_alarm", "electric_meter_accessible")

    has_fire_extinguisher: Optional[bool] = None
    has_fire_alarm: Optional[bool] = None
    electric_meter_accessible: Optional[bool] = None
    electric_meter_location: Optional[str] = None
    security: Optional[SecurityDetails] = None


class VillaBookCommentUpdate(BaseSchema):
    """One language of the villa book welcome text."""

    language: str = Field(..., min_length=2, max_length=5)
    content: str
