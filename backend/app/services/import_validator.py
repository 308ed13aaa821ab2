"""Row validation for property CSV imports."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class PropertyImportRow(BaseModel):
    """One mapped CSV row. Values arrive as strings and are coerced leniently."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1)
    destination_id: Optional[str] = None
    destination_name: Optional[str] = None
    original_name: Optional[str] = None
    status: Optional[str] = None

    bathrooms: Optional[float] = Field(None, ge=0)
    floor_area: Optional[float] = Field(None, ge=0)
    plot_size: Optional[float] = Field(None, ge=0)
    furnished_floors: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[float] = Field(None, ge=0)
    guest_capacity: Optional[float] = Field(None, ge=0)
    adult_capacity: Optional[float] = Field(None, ge=0)
    event_deposit: Optional[float] = Field(None, ge=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    license_type: Optional[str] = None
    license_number: Optional[str] = None
    concierge_service: Optional[str] = None
    concierge_service_offer: Optional[str] = None
    categories: Optional[str] = None
    operated_by_agency: Optional[str] = None
    address: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    additional_details: Optional[str] = None
    house_type: Optional[str] = None
    architectural_type: Optional[str] = None
    adjoining_house: Optional[str] = None
    exclusivity: Optional[str] = None
    position: Optional[str] = None
    segment: Optional[str] = None
    iconic_collection: Optional[str] = None
    online_reservation: Optional[str] = None
    flexible_cancellation: Optional[str] = None
    onboarding_fees: Optional[str] = None
    elevator: Optional[str] = None
    prm_suitability: Optional[str] = None
    accessibility_notes: Optional[str] = None
    children_policy: Optional[str] = None
    children_accessories: Optional[str] = None
    animals_policy: Optional[str] = None
    live_in_staff: Optional[str] = None
    heating_system: Optional[str] = None
    heating_comments: Optional[str] = None
    ac_system: Optional[str] = None
    ac_comments: Optional[str] = None
    suitable_for_events: Optional[str] = None
    event_types: Optional[str] = None
    event_notes: Optional[str] = None
    event_rules: Optional[str] = None
    event_layout_link: Optional[str] = None
    event_tariffs: Optional[str] = None
    event_drive_link: Optional[str] = None
    transport_services: Optional[str] = None
    staff_services: Optional[str] = None
    meal_services: Optional[str] = None
    good_to_know: Optional[str] = None
    listing_url: Optional[str] = None
    marketing_notes: Optional[str] = None
    reviews: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


@dataclass
class RowIssue:
    row: int
    field: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "field": self.field, "message": self.message}


@dataclass
class ValidationReport:
    valid_rows: list[dict[str, Any]] = field(default_factory=list)
    errors: list[RowIssue] = field(default_factory=list)
    warnings: list[RowIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def required_fields() -> list[str]:
    return ["name"]


def all_fields() -> list[str]:
    return list(PropertyImportRow.model_fields.keys())


def validate_property_row(row: dict[str, Any], row_number: int) -> tuple[Optional[dict[str, Any]], list[RowIssue]]:
    """Validate one row; returns (clean data or None, issues)."""
    try:
        parsed = PropertyImportRow.model_validate(row)
    except ValidationError as e:
        issues = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err.get("loc", ())) or "row"
            issues.append(RowIssue(row_number, loc, err.get("msg", "Invalid value")))
        return None, issues
    return parsed.model_dump(), []


def validate_property_data(
    rows: list[dict[str, Any]],
    existing_names: Iterable[str] = (),
) -> ValidationReport:
    """Validate every row and cross-check names against the file and the database."""
    report = ValidationReport()
    existing = {name.lower() for name in existing_names if name}
    seen: set[str] = set()

    for index, row in enumerate(rows):
        row_number = index + 2
        data, issues = validate_property_row(row, row_number)
        if data is None:
            report.errors.extend(issues)
            continue

        key = data["name"].lower()
        if key in seen:
            report.errors.append(
                RowIssue(row_number, "name", "Duplicate property name within import file")
            )
            continue
        seen.add(key)

        if key in existing:
            report.warnings.append(
                RowIssue(row_number, "name", "Property with this name already exists")
            )

        guests = data.get("guest_capacity")
        adults = data.get("adult_capacity")
        if guests is not None and adults is not None and adults > guests:
            report.warnings.append(
                RowIssue(row_number, "adult_capacity", "Adult capacity exceeds guest capacity")
            )

        report.valid_rows.append(data)

    return report
