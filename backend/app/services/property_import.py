"""Turn mapped CSV rows into properties and upsert them."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AuthenticatedUser
from app.models.destination import Destination
from app.models.enums import AuditAction, PropertyStatus
from app.models.property import Property
from app.services.audit import AuditService, snapshot
from app.services.import_validator import validate_property_data, validate_property_row

logger = logging.getLogger(__name__)

IMPORT_MODES = ("create", "update", "both")

# Import column -> Property attribute where the names differ
RENAMED_FIELDS = {
    "bedrooms": "number_of_rooms",
    "bathrooms": "number_of_bathrooms",
    "guest_capacity": "max_guests",
    "floor_area": "property_size",
}

INTEGER_FIELDS = {"number_of_rooms", "number_of_bathrooms", "max_guests", "adult_capacity", "furnished_floors"}
FLOAT_FIELDS = {"property_size", "plot_size", "latitude", "longitude", "event_deposit"}
BOOLEAN_FIELDS = {
    "concierge_service", "adjoining_house", "exclusivity", "iconic_collection",
    "online_reservation", "flexible_cancellation", "onboarding_fees", "elevator",
    "prm_suitability", "live_in_staff", "suitable_for_events",
}
LIST_FIELDS = {"categories", "event_types"}
TEXT_FIELDS = {
    "original_name", "license_number", "operated_by_agency", "address", "postcode",
    "city", "additional_details", "house_type", "architectural_type", "position",
    "segment", "accessibility_notes", "children_policy", "children_accessories",
    "animals_policy", "heating_system", "heating_comments", "ac_system", "ac_comments",
    "event_notes", "event_rules", "event_layout_link", "event_tariffs", "event_drive_link",
    "transport_services", "staff_services", "meal_services", "good_to_know",
    "listing_url", "marketing_notes", "reviews",
}

# Substring of a destination name -> country, used when creating destinations on the fly
KNOWN_PLACES = {
    "mallorca": "Spain", "palma": "Spain", "ibiza": "Spain", "barcelona": "Spain",
    "marbella": "Spain", "valencia": "Spain", "madrid": "Spain", "seville": "Spain",
    "cannes": "France", "nice": "France", "paris": "France",
    "monaco": "Monaco",
    "london": "United Kingdom", "edinburgh": "United Kingdom",
    "dublin": "Ireland",
    "rome": "Italy", "florence": "Italy", "venice": "Italy", "milan": "Italy",
    "athens": "Greece", "mykonos": "Greece", "santorini": "Greece", "crete": "Greece",
    "lisbon": "Portugal", "porto": "Portugal", "algarve": "Portugal",
}


def guess_country(destination_name: str) -> str:
    lowered = destination_name.lower()
    for place, country in KNOWN_PLACES.items():
        if place in lowered:
            return country
    return "Unknown"


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("yes", "true", "1")


def parse_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def parse_status(value: Any) -> PropertyStatus:
    try:
        return PropertyStatus(str(value).strip().upper()) if value else PropertyStatus.HIDDEN
    except ValueError:
        return PropertyStatus.HIDDEN


def transform_row(row: dict[str, Any]) -> dict[str, Any]:
    """Map an import row onto Property attributes. Absent columns are left out."""
    data: dict[str, Any] = {
        "name": str(row.get("name") or "").strip(),
        "status": parse_status(row.get("status")),
    }
    for key, value in row.items():
        if key in ("name", "status", "destination_id", "destination_name"):
            continue
        attr = RENAMED_FIELDS.get(key, key)
        if value is None or value == "":
            continue
        if attr in INTEGER_FIELDS:
            number = parse_number(value)
            data[attr] = int(number) if number is not None else None
        elif attr in FLOAT_FIELDS:
            data[attr] = parse_number(value)
        elif attr in BOOLEAN_FIELDS:
            data[attr] = parse_bool(value)
        elif attr in LIST_FIELDS:
            data[attr] = parse_list(value)
        elif attr in TEXT_FIELDS:
            data[attr] = str(value).strip()
    return data


@dataclass
class ImportResult:
    success: bool = True
    imported: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[dict[str, Any]] = field(default_factory=list)

    def fail(self, row: int, message: str) -> None:
        logger.warning("Import row %s failed: %s", row, message)
        self.errors.append({"row": row, "message": message})
        self.failed += 1


class PropertyImporter:
    """Bulk create/update properties from validated rows inside one transaction."""

    def __init__(self, db: AsyncSession, current_user: AuthenticatedUser, request: Optional[Request] = None):
        self.db = db
        self.current_user = current_user
        self.request = request
        self.audit = AuditService(db)

    async def _existing_properties(self) -> dict[str, UUID]:
        result = await self.db.execute(
            select(Property.id, Property.name).where(Property.org_id == self.current_user.org_id)
        )
        return {name.lower(): pid for pid, name in result.all()}

    async def _destinations(self) -> dict[str, UUID]:
        result = await self.db.execute(
            select(Destination.id, Destination.name).where(Destination.org_id == self.current_user.org_id)
        )
        return {name.lower(): did for did, name in result.all()}

    async def _create_destination(self, name: str) -> Destination:
        country = guess_country(name)
        destination = Destination(org_id=self.current_user.org_id, name=name, country=country)
        self.db.add(destination)
        await self.db.flush()
        await self.audit.record(
            self.current_user,
            AuditAction.CREATE,
            "destination",
            destination.id,
            {"name": name, "country": country, "auto_created": True, "created_during_import": True},
            self.request,
        )
        return destination

    async def run(self, rows: list[dict[str, Any]], mode: str = "create") -> ImportResult:
        if mode not in IMPORT_MODES:
            raise ValueError(f"Invalid import mode: {mode}")

        existing = await self._existing_properties()
        validation = validate_property_data(rows, existing.keys())
        row_checks = [validate_property_row(row, i + 2) for i, row in enumerate(rows)]
        if all(clean is None for clean, _ in row_checks):
            raise ValueError("No valid rows to import")

        destinations = await self._destinations()
        result = ImportResult(warnings=[w.to_dict() for w in validation.warnings])

        for index, raw in enumerate(rows):
            row_number = index + 2
            data = transform_row(raw)
            if not data["name"]:
                result.fail(row_number, "Property name is required")
                continue

            clean, issues = row_checks[index]
            if clean is None:
                result.fail(row_number, f"{issues[0].field}: {issues[0].message}")
                continue

            destination_id = raw.get("destination_id") or None
            destination_name = (raw.get("destination_name") or "").strip()
            if destination_name and not destination_id:
                destination_id = destinations.get(destination_name.lower())
                if destination_id is None:
                    destination = await self._create_destination(destination_name)
                    destination_id = destination.id
                    destinations[destination_name.lower()] = destination_id
                    result.warnings.append({
                        "row": row_number,
                        "field": "destination_name",
                        "message": f'Auto-created destination: "{destination_name}" ({destination.country})',
                    })
            if destination_id and not isinstance(destination_id, UUID):
                try:
                    destination_id = UUID(str(destination_id))
                except ValueError:
                    result.fail(row_number, f"Invalid destination id: {destination_id}")
                    continue
            if destination_id and destination_id not in destinations.values():
                result.fail(row_number, "Destination not found")
                continue

            existing_id = existing.get(data["name"].lower())
            if existing_id and mode == "create":
                result.fail(row_number, f'Property "{data["name"]}" already exists')
                continue
            if not existing_id and mode == "update":
                result.fail(row_number, f'Property "{data["name"]}" not found for update')
                continue

            if destination_id:
                data["destination_id"] = destination_id

            if existing_id:
                prop = await self.db.get(Property, existing_id)
                before = snapshot(prop)
                for attr, value in data.items():
                    setattr(prop, attr, value)
                await self.db.flush()
                await self.audit.log_update(
                    self.current_user, "property", prop.id, before, snapshot(prop), self.request
                )
                result.updated += 1
            else:
                prop = Property(org_id=self.current_user.org_id, **data)
                self.db.add(prop)
                await self.db.flush()
                existing[data["name"].lower()] = prop.id
                await self.audit.log_create(self.current_user, "property", prop, self.request)
                result.imported += 1

        logger.info(
            "Property import finished: %d created, %d updated, %d failed",
            result.imported, result.updated, result.failed,
        )
        return result
