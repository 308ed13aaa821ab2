"""Fuzzy mapping of CSV headers onto property import fields.

Exact synonym matches win (confidence 1). Remaining fields are matched by
Levenshtein similarity, keeping only candidates strictly above 0.6. Every CSV
header is assigned to at most one field.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

SIMILARITY_THRESHOLD = 0.6

# Known spellings of each import field, compared after normalization
FIELD_VARIATIONS: dict[str, list[str]] = {
    "name": ["name", "property_name", "propertyname", "title", "property"],
    "original_name": ["originalname", "original_name", "native_name", "local_name"],
    "status": ["status", "state", "visibility", "published"],
    "destination_name": ["destination", "destinationname", "location", "area", "region"],
    "destination_id": ["destinationid", "destination_id", "location_id"],
    "bathrooms": ["bathrooms", "bathroom_count", "bathroomcount", "baths"],
    "license_type": ["licensetype", "license_type", "licence_type", "permit_type"],
    "license_number": ["licensenumber", "license_number", "licence_number", "permit_number"],
    "concierge_service": ["conciergeservice", "concierge_service", "concierge", "butler_service"],
    "categories": ["categories", "category", "tags", "types"],
    "operated_by_agency": ["operatedbyagency", "operated_by_agency", "agency", "management_company"],
    "address": ["address", "street", "street_address", "location"],
    "postcode": ["postcode", "postalcode", "postal_code", "zip", "zipcode", "zip_code"],
    "city": ["city", "town", "municipality"],
    "additional_details": ["additionaldetails", "additional_details", "notes", "comments"],
    "latitude": ["latitude", "lat", "gps_lat"],
    "longitude": ["longitude", "lng", "long", "gps_lng"],
    "house_type": ["housetype", "house_type", "property_type", "type"],
    "architectural_type": ["architecturaltype", "architectural_type", "style", "architecture"],
    "floor_area": ["floorarea", "floor_area", "size", "sqm", "square_meters"],
    "plot_size": ["plotsize", "plot_size", "land_size", "lot_size"],
    "furnished_floors": ["furnishedfloors", "furnished_floors", "floors"],
    "bedrooms": ["bedrooms", "bedroom_count", "beds", "num_bedrooms"],
    "guest_capacity": ["guestcapacity", "guest_capacity", "max_guests", "capacity", "sleeps"],
    "adult_capacity": ["adultcapacity", "adult_capacity", "max_adults", "adults"],
    "adjoining_house": ["adjoininghouse", "adjoining_house", "attached", "semi_detached"],
    "exclusivity": ["exclusivity", "exclusive", "private"],
    "position": ["position", "location_type", "setting"],
    "segment": ["segment", "market_segment", "category"],
    "iconic_collection": ["iconiccollection", "iconic_collection", "premium", "signature"],
    "online_reservation": ["onlinereservation", "online_reservation", "online_booking", "instant_booking"],
    "flexible_cancellation": ["flexiblecancellation", "flexible_cancellation", "free_cancellation"],
    "onboarding_fees": ["onboardingfees", "onboarding_fees", "setup_fees"],
    "elevator": ["elevator", "lift", "has_elevator", "has_lift"],
    "prm_suitability": ["prmsuitability", "prm_suitability", "accessible", "disability_access"],
    "accessibility_notes": ["accessibilitynotes", "accessibility_notes", "disability_notes"],
    "children_policy": ["childrenpolicy", "children_policy", "kids_policy", "child_policy"],
    "children_accessories": ["childrenaccessories", "children_accessories", "kids_equipment"],
    "animals_policy": ["animalspolicy", "animals_policy", "pet_policy", "pets"],
    "live_in_staff": ["liveinstaff", "live_in_staff", "resident_staff", "onsite_staff"],
    "heating_system": ["heatingsystem", "heating_system", "heating", "heat"],
    "heating_comments": ["heatingcomments", "heating_comments", "heating_notes"],
    "ac_system": ["acsystem", "ac_system", "air_conditioning", "aircon", "ac"],
    "ac_comments": ["accomments", "ac_comments", "ac_notes", "aircon_notes"],
    "suitable_for_events": ["suitableforevents", "suitable_for_events", "events_allowed", "event_venue"],
    "event_types": ["eventtypes", "event_types", "allowed_events"],
    "event_notes": ["eventnotes", "event_notes", "event_comments"],
    "event_rules": ["eventrules", "event_rules", "event_regulations"],
    "event_layout_link": ["eventlayoutlink", "event_layout_link", "event_layout"],
    "event_tariffs": ["eventtariffs", "event_tariffs", "event_pricing", "event_rates"],
    "event_deposit": ["eventdeposit", "event_deposit", "event_security"],
    "event_drive_link": ["eventdrivelink", "event_drive_link", "event_files"],
    "transport_services": ["transportservices", "transport_services", "transportation"],
    "staff_services": ["staffservices", "staff_services", "services"],
    "meal_services": ["mealservices", "meal_services", "catering", "dining"],
    "good_to_know": ["goodtoknow", "good_to_know", "important_info", "notes"],
    "listing_url": ["listingurl", "listing_url", "url", "website", "link"],
    "marketing_notes": ["marketingnotes", "marketing_notes", "marketing_comments"],
    "reviews": ["reviews", "ratings", "feedback"],
}


@dataclass
class FieldMapping:
    csv_field: str
    property_field: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "csv_field": self.csv_field,
            "property_field": self.property_field,
            "confidence": self.confidence,
        }


@dataclass
class MappingResult:
    mappings: list[FieldMapping] = field(default_factory=list)
    unmapped_csv_fields: list[str] = field(default_factory=list)
    unmapped_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mappings": [m.to_dict() for m in self.mappings],
            "unmapped_csv_fields": self.unmapped_csv_fields,
            "unmapped_fields": self.unmapped_fields,
        }


def normalize_field_name(name: str) -> str:
    """Lowercase and keep only [a-z0-9]."""
    lowered = re.sub(r"[\s\-_]", "", name.lower())
    return re.sub(r"[^a-z0-9]", "", lowered)


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost insert/delete/substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j], current[j - 1], previous[j - 1]) + 1)
        previous = current
    return previous[-1]


def calculate_similarity(first: str, second: str) -> float:
    """Similarity in [0, 1] between two field names."""
    s1 = normalize_field_name(first)
    s2 = normalize_field_name(second)

    # Names with no letters or digits match nothing
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return 0.8

    max_length = max(len(s1), len(s2))
    return max(0.0, 1 - levenshtein_distance(s1, s2) / max_length)


def _exact_match(field_name: str, headers: Iterable[str], taken: set[str]) -> Optional[str]:
    variations = {normalize_field_name(v) for v in FIELD_VARIATIONS.get(field_name, [field_name])}
    variations.add(normalize_field_name(field_name))
    for header in headers:
        if header not in taken and normalize_field_name(header) in variations:
            return header
    return None


def auto_map_fields(csv_headers: list[str], fields: list[str]) -> MappingResult:
    """Map CSV headers onto import fields, best matches first."""
    mappings: list[FieldMapping] = []
    mapped_headers: set[str] = set()
    mapped_fields: set[str] = set()

    # Pass 1: synonym table
    for field_name in fields:
        header = _exact_match(field_name, csv_headers, mapped_headers)
        if header is not None:
            mappings.append(FieldMapping(header, field_name, 1.0))
            mapped_headers.add(header)
            mapped_fields.add(field_name)

    # Pass 2: fuzzy, greedy in field order
    for field_name in fields:
        if field_name in mapped_fields:
            continue
        best_header: Optional[str] = None
        best_score = 0.0
        for header in csv_headers:
            if header in mapped_headers:
                continue
            score = calculate_similarity(header, field_name)
            if score > SIMILARITY_THRESHOLD and score > best_score:
                best_header, best_score = header, score
        if best_header is not None:
            mappings.append(FieldMapping(best_header, field_name, best_score))
            mapped_headers.add(best_header)
            mapped_fields.add(field_name)

    mappings.sort(key=lambda m: m.confidence, reverse=True)
    return MappingResult(
        mappings=mappings,
        unmapped_csv_fields=[h for h in csv_headers if h not in mapped_headers],
        unmapped_fields=[f for f in fields if f not in mapped_fields],
    )


def apply_field_mappings(rows: list[dict[str, Any]], mappings: list[FieldMapping]) -> list[dict[str, Any]]:
    """Rename row keys according to the mappings, dropping unmapped columns."""
    mapped_rows = []
    for row in rows:
        mapped = {}
        for mapping in mappings:
            if mapping.csv_field in row:
                mapped[mapping.property_field] = row[mapping.csv_field]
        mapped_rows.append(mapped)
    return mapped_rows


def suggest_fields(
    csv_headers: Iterable[str],
    fields: Iterable[str],
    limit: int = 3,
    threshold: float = 0.3,
) -> dict[str, list[str]]:
    """Closest candidate fields for each header, for headers the user maps by hand."""
    fields = list(fields)
    suggestions: dict[str, list[str]] = {}
    for header in csv_headers:
        scored = sorted(
            ((calculate_similarity(header, f), f) for f in fields),
            key=lambda pair: pair[0],
            reverse=True,
        )
        suggestions[header] = [f for score, f in scored[:limit] if score > threshold]
    return suggestions
