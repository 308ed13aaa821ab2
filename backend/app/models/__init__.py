"""SQLAlchemy models for the back office."""

from app.models.user import User
from app.models.org import Organization, OrgMembership
from app.models.destination import Destination
from app.models.property import Property, Room, Photo, Resource
from app.models.booking import Booking, AvailabilityRequest
from app.models.contact import Contact, ContactProperty
from app.models.legal_document import LegalDocument, LegalDocumentVersion
from app.models.equipment_request import EquipmentRequest
from app.models.pricing import PropertyPricing, PriceRange, MinimumStayRule, OperationalCost
from app.models.audit import AuditLog, SensitiveDataAccess
from app.models.activity_provider import ActivityProvider, PropertyActivityProvider

__all__ = [
    "User",
    "Organization",
    "OrgMembership",
    "Destination",
    "Property",
    "Room",
    "Photo",
    "Resource",
    "Booking",
    "AvailabilityRequest",
    "Contact",
    "ContactProperty",
    "LegalDocument",
    "LegalDocumentVersion",
    "EquipmentRequest",
    "PropertyPricing",
    "PriceRange",
    "MinimumStayRule",
    "OperationalCost",
    "AuditLog",
    "SensitiveDataAccess",
    "ActivityProvider",
    "PropertyActivityProvider",
]
