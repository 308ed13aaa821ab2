"""Enumeration types for the back-office domain model."""

from enum import Enum


class PropertyStatus(str, Enum):
    """Publication state of a property."""
    PUBLISHED = "PUBLISHED"
    HIDDEN = "HIDDEN"
    ONBOARDING = "ONBOARDING"
    OFFBOARDED = "OFFBOARDED"


class LicenseType(str, Enum):
    NOT_APPLICABLE = "NOT_APPLICABLE"
    TYPE_1 = "TYPE_1"
    TYPE_2 = "TYPE_2"


class ConciergeServiceOffer(str, Enum):
    ESSENTIAL = "ESSENTIAL"
    PREMIUM = "PREMIUM"
    LUXURY = "LUXURY"


class RoomType(str, Enum):
    """Kind of room inside a property."""
    BEDROOM = "BEDROOM"
    BATHROOM = "BATHROOM"
    KITCHEN = "KITCHEN"
    LIVING_ROOM = "LIVING_ROOM"
    DINING_ROOM = "DINING_ROOM"
    OFFICE = "OFFICE"
    OUTDOOR = "OUTDOOR"
    WELLNESS = "WELLNESS"
    OTHER = "OTHER"


class BookingType(str, Enum):
    """Nature of a calendar block."""
    CONFIRMED = "CONFIRMED"
    TENTATIVE = "TENTATIVE"
    CONTRACT = "CONTRACT"
    MAINTENANCE = "MAINTENANCE"
    BLOCKED = "BLOCKED"
    OWNER = "OWNER"
    OWNER_STAY = "OWNER_STAY"


# Booking types that carry a guest and therefore need guest name/email
GUEST_BOOKING_TYPES = frozenset({BookingType.CONFIRMED, BookingType.TENTATIVE, BookingType.CONTRACT})

# Owner blocks are the only bookings audited on create/update
OWNER_BOOKING_TYPES = frozenset({BookingType.OWNER, BookingType.OWNER_STAY})


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class BookingSource(str, Enum):
    MANUAL = "MANUAL"
    IMPORT = "IMPORT"
    API = "API"


class AvailabilityRequestStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class RequestUrgency(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ContactCategory(str, Enum):
    CLIENT = "CLIENT"
    OWNER = "OWNER"
    PROVIDER = "PROVIDER"
    ORGANIZATION = "ORGANIZATION"
    OTHER = "OTHER"


class ContactPropertyRelationship(str, Enum):
    """How a contact relates to a property."""
    OWNER = "OWNER"
    RENTER = "RENTER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    EMERGENCY = "EMERGENCY"
    MAINTENANCE = "MAINTENANCE"
    AGENCY = "AGENCY"
    OTHER = "OTHER"


class LegalDocumentCategory(str, Enum):
    PROPERTY_DEED = "PROPERTY_DEED"
    LEASE_AGREEMENT = "LEASE_AGREEMENT"
    VENDOR_CONTRACT = "VENDOR_CONTRACT"
    INSURANCE_POLICY = "INSURANCE_POLICY"
    PERMIT_LICENSE = "PERMIT_LICENSE"
    TAX_DOCUMENT = "TAX_DOCUMENT"
    COMPLIANCE_CERTIFICATE = "COMPLIANCE_CERTIFICATE"
    OTHER = "OTHER"


# Reads of these categories are audited
SENSITIVE_DOCUMENT_CATEGORIES = frozenset({
    LegalDocumentCategory.TAX_DOCUMENT,
    LegalDocumentCategory.VENDOR_CONTRACT,
})


class LegalDocumentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    PENDING_RENEWAL = "PENDING_RENEWAL"
    ARCHIVED = "ARCHIVED"


class EquipmentRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ORDERED = "ORDERED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class EquipmentRequestPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class BookingCondition(str, Enum):
    """Arrival/departure pattern a minimum stay applies to."""
    PER_NIGHT = "PER_NIGHT"
    WEEKLY_SATURDAY_TO_SATURDAY = "WEEKLY_SATURDAY_TO_SATURDAY"
    WEEKLY_SUNDAY_TO_SUNDAY = "WEEKLY_SUNDAY_TO_SUNDAY"
    WEEKLY_MONDAY_TO_MONDAY = "WEEKLY_MONDAY_TO_MONDAY"


class OperationalCostType(str, Enum):
    HOUSEKEEPING = "HOUSEKEEPING"
    HOUSEKEEPING_AT_CHECKOUT = "HOUSEKEEPING_AT_CHECKOUT"
    LINEN_CHANGE = "LINEN_CHANGE"
    OPERATIONAL_PACKAGE = "OPERATIONAL_PACKAGE"


class PriceType(str, Enum):
    PER_STAY = "PER_STAY"
    PER_WEEK = "PER_WEEK"
    PER_DAY = "PER_DAY"
    FIXED = "FIXED"


class AuditAction(str, Enum):
    """Audit actions with a fixed name.

    Equipment request status changes are logged as
    UPDATE_EQUIPMENT_REQUEST_STATUS_<STATUS>.
    """
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BULK_DELETE = "bulk_delete"
    IMPORT = "import"
    EXPORT = "export"
    LINK = "link"
    UNLINK = "unlink"

    CREATE_EQUIPMENT_REQUEST = "CREATE_EQUIPMENT_REQUEST"
    UPDATE_EQUIPMENT_REQUEST = "UPDATE_EQUIPMENT_REQUEST"
    DELETE_EQUIPMENT_REQUEST = "DELETE_EQUIPMENT_REQUEST"

    CREATE_LEGAL_DOCUMENT = "CREATE_LEGAL_DOCUMENT"
    UPDATE_LEGAL_DOCUMENT = "UPDATE_LEGAL_DOCUMENT"
    VIEW_LEGAL_DOCUMENT = "VIEW_LEGAL_DOCUMENT"
    UPLOAD_LEGAL_DOCUMENT_VERSION = "UPLOAD_LEGAL_DOCUMENT_VERSION"
    DELETE_LEGAL_DOCUMENT = "DELETE_LEGAL_DOCUMENT"
    BULK_DELETE_LEGAL_DOCUMENTS = "BULK_DELETE_LEGAL_DOCUMENTS"

    CREATE_PRICING = "CREATE"
    UPDATE_PRICING = "UPDATE"
    DELETE_PRICING = "DELETE"
    MIGRATE_PRICING = "MIGRATE"
