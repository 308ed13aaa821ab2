"""Services for the estates back office."""

from app.services.storage import StorageService, get_storage_service
from app.services.audit import AuditService
from app.services.property_import import PropertyImporter
from app.services.availability_import import AvailabilityImporter

__all__ = [
    "StorageService",
    "get_storage_service",
    "AuditService",
    "PropertyImporter",
    "AvailabilityImporter",
]
