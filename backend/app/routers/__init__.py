"""API routers for the estates back office."""

from app.routers.auth import router as auth_router
from app.routers.org import router as org_router
from app.routers.destinations import router as destinations_router
from app.routers.properties import router as properties_router
from app.routers.property_assets import router as property_assets_router
from app.routers.property_stay import router as property_stay_router
from app.routers.bookings import router as bookings_router
from app.routers.availability_requests import router as availability_requests_router
from app.routers.contacts import router as contacts_router
from app.routers.legal_documents import router as legal_documents_router
from app.routers.equipment_requests import router as equipment_requests_router
from app.routers.pricing import router as pricing_router
from app.routers.activity_providers import router as activity_providers_router
from app.routers.imports import router as imports_router
from app.routers.audit_logs import router as audit_logs_router

__all__ = [
    "auth_router",
    "org_router",
    "destinations_router",
    "properties_router",
    "property_assets_router",
    "property_stay_router",
    "bookings_router",
    "availability_requests_router",
    "contacts_router",
    "legal_documents_router",
    "equipment_requests_router",
    "pricing_router",
    "activity_providers_router",
    "imports_router",
    "audit_logs_router",
]
