"""Estates Back Office - FastAPI Application Entry Point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.env_validation import validate_environment
from app.core.errors import register_exception_handlers
from app.routers import (
    auth_router,
    org_router,
    destinations_router,
    properties_router,
    property_assets_router,
    property_stay_router,
    bookings_router,
    availability_requests_router,
    contacts_router,
    legal_documents_router,
    equipment_requests_router,
    pricing_router,
    activity_providers_router,
    imports_router,
    audit_logs_router,
)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Hard-fails (exit 1) if required configuration is missing
    validate_environment()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Back office for a luxury villa rental agency: properties, calendars, contacts, legal documents, pricing and equipment requests.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# In production, wildcard (*) is blocked by env_validation.py
allowed_origins = settings.cors_origins

print(f"🔒 CORS configured with origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# API v1 routers
app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(org_router, prefix=settings.api_v1_prefix)
app.include_router(destinations_router, prefix=settings.api_v1_prefix)
app.include_router(properties_router, prefix=settings.api_v1_prefix)
app.include_router(property_assets_router, prefix=settings.api_v1_prefix)
app.include_router(property_stay_router, prefix=settings.api_v1_prefix)
app.include_router(bookings_router, prefix=settings.api_v1_prefix)
app.include_router(availability_requests_router, prefix=settings.api_v1_prefix)
app.include_router(contacts_router, prefix=settings.api_v1_prefix)
app.include_router(legal_documents_router, prefix=settings.api_v1_prefix)
app.include_router(equipment_requests_router, prefix=settings.api_v1_prefix)
app.include_router(pricing_router, prefix=settings.api_v1_prefix)
app.include_router(activity_providers_router, prefix=settings.api_v1_prefix)
app.include_router(imports_router, prefix=settings.api_v1_prefix)
app.include_router(audit_logs_router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
