"""Destinations router."""

import logging
import time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.pagination import ilike_any
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.destination import Destination
from app.models.property import Property
from app.schemas.destination import (
    DestinationCreate,
    DestinationUpdate,
    DestinationResponse,
    DestinationOption,
    DestinationListResponse,
)
from app.services.audit import AuditService, snapshot
from app.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/destinations", tags=["destinations"])


def _label(destination: Destination) -> str:
    return f"{destination.name}, {destination.region}" if destination.region else destination.name


async def _get_destination(db: AsyncSession, destination_id: UUID, org_id: UUID) -> Destination:
    result = await db.execute(
        select(Destination).where(
            Destination.id == destination_id,
            Destination.org_id == org_id,
        )
    )
    destination = result.scalar_one_or_none()
    if not destination:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination not found")
    return destination


def _stored_image(image_url: Optional[str]) -> bool:
    """Image URLs set by hand point elsewhere; only uploaded ones live in our bucket."""
    return bool(image_url) and image_url.startswith("destinations/")


async def _property_count(db: AsyncSession, destination_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Property.id)).where(Property.destination_id == destination_id)
    )
    return result.scalar() or 0


@router.get("", response_model=DestinationListResponse)
async def list_destinations(
    search: Optional[str] = None,
    country: Optional[str] = None,
    with_coordinates: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """List destinations, also grouped by country."""
    stmt = (
        select(Destination, func.count(Property.id).label("property_count"))
        .outerjoin(Property, Property.destination_id == Destination.id)
        .where(Destination.org_id == current_user.org_id)
        .group_by(Destination.id)
        .order_by(Destination.country, Destination.name)
    )
    if search:
        stmt = stmt.where(ilike_any(search, Destination.name, Destination.country, Destination.region))
    if country and country.lower() != "all":
        stmt = stmt.where(Destination.country == country)
    if with_coordinates:
        stmt = stmt.where(Destination.latitude.is_not(None), Destination.longitude.is_not(None))

    result = await db.execute(stmt)
    rows = result.all()

    destinations = []
    grouped: dict[str, list[DestinationOption]] = {}
    for destination, property_count in rows:
        response = DestinationResponse.model_validate(destination)
        response.property_count = property_count
        destinations.append(response)
        grouped.setdefault(destination.country, []).append(DestinationOption(
            id=destination.id,
            name=destination.name,
            region=destination.region,
            label=_label(destination),
            property_count=property_count,
        ))

    return DestinationListResponse(destinations=destinations, grouped=grouped, total=len(destinations))


@router.post("", response_model=DestinationResponse, status_code=status.HTTP_201_CREATED)
async def create_destination(
    data: DestinationCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Create a destination."""
    existing = await db.execute(
        select(Destination.id).where(
            Destination.org_id == current_user.org_id,
            func.lower(Destination.name) == data.name.lower(),
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A destination with this name already exists",
        )

    destination = Destination(org_id=current_user.org_id, **data.model_dump())
    db.add(destination)
    await db.flush()
    await AuditService(db).log_create(current_user, "destination", destination, request)

    await db.commit()
    await db.refresh(destination)

    return DestinationResponse.model_validate(destination)


@router.get("/{destination_id}", response_model=DestinationResponse)
async def get_destination(
    destination_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Get a destination by ID."""
    destination = await _get_destination(db, destination_id, current_user.org_id)
    response = DestinationResponse.model_validate(destination)
    response.property_count = await _property_count(db, destination.id)
    return response


@router.patch("/{destination_id}", response_model=DestinationResponse)
async def update_destination(
    destination_id: UUID,
    data: DestinationUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Update a destination."""
    destination = await _get_destination(db, destination_id, current_user.org_id)
    before = snapshot(destination)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(destination, field, value)

    await db.flush()
    await AuditService(db).log_update(
        current_user, "destination", destination.id, before, snapshot(destination), request
    )
    await db.commit()
    await db.refresh(destination)

    response = DestinationResponse.model_validate(destination)
    response.property_count = await _property_count(db, destination.id)
    return response


@router.delete("/{destination_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_destination(
    destination_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_DELETE)),
):
    """Delete a destination that no property uses."""
    destination = await _get_destination(db, destination_id, current_user.org_id)

    if await _property_count(db, destination.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete destination with linked properties",
        )

    await AuditService(db).log_delete(current_user, "destination", destination, request)
    await db.delete(destination)
    await db.commit()


@router.post("/{destination_id}/image", response_model=DestinationResponse)
async def upload_destination_image(
    destination_id: UUID,
    request: Request,
    file: UploadFile = File(...),
    alt_text: Optional[str] = Form(None, max_length=255),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Set the hero image, replacing any previous one."""
    destination = await _get_destination(db, destination_id, current_user.org_id)

    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    try:
        storage.validate_upload(
            mime_type, len(content), StorageService.DESTINATION_IMAGE_MIME_TYPES, settings.max_image_size_mb
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    object_path = storage.destination_image_path(
        destination.id, file.filename or "image", int(time.time() * 1000)
    )
    await storage.upload(object_path, content, mime_type)

    previous = destination.image_url
    before = snapshot(destination)
    try:
        destination.image_url = object_path
        destination.image_alt_text = alt_text or f"{destination.name} hero image"
        await db.flush()
        await AuditService(db).log_update(
            current_user, "destination", destination.id, before, snapshot(destination), request
        )
        await db.commit()
    except Exception:
        logger.warning("Removing %s after a failed database write", object_path)
        await db.rollback()
        await storage.delete(object_path)
        raise

    if _stored_image(previous):
        await storage.delete(previous)

    await db.refresh(destination)
    response = DestinationResponse.model_validate(destination)
    response.property_count = await _property_count(db, destination.id)
    return response


@router.delete("/{destination_id}/image", status_code=status.HTTP_204_NO_CONTENT)
async def delete_destination_image(
    destination_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    destination = await _get_destination(db, destination_id, current_user.org_id)
    if not destination.image_url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image to delete")

    object_path = destination.image_url
    before = snapshot(destination)
    destination.image_url = None
    destination.image_alt_text = None
    await db.flush()
    await AuditService(db).log_update(
        current_user, "destination", destination.id, before, snapshot(destination), request
    )
    await db.commit()

    if _stored_image(object_path):
        await storage.delete(object_path)
