"""Rooms, photos and resources attached to a property."""

import logging
import time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.enums import AuditAction
from app.models.property import Photo, Resource, Room
from app.routers.properties import get_org_property
from app.schemas.base import IdList
from app.schemas.property import (
    PhotoResponse,
    PhotoUpdate,
    ResourceCreate,
    ResourceResponse,
    RoomCreate,
    RoomResponse,
    RoomUpdate,
)
from app.services.audit import AuditService, snapshot
from app.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/properties/{property_id}", tags=["properties"])


async def _get_child(db: AsyncSession, model, child_id: UUID, property_id: UUID, label: str):
    result = await db.execute(
        select(model).where(model.id == child_id, model.property_id == property_id)
    )
    obj = result.scalar_one_or_none()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj


async def _reorder(db: AsyncSession, model, property_id: UUID, ids: list[UUID]) -> list:
    result = await db.execute(select(model).where(model.property_id == property_id))
    by_id = {obj.id: obj for obj in result.scalars().all()}

    unknown = [str(i) for i in ids if i not in by_id]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown ids: {', '.join(unknown)}",
        )

    for position, obj_id in enumerate(ids):
        by_id[obj_id].position = position
    return sorted(by_id.values(), key=lambda obj: obj.position)


# --- Rooms ---

@router.get("/rooms", response_model=list[RoomResponse])
async def list_rooms(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """List rooms by position."""
    await get_org_property(db, property_id, current_user.org_id)
    result = await db.execute(
        select(Room).where(Room.property_id == property_id).order_by(Room.position, Room.created_at)
    )
    return [RoomResponse.model_validate(r) for r in result.scalars().all()]


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    property_id: UUID,
    data: RoomCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Create a room at the end of the list."""
    await get_org_property(db, property_id, current_user.org_id)

    result = await db.execute(
        select(func.max(Room.position)).where(Room.property_id == property_id)
    )
    last_position = result.scalar()

    room = Room(
        property_id=property_id,
        position=0 if last_position is None else last_position + 1,
        **data.model_dump(),
    )
    db.add(room)
    await db.flush()
    await AuditService(db).log_create(current_user, "room", room, request)
    await db.commit()
    await db.refresh(room)

    return RoomResponse.model_validate(room)


@router.put("/rooms/reorder", response_model=list[RoomResponse])
async def reorder_rooms(
    property_id: UUID,
    data: IdList,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Set room positions from the order of `ids`."""
    await get_org_property(db, property_id, current_user.org_id)
    rooms = await _reorder(db, Room, property_id, data.ids)

    await AuditService(db).record(
        current_user, AuditAction.UPDATE, "room", property_id,
        {"reordered": [str(i) for i in data.ids]}, request,
    )
    await db.commit()
    return [RoomResponse.model_validate(r) for r in rooms]


@router.patch("/rooms/{room_id}", response_model=RoomResponse)
async def update_room(
    property_id: UUID,
    room_id: UUID,
    data: RoomUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Update a room."""
    await get_org_property(db, property_id, current_user.org_id)
    room = await _get_child(db, Room, room_id, property_id, "Room")
    before = snapshot(room)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(room, field, value)

    await db.flush()
    await AuditService(db).log_update(current_user, "room", room.id, before, snapshot(room), request)
    await db.commit()
    await db.refresh(room)

    return RoomResponse.model_validate(room)


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    property_id: UUID,
    room_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    await get_org_property(db, property_id, current_user.org_id)
    room = await _get_child(db, Room, room_id, property_id, "Room")

    # Photos keep their property and lose the room
    await db.execute(update(Photo).where(Photo.room_id == room.id).values(room_id=None))
    await AuditService(db).log_delete(current_user, "room", room, request)
    await db.delete(room)
    await db.commit()


# --- Photos ---

async def _photo_response(photo: Photo, storage: StorageService) -> PhotoResponse:
    response = PhotoResponse.model_validate(photo)
    response.download_url = await storage.get_download_url(photo.url, settings.presign_ttl_seconds)
    return response


@router.get("/photos", response_model=list[PhotoResponse])
async def list_photos(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """List photos by position, each with a short-lived download URL."""
    await get_org_property(db, property_id, current_user.org_id)
    result = await db.execute(
        select(Photo).where(Photo.property_id == property_id).order_by(Photo.position, Photo.created_at)
    )
    return [await _photo_response(p, storage) for p in result.scalars().all()]


@router.post("/photos", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    property_id: UUID,
    request: Request,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    room_id: Optional[UUID] = Form(None),
    is_main: bool = Form(False),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Upload an image and attach it to the property."""
    await get_org_property(db, property_id, current_user.org_id)
    if room_id:
        await _get_child(db, Room, room_id, property_id, "Room")

    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    try:
        storage.validate_upload(
            mime_type, len(content), StorageService.IMAGE_MIME_TYPES, settings.max_upload_size_mb
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    object_path = storage.photo_path(property_id, file.filename or "photo")
    await storage.upload(object_path, content, mime_type)

    result = await db.execute(
        select(func.max(Photo.position)).where(Photo.property_id == property_id)
    )
    last_position = result.scalar()

    if is_main:
        await db.execute(
            update(Photo).where(Photo.property_id == property_id).values(is_main=False)
        )

    photo = Photo(
        property_id=property_id,
        room_id=room_id,
        url=object_path,
        caption=caption,
        category=category,
        position=0 if last_position is None else last_position + 1,
        is_main=is_main,
    )
    db.add(photo)
    await db.flush()
    await AuditService(db).log_create(current_user, "photo", photo, request)
    await db.commit()
    await db.refresh(photo)

    logger.info("Uploaded photo %s for property %s", photo.id, property_id)
    return await _photo_response(photo, storage)


@router.put("/photos/reorder", response_model=list[PhotoResponse])
async def reorder_photos(
    property_id: UUID,
    data: IdList,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Set photo positions from the order of `ids`."""
    await get_org_property(db, property_id, current_user.org_id)
    photos = await _reorder(db, Photo, property_id, data.ids)

    await AuditService(db).record(
        current_user, AuditAction.UPDATE, "photo", property_id,
        {"reordered": [str(i) for i in data.ids]}, request,
    )
    await db.commit()
    return [await _photo_response(p, storage) for p in photos]


@router.patch("/photos/{photo_id}", response_model=PhotoResponse)
async def update_photo(
    property_id: UUID,
    photo_id: UUID,
    data: PhotoUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Update a photo. Making it the main photo clears the flag on the others."""
    await get_org_property(db, property_id, current_user.org_id)
    photo = await _get_child(db, Photo, photo_id, property_id, "Photo")
    before = snapshot(photo)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("room_id"):
        await _get_child(db, Room, update_data["room_id"], property_id, "Room")
    if update_data.get("is_main"):
        await db.execute(
            update(Photo)
            .where(Photo.property_id == property_id, Photo.id != photo.id)
            .values(is_main=False)
        )
    for field, value in update_data.items():
        setattr(photo, field, value)

    await db.flush()
    await AuditService(db).log_update(current_user, "photo", photo.id, before, snapshot(photo), request)
    await db.commit()
    await db.refresh(photo)

    return await _photo_response(photo, storage)


@router.delete("/photos/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    property_id: UUID,
    photo_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Delete a photo and its stored object."""
    await get_org_property(db, property_id, current_user.org_id)
    photo = await _get_child(db, Photo, photo_id, property_id, "Photo")

    await AuditService(db).log_delete(current_user, "photo", photo, request)
    await db.delete(photo)
    await db.commit()

    await storage.delete(photo.url)


# --- Resources ---

@router.get("/resources", response_model=list[ResourceResponse])
async def list_resources(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    await get_org_property(db, property_id, current_user.org_id)
    result = await db.execute(
        select(Resource).where(Resource.property_id == property_id).order_by(Resource.created_at.desc())
    )
    return [ResourceResponse.model_validate(r) for r in result.scalars().all()]


async def _save_resource(
    db: AsyncSession,
    resource: Resource,
    current_user: AuthenticatedUser,
    request: Request,
) -> ResourceResponse:
    db.add(resource)
    await db.flush()
    await AuditService(db).log_create(current_user, "resource", resource, request)
    await db.commit()
    await db.refresh(resource)
    return ResourceResponse.model_validate(resource)


@router.post("/resources", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_link_resource(
    property_id: UUID,
    data: ResourceCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Attach an external link (brochure, floor plan, video...)."""
    await get_org_property(db, property_id, current_user.org_id)
    resource = Resource(
        property_id=property_id,
        is_stored=False,
        uploaded_by=current_user.email or current_user.uid,
        **data.model_dump(),
    )
    return await _save_resource(db, resource, current_user, request)


@router.post("/resources/upload", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def upload_resource(
    property_id: UUID,
    request: Request,
    file: UploadFile = File(...),
    type: str = Form(...),
    name: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Upload a file resource to storage."""
    await get_org_property(db, property_id, current_user.org_id)

    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    try:
        storage.validate_upload(
            mime_type, len(content), StorageService.DOCUMENT_MIME_TYPES, settings.max_upload_size_mb
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    file_name = file.filename or "resource"
    object_path = storage.resource_path(property_id, file_name, int(time.time() * 1000))
    await storage.upload(object_path, content, mime_type)

    resource = Resource(
        property_id=property_id,
        type=type,
        name=name or file_name,
        url=object_path,
        is_stored=True,
        uploaded_by=current_user.email or current_user.uid,
    )
    return await _save_resource(db, resource, current_user, request)


@router.delete("/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    property_id: UUID,
    resource_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Delete a resource, and its stored file when it was uploaded."""
    await get_org_property(db, property_id, current_user.org_id)
    resource = await _get_child(db, Resource, resource_id, property_id, "Resource")

    await AuditService(db).log_delete(current_user, "resource", resource, request)
    await db.delete(resource)
    await db.commit()

    if resource.is_stored:
        await storage.delete(resource.url)
