"""Stay sections of a property. Each section is saved and audited on its own."""

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.enums import AuditAction
from app.models.property import Property
from app.routers.properties import get_org_property, property_response
from app.schemas.property import PropertyResponse
from app.schemas.property_stay import (
    AccessInfoUpdate,
    CheckInDetailsUpdate,
    MaintenanceSchedulesUpdate,
    NetworkInfoUpdate,
    SecurityInfoUpdate,
    SurroundingsUpdate,
    VillaBookCommentUpdate,
)
from app.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/properties/{property_id}/stay", tags=["properties"])

edit_access = require_permission(Permission.PROPERTY_EDIT)


def _set_section(prop: Property, section: str, value: Optional[Any]) -> None:
    """Replace one section of stay_metadata, leaving the others alone."""
    metadata = dict(prop.stay_metadata or {})
    if value is None:
        metadata.pop(section, None)
    else:
        metadata[section] = value
    prop.stay_metadata = metadata


async def _save(
    db: AsyncSession,
    current_user: AuthenticatedUser,
    prop: Property,
    entity_type: str,
    changes: dict[str, Any],
    request: Request,
) -> PropertyResponse:
    await db.flush()
    await AuditService(db).record(current_user, AuditAction.UPDATE, entity_type, prop.id, changes, request)
    await db.commit()
    logger.info("Updated %s of property %s", entity_type, prop.id)

    prop = await get_org_property(db, prop.id, current_user.org_id)
    return property_response(prop, current_user)


@router.put("/surroundings", response_model=PropertyResponse)
async def update_surroundings(
    property_id: UUID,
    data: SurroundingsUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    prop = await get_org_property(db, property_id, current_user.org_id)
    prop.surroundings = data.surroundings.model_dump(exclude_none=True) if data.surroundings else None
    return await _save(
        db, current_user, prop, "property_surroundings", {"surroundings": prop.surroundings}, request
    )


@router.patch("/check-in", response_model=PropertyResponse)
async def update_check_in_details(
    property_id: UUID,
    data: CheckInDetailsUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    """Check-in and check-out times (HH:MM) and who welcomes the guests."""
    prop = await get_org_property(db, property_id, current_user.org_id)
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(prop, field, value)
    return await _save(db, current_user, prop, "property_check_in", update_data, request)


@router.put("/access", response_model=PropertyResponse)
async def update_access_info(
    property_id: UUID,
    data: AccessInfoUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    """How guests reach the house: airports, stations, road, keys."""
    prop = await get_org_property(db, property_id, current_user.org_id)
    access = data.access.model_dump(exclude_none=True)
    _set_section(prop, "access", access)
    return await _save(db, current_user, prop, "property_access", {"access": access}, request)


@router.put("/maintenance", response_model=PropertyResponse)
async def update_maintenance_schedules(
    property_id: UUID,
    data: MaintenanceSchedulesUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    prop = await get_org_property(db, property_id, current_user.org_id)
    maintenance = data.maintenance.model_dump(exclude_none=True)
    _set_section(prop, "maintenance", maintenance)
    return await _save(
        db, current_user, prop, "property_maintenance", {"maintenance": maintenance}, request
    )


@router.patch("/network", response_model=PropertyResponse)
async def update_network_info(
    property_id: UUID,
    data: NetworkInfoUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    """Wifi, mobile coverage and the router. The wifi password stays out of the audit trail."""
    prop = await get_org_property(db, property_id, current_user.org_id)
    for field, value in data.model_dump(exclude_unset=True, exclude={"network"}).items():
        setattr(prop, field, value)
    if "network" in data.model_fields_set:
        _set_section(prop, "network", data.network.model_dump(exclude_none=True) if data.network else None)

    changes = {
        "wifi": {
            "name": prop.wifi_name,
            "speed": prop.wifi_speed,
            "coverage": prop.mobile_network_coverage,
        },
        "network": (prop.stay_metadata or {}).get("network"),
    }
    return await _save(db, current_user, prop, "property_network", changes, request)


@router.patch("/security", response_model=PropertyResponse)
async def update_security_info(
    property_id: UUID,
    data: SecurityInfoUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    prop = await get_org_property(db, property_id, current_user.org_id)
    for field, value in data.model_dump(exclude_unset=True, exclude={"security"}).items():
        setattr(prop, field, value)
    if "security" in data.model_fields_set:
        _set_section(prop, "security", data.security.model_dump(exclude_none=True) if data.security else None)

    changes = {
        "fire_safety": {
            "has_extinguisher": prop.has_fire_extinguisher,
            "has_alarm": prop.has_fire_alarm,
        },
        "electric_meter": {
            "accessible": prop.electric_meter_accessible,
            "location": prop.electric_meter_location,
        },
        "security": (prop.stay_metadata or {}).get("security"),
    }
    return await _save(db, current_user, prop, "property_security", changes, request)


@router.put("/villa-book", response_model=PropertyResponse)
async def update_villa_book_comment(
    property_id: UUID,
    data: VillaBookCommentUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_access),
):
    """Set the villa book text for one language; other languages are kept."""
    prop = await get_org_property(db, property_id, current_user.org_id)
    comments = dict((prop.stay_metadata or {}).get("villa_book_comment") or {})
    comments[data.language] = data.content
    _set_section(prop, "villa_book_comment", comments)
    return await _save(
        db, current_user, prop, "property_villa_book",
        {"language": data.language, "content_length": len(data.content)},
        request,
    )
