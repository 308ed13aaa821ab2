"""Audit log router. Read-only."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.core.pagination import page_count, paginate
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.audit import AuditLog
from app.models.property import Photo, Property, Resource, Room
from app.models.user import User
from app.schemas.audit import AuditLogDetailResponse, AuditLogListResponse, AuditLogResponse
from app.services.audit import to_jsonable

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])

CHILD_MODELS = {"room": Room, "photo": Photo, "resource": Resource}


def _as_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except ValueError:
        return None


async def _load_entity(db: AsyncSession, entity_type: str, entity_id: str, org_id: UUID):
    """The live row a log entry points at, or None if it is gone or not describable."""
    key = _as_uuid(entity_id)
    if key is None:
        return None

    if entity_type == "property":
        result = await db.execute(
            select(Property)
            .options(selectinload(Property.destination))
            .where(Property.id == key, Property.org_id == org_id)
        )
        return result.scalar_one_or_none()

    model = CHILD_MODELS.get(entity_type)
    if model is None:
        return None
    result = await db.execute(
        select(model)
        .options(selectinload(model.property))
        .join(Property, Property.id == model.property_id)
        .where(model.id == key, Property.org_id == org_id)
    )
    return result.scalar_one_or_none()


def entity_label(entity_type: str, entity: Any, fallback: str) -> str:
    if entity is None:
        return fallback
    if entity_type == "property":
        return entity.name
    if entity_type == "photo":
        return f"{entity.caption or 'Photo'} ({entity.property.name})"
    return f"{entity.name} ({entity.property.name})"


def entity_details(entity_type: str, entity: Any) -> Optional[dict[str, Any]]:
    if entity is None:
        return None
    if entity_type == "property":
        details = {
            "id": entity.id,
            "name": entity.name,
            "status": entity.status,
            "destination": {"name": entity.destination.name} if entity.destination else None,
        }
    else:
        details = {"id": entity.id, "property": {"id": entity.property.id, "name": entity.property.name}}
        if entity_type == "photo":
            details.update(caption=entity.caption, url=entity.url)
        else:
            details.update(name=entity.name, type=entity.type)
            if entity_type == "resource":
                details["url"] = entity.url
    return to_jsonable(details)


async def _log_response(db: AsyncSession, log: AuditLog, user_email: Optional[str], org_id: UUID):
    entity = await _load_entity(db, log.entity_type, log.entity_id, org_id)
    response = AuditLogDetailResponse.model_validate(log)
    response.user_email = user_email
    response.entity_name = entity_label(log.entity_type, entity, log.entity_id)
    response.entity_details = entity_details(log.entity_type, entity)
    return response


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.INTERNAL_VIEW)),
):
    """List the organization's audit trail, newest first."""
    stmt = (
        select(AuditLog, User.email)
        .outerjoin(User, User.id == AuditLog.user_id)
        .where(AuditLog.org_id == current_user.org_id)
    )
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(AuditLog.entity_id == entity_id)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if start_date:
        stmt = stmt.where(AuditLog.created_at >= start_date)
    if end_date:
        stmt = stmt.where(AuditLog.created_at <= end_date)
    if search:
        term = f"%{search}%"
        stmt = stmt.where(
            or_(
                AuditLog.entity_type.ilike(term),
                AuditLog.action.ilike(term),
                AuditLog.entity_id.ilike(term),
            )
        )
    stmt = stmt.order_by(AuditLog.created_at.desc())

    rows, total = await paginate(db, stmt, page, limit, scalars=False)

    logs = []
    for log, email in rows:
        entity = await _load_entity(db, log.entity_type, log.entity_id, current_user.org_id)
        item = AuditLogResponse.model_validate(log)
        item.user_email = email
        item.entity_name = entity_label(log.entity_type, entity, log.entity_id)
        logs.append(item)

    return AuditLogListResponse(
        logs=logs,
        total=total,
        page=page,
        limit=limit,
        total_pages=page_count(total, limit),
    )


@router.get("/{log_id}", response_model=AuditLogDetailResponse)
async def get_audit_log(
    log_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.INTERNAL_VIEW)),
):
    result = await db.execute(
        select(AuditLog, User.email)
        .outerjoin(User, User.id == AuditLog.user_id)
        .where(AuditLog.id == log_id, AuditLog.org_id == current_user.org_id)
    )
    row = result.one_or_none()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Audit log not found")

    return await _log_response(db, row[0], row[1], current_user.org_id)
