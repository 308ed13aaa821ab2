"""Equipment requests router."""

from datetime import date, datetime, time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.core.pagination import is_set, page_count, paginate
from app.core.permissions import Permission
from app.core.security import (
    require_org_member,
    require_permission,
    ensure_permission,
    AuthenticatedUser,
)
from app.models.enums import AuditAction, EquipmentRequestPriority, EquipmentRequestStatus
from app.models.equipment_request import EquipmentRequest
from app.models.property import Property, Room
from app.routers.properties import get_org_property
from app.schemas.equipment_request import (
    EquipmentRequestCreate,
    EquipmentRequestListResponse,
    EquipmentRequestResponse,
    EquipmentRequestStatusUpdate,
    EquipmentRequestUpdate,
)
from app.services.audit import AuditService, snapshot
from app.services.exports import dated_filename, to_csv

router = APIRouter(prefix="/equipment-requests", tags=["equipment-requests"])

ENTITY_TYPE = "EquipmentRequest"

PRIORITY_RANK = case(
    {
        EquipmentRequestPriority.URGENT: 4,
        EquipmentRequestPriority.HIGH: 3,
        EquipmentRequestPriority.MEDIUM: 2,
        EquipmentRequestPriority.LOW: 1,
    },
    value=EquipmentRequest.priority,
    else_=0,
)

APPROVAL_STATUSES = {EquipmentRequestStatus.APPROVED, EquipmentRequestStatus.REJECTED}
DELETABLE_STATUSES = {EquipmentRequestStatus.PENDING, EquipmentRequestStatus.CANCELLED}

EXPORT_HEADERS = [
    "ID",
    "Property",
    "Room",
    "Requested By",
    "Status",
    "Priority",
    "Items",
    "Item Count",
    "Estimated Total",
    "Reason",
    "Created At",
]


def _with_relations(stmt):
    return stmt.options(
        selectinload(EquipmentRequest.property),
        selectinload(EquipmentRequest.room),
    )


def request_response(item: EquipmentRequest) -> EquipmentRequestResponse:
    response = EquipmentRequestResponse.model_validate(item)
    response.property_name = item.property.name if item.property else None
    response.room_name = item.room.name if item.room else None
    response.item_count = len(item.items or [])
    return response


async def _get_request(db: AsyncSession, request_id: UUID, org_id: UUID) -> EquipmentRequest:
    result = await db.execute(
        _with_relations(select(EquipmentRequest))
        .join(Property, Property.id == EquipmentRequest.property_id)
        .where(EquipmentRequest.id == request_id, Property.org_id == org_id)
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment request not found")
    return item


async def _check_room(db: AsyncSession, room_id: UUID, property_id: UUID) -> None:
    result = await db.execute(
        select(Room.id).where(Room.id == room_id, Room.property_id == property_id)
    )
    if not result.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")


def _filtered(
    org_id: UUID,
    search: Optional[str] = None,
    status_filter: Optional[str] = None,
    priority: Optional[str] = None,
    property_id: Optional[UUID] = None,
    destination_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    stmt = (
        _with_relations(select(EquipmentRequest))
        .join(Property, Property.id == EquipmentRequest.property_id)
        .where(Property.org_id == org_id)
    )
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(
            Property.name.ilike(pattern),
            EquipmentRequest.requested_by.ilike(pattern),
            EquipmentRequest.requested_by_email.ilike(pattern),
            EquipmentRequest.reason.ilike(pattern),
        ))
    try:
        if is_set(status_filter):
            stmt = stmt.where(EquipmentRequest.status == EquipmentRequestStatus(status_filter.upper()))
        if is_set(priority):
            stmt = stmt.where(EquipmentRequest.priority == EquipmentRequestPriority(priority.upper()))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filter value")
    if property_id:
        stmt = stmt.where(EquipmentRequest.property_id == property_id)
    if destination_id:
        stmt = stmt.where(Property.destination_id == destination_id)
    if date_from:
        stmt = stmt.where(EquipmentRequest.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        stmt = stmt.where(EquipmentRequest.created_at <= datetime.combine(date_to, time.max))
    return stmt.order_by(PRIORITY_RANK.desc(), EquipmentRequest.created_at.desc())


@router.get("", response_model=EquipmentRequestListResponse)
async def list_equipment_requests(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    property_id: Optional[UUID] = None,
    destination_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.EQUIPMENT_REQUEST_VIEW)),
):
    """List requests, most urgent first."""
    stmt = _filtered(
        current_user.org_id, search, status_filter, priority,
        property_id, destination_id, date_from, date_to,
    )
    items, total = await paginate(db, stmt, page, limit)

    return EquipmentRequestListResponse(
        requests=[request_response(item) for item in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=page_count(total, limit),
    )


@router.get("/export")
async def export_equipment_requests(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    property_id: Optional[UUID] = None,
    destination_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.EQUIPMENT_REQUEST_VIEW)),
):
    """Download the filtered requests as CSV."""
    stmt = _filtered(
        current_user.org_id, search, status_filter, priority,
        property_id, destination_id, date_from, date_to,
    )
    result = await db.execute(stmt)

    rows = []
    for item in result.scalars().all():
        items = item.items or []
        total_cost = sum((i.get("estimated_cost") or 0) * i.get("quantity", 1) for i in items)
        rows.append([
            item.id,
            item.property.name if item.property else "",
            item.room.name if item.room else "",
            item.requested_by_email or item.requested_by,
            item.status,
            item.priority,
            "; ".join(f"{i.get('name')} x{i.get('quantity', 1)}" for i in items),
            len(items),
            f"{total_cost:.2f}",
            item.reason,
            item.created_at,
        ])

    content = to_csv(EXPORT_HEADERS, rows, bom=True)
    filename = dated_filename("equipment_requests")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=EquipmentRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_equipment_request(
    data: EquipmentRequestCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.EQUIPMENT_REQUEST_CREATE)),
):
    prop = await get_org_property(db, data.property_id, current_user.org_id)
    if data.room_id:
        await _check_room(db, data.room_id, prop.id)

    item = EquipmentRequest(
        requested_by=current_user.uid,
        requested_by_email=current_user.email,
        status=EquipmentRequestStatus.PENDING,
        **data.model_dump(),
    )
    db.add(item)
    await db.flush()

    await AuditService(db).record(
        current_user, AuditAction.CREATE_EQUIPMENT_REQUEST, ENTITY_TYPE, item.id,
        {
            "property_id": str(prop.id),
            "property_name": prop.name,
            "item_count": len(data.items),
            "priority": data.priority.value,
        },
        request,
    )
    await db.commit()

    item = await _get_request(db, item.id, current_user.org_id)
    return request_response(item)


@router.get("/{request_id}", response_model=EquipmentRequestResponse)
async def get_equipment_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.EQUIPMENT_REQUEST_VIEW)),
):
    item = await _get_request(db, request_id, current_user.org_id)
    return request_response(item)


@router.patch("/{request_id}", response_model=EquipmentRequestResponse)
async def update_equipment_request(
    request_id: UUID,
    data: EquipmentRequestUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.EQUIPMENT_REQUEST_EDIT)),
):
    """Edit a request that is still pending."""
    item = await _get_request(db, request_id, current_user.org_id)
    if item.status != EquipmentRequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Can only edit pending requests",
        )
    before = snapshot(item)

    update_data = data.model_dump(exclude_unset=True)
    if data.room_id:
        await _check_room(db, data.room_id, item.property_id)
    for field, value in update_data.items():
        setattr(item, field, value)

    await db.flush()
    await AuditService(db).log_update(
        current_user, ENTITY_TYPE, item.id, before, snapshot(item), request,
        action=AuditAction.UPDATE_EQUIPMENT_REQUEST,
    )
    await db.commit()

    item = await _get_request(db, item.id, current_user.org_id)
    return request_response(item)


@router.patch("/{request_id}/status", response_model=EquipmentRequestResponse)
async def update_equipment_request_status(
    request_id: UUID,
    data: EquipmentRequestStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Move a request through its workflow.

    Approving or rejecting needs the approve permission; every other
    transition needs edit.
    """
    if data.status in APPROVAL_STATUSES:
        ensure_permission(current_user, Permission.EQUIPMENT_REQUEST_APPROVE)
    else:
        ensure_permission(current_user, Permission.EQUIPMENT_REQUEST_EDIT)

    item = await _get_request(db, request_id, current_user.org_id)
    old_status = item.status
    now = datetime.utcnow()

    item.status = data.status
    if data.internal_notes is not None:
        item.internal_notes = data.internal_notes
    if data.status == EquipmentRequestStatus.APPROVED:
        item.approved_by = current_user.uid
        item.approved_by_email = current_user.email
        item.approved_at = now
    elif data.status == EquipmentRequestStatus.REJECTED:
        item.rejected_reason = data.rejected_reason
    elif data.status == EquipmentRequestStatus.DELIVERED:
        item.completed_at = now

    await db.flush()
    await AuditService(db).record(
        current_user, f"UPDATE_EQUIPMENT_REQUEST_STATUS_{data.status.value}", ENTITY_TYPE, item.id,
        {"old_status": old_status.value, "new_status": data.status.value},
        request,
    )
    await db.commit()

    item = await _get_request(db, item.id, current_user.org_id)
    return request_response(item)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment_request(
    request_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.EQUIPMENT_REQUEST_DELETE)),
):
    item = await _get_request(db, request_id, current_user.org_id)
    if item.status not in DELETABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Can only delete pending or cancelled requests",
        )

    await AuditService(db).log_delete(
        current_user, ENTITY_TYPE, item, request, action=AuditAction.DELETE_EQUIPMENT_REQUEST
    )
    await db.delete(item)
    await db.commit()
