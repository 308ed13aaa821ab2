"""Availability requests router."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.pagination import is_set, page_count, paginate
from app.core.permissions import Permission
from app.core.security import require_org_member, require_permission, AuthenticatedUser
from app.models.booking import AvailabilityRequest
from app.models.enums import AvailabilityRequestStatus, RequestUrgency
from app.models.property import Property
from app.routers.properties import get_org_property
from app.schemas.booking import (
    AvailabilityRequestCreate,
    AvailabilityRequestListResponse,
    AvailabilityRequestResponse,
    AvailabilityRequestStatusUpdate,
)
from app.services.audit import AuditService, snapshot

router = APIRouter(prefix="/availability-requests", tags=["availability-requests"])

ENTITY_TYPE = "AvailabilityRequest"

URGENCY_RANK = case(
    {
        RequestUrgency.URGENT: 0,
        RequestUrgency.HIGH: 1,
        RequestUrgency.NORMAL: 2,
        RequestUrgency.LOW: 3,
    },
    value=AvailabilityRequest.urgency,
    else_=4,
)

SORT_COLUMNS = {
    "created_at": AvailabilityRequest.created_at,
    "start_date": AvailabilityRequest.start_date,
    "end_date": AvailabilityRequest.end_date,
    "urgency": URGENCY_RANK,
}


def _response(item: AvailabilityRequest, property_name: Optional[str]) -> AvailabilityRequestResponse:
    response = AvailabilityRequestResponse.model_validate(item)
    response.property_name = property_name
    return response


async def _get_request(db: AsyncSession, request_id: UUID, org_id: UUID) -> tuple[AvailabilityRequest, str]:
    result = await db.execute(
        select(AvailabilityRequest, Property.name)
        .join(Property, Property.id == AvailabilityRequest.property_id)
        .where(AvailabilityRequest.id == request_id, Property.org_id == org_id)
    )
    row = result.one_or_none()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Availability request not found",
        )
    return row[0], row[1]


@router.post("", response_model=AvailabilityRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_availability_request(
    data: AvailabilityRequestCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_org_member),
):
    """Any member can ask whether a property is free."""
    prop = await get_org_property(db, data.property_id, current_user.org_id)

    item = AvailabilityRequest(
        **data.model_dump(),
        status=AvailabilityRequestStatus.PENDING,
        requested_by=current_user.uid,
    )
    db.add(item)
    await db.flush()
    await AuditService(db).log_create(current_user, ENTITY_TYPE, item, request)
    await db.commit()
    await db.refresh(item)

    return _response(item, prop.name)


@router.get("", response_model=AvailabilityRequestListResponse)
async def list_availability_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    property_id: Optional[UUID] = None,
    urgency: Optional[str] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|start_date|end_date|urgency)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    stmt = (
        select(AvailabilityRequest, Property.name)
        .join(Property, Property.id == AvailabilityRequest.property_id)
        .where(Property.org_id == current_user.org_id)
    )
    try:
        if is_set(status_filter):
            stmt = stmt.where(AvailabilityRequest.status == AvailabilityRequestStatus(status_filter.upper()))
        if is_set(urgency):
            stmt = stmt.where(AvailabilityRequest.urgency == RequestUrgency(urgency.upper()))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filter value")
    if property_id:
        stmt = stmt.where(AvailabilityRequest.property_id == property_id)

    column = SORT_COLUMNS[sort_by]
    # Urgency rank runs from most to least urgent
    if sort_by == "urgency":
        descending = sort_order == "asc"
    else:
        descending = sort_order == "desc"
    stmt = stmt.order_by(column.desc() if descending else column.asc())

    rows, total = await paginate(db, stmt, page, page_size, scalars=False)

    return AvailabilityRequestListResponse(
        requests=[_response(item, name) for item, name in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=page_count(total, page_size),
    )


@router.patch("/{request_id}/status", response_model=AvailabilityRequestResponse)
async def update_availability_request_status(
    request_id: UUID,
    data: AvailabilityRequestStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    item, property_name = await _get_request(db, request_id, current_user.org_id)
    before = snapshot(item)

    item.status = data.status
    await db.flush()
    await AuditService(db).log_update(
        current_user, ENTITY_TYPE, item.id, before, snapshot(item), request
    )
    await db.commit()
    await db.refresh(item)

    return _response(item, property_name)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_availability_request(
    request_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    item, _ = await _get_request(db, request_id, current_user.org_id)

    await AuditService(db).log_delete(current_user, ENTITY_TYPE, item, request)
    await db.delete(item)
    await db.commit()
