"""Properties router."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import func, null, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.core.pagination import PageParams, ilike_any, is_set, page_count, paginate
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.contact import Contact, ContactProperty
from app.models.destination import Destination
from app.models.enums import PropertyStatus
from app.models.property import Property
from app.schemas.contact import PropertyContactResponse
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertyMapItem,
    PropertyMapResponse,
    PropertySearchResult,
)
from app.services.audit import AuditService, snapshot
from app.services.exports import dated_filename, to_csv

router = APIRouter(prefix="/properties", tags=["properties"])

SEARCH_SIMILARITY = 0.1
SEARCH_LIMIT = 50

INTERNAL_FIELDS = ("internal_comment", "warning")

EXPORT_COLUMNS = [
    ("Name", "name"),
    ("Original Name", "original_name"),
    ("Status", "status"),
    ("Destination", "destination_name"),
    ("Bedrooms", "number_of_rooms"),
    ("Bathrooms", "number_of_bathrooms"),
    ("Max Guests", "max_guests"),
    ("Adult Capacity", "adult_capacity"),
    ("Property Size", "property_size"),
    ("Plot Size", "plot_size"),
    ("Address", "address"),
    ("Postcode", "postcode"),
    ("City", "city"),
    ("Latitude", "latitude"),
    ("Longitude", "longitude"),
    ("License Type", "license_type"),
    ("License Number", "license_number"),
    ("Concierge Service", "concierge_service"),
    ("Concierge Offer", "concierge_service_offer"),
    ("Categories", "categories"),
    ("House Type", "house_type"),
    ("Elevator", "elevator"),
    ("Suitable For Events", "suitable_for_events"),
    ("Check-in", "check_in_time"),
    ("Check-out", "check_out_time"),
    ("Listing URL", "listing_url"),
    ("Created At", "created_at"),
]


async def get_org_property(db: AsyncSession, property_id: UUID, org_id: UUID) -> Property:
    """Fetch a property of the caller's organization or raise 404."""
    result = await db.execute(
        select(Property)
        .options(selectinload(Property.destination))
        .where(Property.id == property_id, Property.org_id == org_id)
        .execution_options(populate_existing=True)
    )
    prop = result.scalar_one_or_none()
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return prop


async def _check_destination(db: AsyncSession, destination_id: Optional[UUID], org_id: UUID) -> None:
    if destination_id is None:
        return
    result = await db.execute(
        select(Destination.id).where(Destination.id == destination_id, Destination.org_id == org_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination not found")


def _parse_status(value: str) -> PropertyStatus:
    try:
        return PropertyStatus(value.upper())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")


def property_response(prop: Property, current_user: AuthenticatedUser) -> PropertyResponse:
    response = PropertyResponse.model_validate(prop)
    response.destination_name = prop.destination.name if prop.destination else None
    if not current_user.can(Permission.INTERNAL_VIEW):
        for field in INTERNAL_FIELDS:
            setattr(response, field, None)
    return response


@router.get("", response_model=PropertyListResponse)
async def list_properties(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """List properties ordered by name."""
    params = PageParams(page=page, page_size=page_size)
    stmt = (
        select(Property)
        .options(selectinload(Property.destination))
        .where(Property.org_id == current_user.org_id)
        .order_by(Property.name)
    )
    if search:
        stmt = stmt.where(ilike_any(search, Property.name, Property.city))
    if is_set(status_filter):
        stmt = stmt.where(Property.status == _parse_status(status_filter))

    properties, total = await paginate(db, stmt, params.page, params.page_size)

    return PropertyListResponse(
        properties=[property_response(p, current_user) for p in properties],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=page_count(total, params.page_size),
    )


@router.get("/search", response_model=list[PropertySearchResult])
async def search_properties(
    q: Optional[str] = None,
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
    destination_id: Optional[UUID] = None,
    min_rooms: Optional[int] = Query(None, ge=0),
    max_rooms: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Fuzzy search by name, original name, address and city."""
    columns = (Property.name, Property.original_name, Property.address, Property.city)
    term = (q or "").strip()

    if term and db.get_bind().dialect.name == "postgresql":
        similarities = [func.similarity(func.coalesce(column, ""), term) for column in columns]
        score = func.greatest(*similarities).label("score")
        stmt = select(Property, score).where(
            or_(
                *[similarity > SEARCH_SIMILARITY for similarity in similarities],
                ilike_any(term, *columns),
            )
        ).order_by(score.desc(), Property.created_at.desc())
    else:
        stmt = select(Property, null().label("score"))
        if term:
            stmt = stmt.where(ilike_any(term, *columns))
        stmt = stmt.order_by(Property.created_at.desc())

    stmt = stmt.where(Property.org_id == current_user.org_id)
    if status_filter:
        stmt = stmt.where(Property.status == status_filter)
    if destination_id:
        stmt = stmt.where(Property.destination_id == destination_id)
    if min_rooms is not None:
        stmt = stmt.where(Property.number_of_rooms >= min_rooms)
    if max_rooms is not None:
        stmt = stmt.where(Property.number_of_rooms <= max_rooms)

    result = await db.execute(stmt.limit(SEARCH_LIMIT))

    results = []
    for prop, score in result.all():
        item = PropertySearchResult.model_validate(prop)
        item.score = float(score) if score is not None else None
        results.append(item)
    return results


@router.get("/export")
async def export_properties(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Download every property as a CSV file."""
    stmt = (
        select(Property)
        .options(selectinload(Property.destination))
        .where(Property.org_id == current_user.org_id)
        .order_by(Property.name)
    )
    if is_set(status_filter):
        stmt = stmt.where(Property.status == _parse_status(status_filter))
    result = await db.execute(stmt)

    rows = []
    for prop in result.scalars().all():
        response = property_response(prop, current_user)
        rows.append([getattr(response, attr) for _, attr in EXPORT_COLUMNS])

    content = to_csv([header for header, _ in EXPORT_COLUMNS], rows, bom=True)
    filename = dated_filename("properties_export")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _parse_ids(raw: str) -> list[UUID]:
    try:
        return [UUID(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid destination id")


@router.get("/map", response_model=PropertyMapResponse)
async def properties_map(
    status_filter: Optional[str] = Query(None, alias="status"),
    destination_id: Optional[UUID] = None,
    destination_ids: Optional[str] = Query(None, alias="destinationIds"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Every property with coordinates, unpaginated."""
    stmt = (
        select(Property)
        .options(selectinload(Property.destination))
        .where(
            Property.org_id == current_user.org_id,
            Property.latitude.is_not(None),
            Property.longitude.is_not(None),
        )
        .order_by(Property.name)
    )
    if is_set(status_filter):
        stmt = stmt.where(Property.status == _parse_status(status_filter))
    # A list of destinations wins over a single one
    if destination_ids:
        stmt = stmt.where(Property.destination_id.in_(_parse_ids(destination_ids)))
    elif destination_id:
        stmt = stmt.where(Property.destination_id == destination_id)

    result = await db.execute(stmt)
    pins = [PropertyMapItem.model_validate(prop) for prop in result.scalars().all()]
    return PropertyMapResponse(properties=pins, total=len(pins))


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    data: PropertyCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Create a new property (org-scoped)."""
    create_data = data.model_dump(exclude_none=True)
    if not current_user.can(Permission.INTERNAL_EDIT):
        for field in INTERNAL_FIELDS:
            create_data.pop(field, None)
    await _check_destination(db, create_data.get("destination_id"), current_user.org_id)

    prop = Property(org_id=current_user.org_id, **create_data)
    db.add(prop)
    await db.flush()
    await AuditService(db).log_create(current_user, "property", prop, request)
    await db.commit()

    prop = await get_org_property(db, prop.id, current_user.org_id)
    return property_response(prop, current_user)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_VIEW)),
):
    """Get a property by ID."""
    prop = await get_org_property(db, property_id, current_user.org_id)
    return property_response(prop, current_user)


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_EDIT)),
):
    """Update a property."""
    prop = await get_org_property(db, property_id, current_user.org_id)
    before = snapshot(prop)

    update_data = data.model_dump(exclude_unset=True)
    if not current_user.can(Permission.INTERNAL_EDIT):
        for field in INTERNAL_FIELDS:
            update_data.pop(field, None)
    await _check_destination(db, update_data.get("destination_id"), current_user.org_id)
    for field, value in update_data.items():
        setattr(prop, field, value)

    await db.flush()
    await AuditService(db).log_update(
        current_user, "property", prop.id, before, snapshot(prop), request
    )
    await db.commit()

    prop = await get_org_property(db, prop.id, current_user.org_id)
    return property_response(prop, current_user)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.PROPERTY_DELETE)),
):
    """Delete a property and everything attached to it."""
    prop = await get_org_property(db, property_id, current_user.org_id)

    await AuditService(db).log_delete(current_user, "property", prop, request)
    await db.delete(prop)
    await db.commit()


@router.get("/{property_id}/contacts", response_model=list[PropertyContactResponse])
async def list_property_contacts(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_VIEW)),
):
    """Contacts linked to a property, with their relationship."""
    await get_org_property(db, property_id, current_user.org_id)

    result = await db.execute(
        select(ContactProperty, Contact)
        .join(Contact, Contact.id == ContactProperty.contact_id)
        .where(ContactProperty.property_id == property_id)
        .order_by(ContactProperty.relationship_type, Contact.last_name, Contact.first_name)
    )

    return [
        PropertyContactResponse(
            link_id=link.id,
            contact_id=contact.id,
            first_name=contact.first_name,
            last_name=contact.last_name,
            email=contact.email,
            phone=contact.phone,
            category=contact.category,
            relationship=link.relationship_type,
        )
        for link, contact in result.all()
    ]
