"""Activity providers router: local services recommended to guests."""

import json
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.core.pagination import ilike_any, is_set, page_count, paginate
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.activity_provider import ActivityProvider, PropertyActivityProvider
from app.models.enums import AuditAction
from app.models.property import Property
from app.routers.properties import get_org_property
from app.schemas.activity_provider import (
    ActivityProviderCreate,
    ActivityProviderImportRequest,
    ActivityProviderImportResponse,
    ActivityProviderListResponse,
    ActivityProviderResponse,
    ActivityProviderUpdate,
    LinkedPropertySummary,
    ProviderLinkRequest,
)
from app.schemas.base import BulkDeleteResponse, ExportFile, IdList
from app.services.audit import AuditService, snapshot, to_jsonable
from app.services.exports import dated_filename, to_base64, to_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activity-providers", tags=["activity-providers"])

ENTITY_TYPE = "activity_provider"

EXPORT_HEADERS = [
    "id",
    "name",
    "type",
    "description",
    "address",
    "city",
    "country",
    "phone",
    "email",
    "website",
    "tags",
    "rating",
    "properties",
]

view_providers = require_permission(Permission.VENDOR_VIEW)
edit_providers = require_permission(Permission.VENDOR_EDIT)


def _with_links(stmt):
    return stmt.options(
        selectinload(ActivityProvider.property_links).selectinload(PropertyActivityProvider.property)
    )


def provider_response(provider: ActivityProvider) -> ActivityProviderResponse:
    response = ActivityProviderResponse.model_validate(provider)
    response.properties = [
        LinkedPropertySummary(
            property_id=link.property_id,
            property_name=link.property.name,
            notes=link.notes,
            distance=link.distance,
            walking_time=link.walking_time,
            driving_time=link.driving_time,
        )
        for link in provider.property_links
    ]
    response.property_count = len(provider.property_links)
    return response


async def _get_provider(db: AsyncSession, provider_id: UUID, org_id: UUID) -> ActivityProvider:
    result = await db.execute(
        _with_links(select(ActivityProvider))
        .where(ActivityProvider.id == provider_id, ActivityProvider.org_id == org_id)
        .execution_options(populate_existing=True)
    )
    provider = result.scalar_one_or_none()
    if not provider:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activity provider not found",
        )
    return provider


async def _check_properties(db: AsyncSession, org_id: UUID, property_ids: set[UUID]) -> None:
    if not property_ids:
        return
    result = await db.execute(
        select(func.count(Property.id)).where(Property.id.in_(property_ids), Property.org_id == org_id)
    )
    if result.scalar() != len(property_ids):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")


def _filtered(org_id: UUID, search: Optional[str] = None, type: Optional[str] = None):
    stmt = _with_links(select(ActivityProvider)).where(ActivityProvider.org_id == org_id)
    if search:
        stmt = stmt.where(ilike_any(search, ActivityProvider.name, ActivityProvider.address))
    if is_set(type):
        stmt = stmt.where(ActivityProvider.type == type)
    return stmt.order_by(ActivityProvider.name)


@router.get("", response_model=ActivityProviderListResponse)
async def list_activity_providers(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    type: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(view_providers),
):
    stmt = _filtered(current_user.org_id, search, type)
    providers, total = await paginate(db, stmt, page, page_size)

    return ActivityProviderListResponse(
        providers=[provider_response(p) for p in providers],
        total=total,
        page=page,
        page_size=page_size,
        page_count=page_count(total, page_size),
    )


@router.get("/export", response_model=ExportFile)
async def export_activity_providers(
    request: Request,
    format: str = "csv",
    search: Optional[str] = None,
    type: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(view_providers),
):
    """Export providers as CSV or JSON, each with its linked property names."""
    format = format.lower()
    if format not in ("csv", "json"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid format. Use 'csv' or 'json'",
        )

    result = await db.execute(_filtered(current_user.org_id, search, type))
    providers = result.scalars().all()

    if format == "json":
        payload = [
            {**snapshot(p), "properties": [link.property.name for link in p.property_links]}
            for p in providers
        ]
        content = json.dumps(to_jsonable(payload), indent=2)
        mime_type = "application/json"
    else:
        rows = [
            [
                p.id,
                p.name,
                p.type,
                p.description,
                p.address,
                p.city,
                p.country,
                p.phone,
                p.email,
                p.website,
                p.tags,
                p.rating,
                [link.property.name for link in p.property_links],
            ]
            for p in providers
        ]
        content = to_csv(EXPORT_HEADERS, rows, bom=True)
        mime_type = "text/csv"

    await AuditService(db).record(
        current_user, AuditAction.EXPORT, ENTITY_TYPE, "export",
        {"format": format, "count": len(providers)}, request,
    )
    await db.commit()

    return ExportFile(
        filename=dated_filename("activity_providers", format),
        content=to_base64(content),
        mime_type=mime_type,
    )


@router.post("/import", response_model=ActivityProviderImportResponse)
async def import_activity_providers(
    data: ActivityProviderImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    """Bulk import. Names are compared case-insensitively to detect duplicates."""
    result = await db.execute(
        select(func.lower(ActivityProvider.name)).where(ActivityProvider.org_id == current_user.org_id)
    )
    known = set(result.scalars().all())
    result = await db.execute(select(Property.id).where(Property.org_id == current_user.org_id))
    property_ids = set(result.scalars().all())

    imported = skipped = 0
    errors: list[str] = []

    for row_number, row in enumerate(data.providers, start=1):
        key = row.name.lower()
        if key in known:
            if data.skip_duplicates:
                skipped += 1
            else:
                errors.append(f'Row {row_number}: Activity provider "{row.name}" already exists')
            continue

        unknown = [str(pid) for pid in row.property_ids if pid not in property_ids]
        if unknown:
            errors.append(f"Row {row_number}: Property not found: {', '.join(unknown)}")
            continue

        provider = ActivityProvider(
            org_id=current_user.org_id,
            **row.model_dump(exclude={"property_ids"}, exclude_none=True),
        )
        db.add(provider)
        await db.flush()
        for pid in dict.fromkeys(row.property_ids):
            db.add(PropertyActivityProvider(provider_id=provider.id, property_id=pid))
        known.add(key)
        imported += 1

    await db.flush()
    await AuditService(db).record(
        current_user, AuditAction.IMPORT, ENTITY_TYPE, "import",
        {"imported": imported, "skipped": skipped, "errors": len(errors)}, request,
    )
    await db.commit()

    logger.info(
        "Activity provider import: %d imported, %d skipped, %d errors",
        imported, skipped, len(errors),
    )
    return ActivityProviderImportResponse(imported=imported, skipped=skipped, errors=errors)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_activity_providers(
    data: IdList,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    result = await db.execute(
        select(ActivityProvider).where(
            ActivityProvider.id.in_(data.ids),
            ActivityProvider.org_id == current_user.org_id,
        )
    )
    providers = result.scalars().all()

    await AuditService(db).record(
        current_user, AuditAction.BULK_DELETE, ENTITY_TYPE, "bulk",
        {"deleted": [str(p.id) for p in providers]}, request,
    )
    for provider in providers:
        await db.delete(provider)
    await db.commit()

    return BulkDeleteResponse(deleted=len(providers))


@router.post("", response_model=ActivityProviderResponse, status_code=status.HTTP_201_CREATED)
async def create_activity_provider(
    data: ActivityProviderCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    property_ids = set(data.property_ids)
    await _check_properties(db, current_user.org_id, property_ids)

    provider = ActivityProvider(
        org_id=current_user.org_id,
        **data.model_dump(exclude={"property_ids"}, exclude_none=True),
    )
    db.add(provider)
    await db.flush()
    for pid in property_ids:
        db.add(PropertyActivityProvider(provider_id=provider.id, property_id=pid))
    await db.flush()

    await AuditService(db).log_create(current_user, ENTITY_TYPE, provider, request)
    await db.commit()

    provider = await _get_provider(db, provider.id, current_user.org_id)
    return provider_response(provider)


@router.get("/{provider_id}", response_model=ActivityProviderResponse)
async def get_activity_provider(
    provider_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(view_providers),
):
    provider = await _get_provider(db, provider_id, current_user.org_id)
    return provider_response(provider)


@router.patch("/{provider_id}", response_model=ActivityProviderResponse)
async def update_activity_provider(
    provider_id: UUID,
    data: ActivityProviderUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    provider = await _get_provider(db, provider_id, current_user.org_id)
    before = snapshot(provider)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(provider, field, value)

    await db.flush()
    await AuditService(db).log_update(
        current_user, ENTITY_TYPE, provider.id, before, snapshot(provider), request
    )
    await db.commit()

    provider = await _get_provider(db, provider.id, current_user.org_id)
    return provider_response(provider)


@router.delete("/{provider_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity_provider(
    provider_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    provider = await _get_provider(db, provider_id, current_user.org_id)

    await AuditService(db).log_delete(current_user, ENTITY_TYPE, provider, request)
    await db.delete(provider)
    await db.commit()


@router.post("/{provider_id}/properties", response_model=ActivityProviderResponse, status_code=status.HTTP_201_CREATED)
async def link_provider_to_property(
    provider_id: UUID,
    data: ProviderLinkRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    """Link a provider to a property, with optional distance and travel times."""
    provider = await _get_provider(db, provider_id, current_user.org_id)
    await get_org_property(db, data.property_id, current_user.org_id)

    if any(link.property_id == data.property_id for link in provider.property_links):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provider is already linked to this property",
        )

    db.add(PropertyActivityProvider(provider_id=provider.id, **data.model_dump()))
    await db.flush()
    await AuditService(db).record(
        current_user, AuditAction.LINK, "activity_provider_link",
        f"{provider.id}_{data.property_id}",
        data.model_dump(exclude_none=True), request,
    )
    await db.commit()

    provider = await _get_provider(db, provider.id, current_user.org_id)
    return provider_response(provider)


@router.delete("/{provider_id}/properties/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_provider_from_property(
    provider_id: UUID,
    property_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_providers),
):
    provider = await _get_provider(db, provider_id, current_user.org_id)

    link = next((item for item in provider.property_links if item.property_id == property_id), None)
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Provider is not linked to this property",
        )

    await AuditService(db).record(
        current_user, AuditAction.UNLINK, "activity_provider_link",
        f"{provider.id}_{property_id}", None, request,
    )
    await db.delete(link)
    await db.commit()
