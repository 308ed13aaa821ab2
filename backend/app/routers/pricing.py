"""Pricing router: property pricing, price ranges, minimum stays and operational costs."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.enums import AuditAction
from app.models.pricing import MinimumStayRule, OperationalCost, PriceRange, PropertyPricing
from app.models.property import Property
from app.routers.properties import get_org_property
from app.schemas.base import ExportFile
from app.schemas.pricing import (
    MigrationResult,
    MinimumStayRuleCreate,
    MinimumStayRuleImportRequest,
    MinimumStayRuleResponse,
    MinimumStayRuleUpdate,
    OperationalCostCreate,
    OperationalCostImportRequest,
    OperationalCostResponse,
    OperationalCostUpdate,
    PriceRangeCreate,
    PriceRangeImportRequest,
    PriceRangeResponse,
    PriceRangeUpdate,
    PricingImportResponse,
    PricingOverview,
    PropertyPricingResponse,
    PropertyPricingUpdate,
)
from app.services.audit import AuditService, snapshot
from app.services.exports import dated_filename, to_base64, to_csv
from app.services.pricing import DateRange, public_rate, validate_date_range_overlap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])

OVERLAP_ERROR = "Date range overlaps with existing price range"
EXCEL_NOT_SUPPORTED = "Excel export not yet implemented. Please use CSV format."

EXPORT_HEADERS = [
    "Property",
    "Name",
    "Start Date",
    "End Date",
    "Owner Nightly Rate",
    "Owner Weekly Rate",
    "Commission Rate",
    "Public Nightly Rate",
    "Public Weekly Rate",
    "Validated",
    "Minimum Stay",
]

view_financials = require_permission(Permission.FINANCIAL_VIEW)
edit_financials = require_permission(Permission.FINANCIAL_EDIT)


async def _touch_pricing(db: AsyncSession, property_id: UUID) -> PropertyPricing:
    """Get or create the property's pricing row and stamp last_pricing_update."""
    result = await db.execute(
        select(PropertyPricing).where(PropertyPricing.property_id == property_id)
    )
    pricing = result.scalar_one_or_none()
    if not pricing:
        pricing = PropertyPricing(property_id=property_id)
        db.add(pricing)
    pricing.last_pricing_update = datetime.utcnow()
    return pricing


async def _get_owned(db: AsyncSession, model, item_id: UUID, org_id: UUID, label: str):
    result = await db.execute(
        select(model)
        .join(Property, Property.id == model.property_id)
        .where(model.id == item_id, Property.org_id == org_id)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return item


async def _date_ranges(db: AsyncSession, property_id: UUID) -> list[DateRange]:
    result = await db.execute(
        select(PriceRange.id, PriceRange.start_date, PriceRange.end_date)
        .where(PriceRange.property_id == property_id)
    )
    return [DateRange(start, end, rid) for rid, start, end in result.all()]


def _apply_public_rates(price_range: PriceRange) -> None:
    price_range.public_nightly_rate = public_rate(price_range.owner_nightly_rate, price_range.commission_rate)
    price_range.public_weekly_rate = public_rate(price_range.owner_weekly_rate, price_range.commission_rate)


# --- Property pricing ---

@router.get("/properties/{property_id}", response_model=PricingOverview)
async def get_pricing(
    property_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(view_financials),
):
    """Everything priced for a property. Each read is logged as sensitive access."""
    await get_org_property(db, property_id, current_user.org_id)

    pricing = (await db.execute(
        select(PropertyPricing).where(PropertyPricing.property_id == property_id)
    )).scalar_one_or_none()
    ranges = (await db.execute(
        select(PriceRange).where(PriceRange.property_id == property_id).order_by(PriceRange.start_date)
    )).scalars().all()
    rules = (await db.execute(
        select(MinimumStayRule)
        .where(MinimumStayRule.property_id == property_id)
        .order_by(MinimumStayRule.created_at)
    )).scalars().all()
    costs = (await db.execute(
        select(OperationalCost)
        .where(OperationalCost.property_id == property_id)
        .order_by(OperationalCost.created_at)
    )).scalars().all()

    await AuditService(db).log_sensitive_access(
        current_user, "FINANCIAL_DATA", property_id, {"section": "pricing"}
    )
    await db.commit()

    return PricingOverview(
        pricing=PropertyPricingResponse.model_validate(pricing) if pricing else None,
        price_ranges=[PriceRangeResponse.model_validate(r) for r in ranges],
        minimum_stay_rules=[MinimumStayRuleResponse.model_validate(r) for r in rules],
        operational_costs=[OperationalCostResponse.model_validate(c) for c in costs],
    )


@router.put("/properties/{property_id}", response_model=PropertyPricingResponse)
async def upsert_pricing(
    property_id: UUID,
    data: PropertyPricingUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    """Create or update a property's pricing settings."""
    await get_org_property(db, property_id, current_user.org_id)

    result = await db.execute(
        select(PropertyPricing).where(PropertyPricing.property_id == property_id)
    )
    existing = result.scalar_one_or_none()
    before = snapshot(existing) if existing else None

    pricing = await _touch_pricing(db, property_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(pricing, field, value)
    await db.flush()

    audit = AuditService(db)
    if before is None:
        await audit.log_create(
            current_user, "PROPERTY_PRICING", pricing, request, action=AuditAction.CREATE_PRICING
        )
    else:
        await audit.log_update(
            current_user, "PROPERTY_PRICING", pricing.id, before, snapshot(pricing), request,
            action=AuditAction.UPDATE_PRICING,
        )
    await db.commit()
    await db.refresh(pricing)

    return PropertyPricingResponse.model_validate(pricing)


@router.post("/properties/{property_id}/migrate-legacy", response_model=MigrationResult)
async def migrate_legacy_rates(
    property_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    """Move legacy nightly/weekly rates into owner rates and compute public rates."""
    await get_org_property(db, property_id, current_user.org_id)

    result = await db.execute(
        select(PriceRange).where(
            PriceRange.property_id == property_id,
            (PriceRange.nightly_rate.is_not(None)) | (PriceRange.weekly_rate.is_not(None)),
        )
    )
    ranges = result.scalars().all()

    for price_range in ranges:
        if price_range.nightly_rate is not None and price_range.owner_nightly_rate is None:
            price_range.owner_nightly_rate = price_range.nightly_rate
        if price_range.weekly_rate is not None and price_range.owner_weekly_rate is None:
            price_range.owner_weekly_rate = price_range.weekly_rate
        _apply_public_rates(price_range)
        price_range.nightly_rate = None
        price_range.weekly_rate = None
        price_range.monthly_rate = None

    if ranges:
        await _touch_pricing(db, property_id)
        await db.flush()
        await AuditService(db).record(
            current_user, AuditAction.MIGRATE_PRICING, "PRICE_RANGE", property_id,
            {"migrated": [str(r.id) for r in ranges]}, request,
        )
    await db.commit()

    logger.info("Migrated %d legacy price ranges for property %s", len(ranges), property_id)
    return MigrationResult(migrated=len(ranges))


# --- Price ranges ---

@router.post(
    "/properties/{property_id}/price-ranges",
    response_model=PriceRangeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_price_range(
    property_id: UUID,
    data: PriceRangeCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    await get_org_property(db, property_id, current_user.org_id)

    existing = await _date_ranges(db, property_id)
    if not validate_date_range_overlap(existing, DateRange(data.start_date, data.end_date)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=OVERLAP_ERROR)

    price_range = PriceRange(property_id=property_id, **data.model_dump())
    _apply_public_rates(price_range)
    db.add(price_range)
    await _touch_pricing(db, property_id)
    await db.flush()

    await AuditService(db).log_create(
        current_user, "PRICE_RANGE", price_range, request, action=AuditAction.CREATE_PRICING
    )
    await db.commit()
    await db.refresh(price_range)

    return PriceRangeResponse.model_validate(price_range)


@router.patch("/price-ranges/{range_id}", response_model=PriceRangeResponse)
async def update_price_range(
    range_id: UUID,
    data: PriceRangeUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    """Update a price range, recomputing public rates whose inputs changed."""
    price_range = await _get_owned(db, PriceRange, range_id, current_user.org_id, "Price range")
    before = snapshot(price_range)
    update_data = data.model_dump(exclude_unset=True)

    start_date = update_data.get("start_date") or price_range.start_date
    end_date = update_data.get("end_date") or price_range.end_date
    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )
    if "start_date" in update_data or "end_date" in update_data:
        existing = await _date_ranges(db, price_range.property_id)
        if not validate_date_range_overlap(
            existing, DateRange(start_date, end_date), exclude_id=price_range.id
        ):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=OVERLAP_ERROR)

    for field, value in update_data.items():
        setattr(price_range, field, value)

    commission_changed = "commission_rate" in update_data
    if commission_changed or "owner_nightly_rate" in update_data:
        price_range.public_nightly_rate = public_rate(price_range.owner_nightly_rate, price_range.commission_rate)
    if commission_changed or "owner_weekly_rate" in update_data:
        price_range.public_weekly_rate = public_rate(price_range.owner_weekly_rate, price_range.commission_rate)

    await _touch_pricing(db, price_range.property_id)
    await db.flush()
    await AuditService(db).log_update(
        current_user, "PRICE_RANGE", price_range.id, before, snapshot(price_range), request,
        action=AuditAction.UPDATE_PRICING,
    )
    await db.commit()
    await db.refresh(price_range)

    return PriceRangeResponse.model_validate(price_range)


@router.delete("/price-ranges/{range_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_price_range(
    range_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    price_range = await _get_owned(db, PriceRange, range_id, current_user.org_id, "Price range")

    await AuditService(db).log_delete(
        current_user, "PRICE_RANGE", price_range, request, action=AuditAction.DELETE_PRICING
    )
    await _touch_pricing(db, price_range.property_id)
    await db.delete(price_range)
    await db.commit()


# --- Minimum stay rules ---

@router.post(
    "/properties/{property_id}/minimum-stay-rules",
    response_model=MinimumStayRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_minimum_stay_rule(
    property_id: UUID,
    data: MinimumStayRuleCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    await get_org_property(db, property_id, current_user.org_id)

    rule = MinimumStayRule(property_id=property_id, **data.model_dump())
    db.add(rule)
    await db.flush()
    await AuditService(db).log_create(
        current_user, "MINIMUM_STAY_RULE", rule, request, action=AuditAction.CREATE_PRICING
    )
    await db.commit()
    await db.refresh(rule)

    return MinimumStayRuleResponse.model_validate(rule)


@router.patch("/minimum-stay-rules/{rule_id}", response_model=MinimumStayRuleResponse)
async def update_minimum_stay_rule(
    rule_id: UUID,
    data: MinimumStayRuleUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    rule = await _get_owned(db, MinimumStayRule, rule_id, current_user.org_id, "Minimum stay rule")
    before = snapshot(rule)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(rule, field, value)
    if rule.start_date and rule.end_date and rule.end_date <= rule.start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date must be after start date",
        )

    await db.flush()
    await AuditService(db).log_update(
        current_user, "MINIMUM_STAY_RULE", rule.id, before, snapshot(rule), request,
        action=AuditAction.UPDATE_PRICING,
    )
    await db.commit()
    await db.refresh(rule)

    return MinimumStayRuleResponse.model_validate(rule)


@router.delete("/minimum-stay-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_minimum_stay_rule(
    rule_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    rule = await _get_owned(db, MinimumStayRule, rule_id, current_user.org_id, "Minimum stay rule")

    await AuditService(db).log_delete(
        current_user, "MINIMUM_STAY_RULE", rule, request, action=AuditAction.DELETE_PRICING
    )
    await db.delete(rule)
    await db.commit()


# --- Operational costs ---

@router.post(
    "/properties/{property_id}/operational-costs",
    response_model=OperationalCostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_operational_cost(
    property_id: UUID,
    data: OperationalCostCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    await get_org_property(db, property_id, current_user.org_id)

    cost = OperationalCost(property_id=property_id, **data.model_dump())
    db.add(cost)
    await db.flush()
    await AuditService(db).log_create(
        current_user, "OPERATIONAL_COST", cost, request, action=AuditAction.CREATE_PRICING
    )
    await db.commit()
    await db.refresh(cost)

    return OperationalCostResponse.model_validate(cost)


@router.patch("/operational-costs/{cost_id}", response_model=OperationalCostResponse)
async def update_operational_cost(
    cost_id: UUID,
    data: OperationalCostUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    cost = await _get_owned(db, OperationalCost, cost_id, current_user.org_id, "Operational cost")
    before = snapshot(cost)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(cost, field, value)

    await db.flush()
    await AuditService(db).log_update(
        current_user, "OPERATIONAL_COST", cost.id, before, snapshot(cost), request,
        action=AuditAction.UPDATE_PRICING,
    )
    await db.commit()
    await db.refresh(cost)

    return OperationalCostResponse.model_validate(cost)


@router.delete("/operational-costs/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_operational_cost(
    cost_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    cost = await _get_owned(db, OperationalCost, cost_id, current_user.org_id, "Operational cost")

    await AuditService(db).log_delete(
        current_user, "OPERATIONAL_COST", cost, request, action=AuditAction.DELETE_PRICING
    )
    await db.delete(cost)
    await db.commit()


# --- Imports and exports ---

async def _org_property_ids(db: AsyncSession, org_id: UUID) -> set[UUID]:
    result = await db.execute(select(Property.id).where(Property.org_id == org_id))
    return set(result.scalars().all())


def _not_found(row_number: int, property_id: UUID) -> str:
    return f"Row {row_number}: Property with ID '{property_id}' not found"


@router.post("/import/price-ranges", response_model=PricingImportResponse)
async def import_price_ranges(
    data: PriceRangeImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    """Import price ranges for any of the organization's properties.

    A row whose dates collide with an existing range updates it when
    `update_existing` is set and the dates match exactly; otherwise it is
    skipped (`skip_conflicts`) or reported.
    """
    property_ids = await _org_property_ids(db, current_user.org_id)
    created = updated = skipped = 0
    errors: list[str] = []
    touched: set[UUID] = set()

    for row_number, row in enumerate(data.rows, start=1):
        if row.property_id not in property_ids:
            errors.append(_not_found(row_number, row.property_id))
            continue

        result = await db.execute(select(PriceRange).where(PriceRange.property_id == row.property_id))
        existing = result.scalars().all()
        new_range = DateRange(row.start_date, row.end_date)
        ranges = [DateRange(r.start_date, r.end_date, r.id) for r in existing]

        if not validate_date_range_overlap(ranges, new_range):
            same_dates = next(
                (r for r in existing if r.start_date == row.start_date and r.end_date == row.end_date),
                None,
            )
            if data.update_existing and same_dates:
                for field, value in row.model_dump(exclude={"property_id"}).items():
                    setattr(same_dates, field, value)
                _apply_public_rates(same_dates)
                updated += 1
                touched.add(row.property_id)
            elif data.skip_conflicts:
                skipped += 1
            else:
                errors.append(f"Row {row_number}: Date range conflicts with existing price range")
            continue

        price_range = PriceRange(**row.model_dump())
        _apply_public_rates(price_range)
        db.add(price_range)
        await db.flush()
        created += 1
        touched.add(row.property_id)

    for property_id in touched:
        await _touch_pricing(db, property_id)

    summary = f"Created {created}, updated {updated}, skipped {skipped}, failed {len(errors)}"
    await db.flush()
    await AuditService(db).record(
        current_user, AuditAction.IMPORT, "price_ranges", "import",
        {"summary": summary, "errors": errors}, request,
    )
    await db.commit()

    logger.info("Price range import: %s", summary)
    return PricingImportResponse(
        success=not errors,
        created=created,
        updated=updated,
        skipped=skipped,
        errors=errors,
        summary=summary,
    )


@router.post("/import/operational-costs", response_model=PricingImportResponse)
async def import_operational_costs(
    data: OperationalCostImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    property_ids = await _org_property_ids(db, current_user.org_id)
    created = 0
    errors: list[str] = []

    for row_number, row in enumerate(data.rows, start=1):
        if row.property_id not in property_ids:
            errors.append(_not_found(row_number, row.property_id))
            continue
        db.add(OperationalCost(**row.model_dump()))
        created += 1

    summary = f"Created {created} operational costs, failed {len(errors)}"
    await db.flush()
    await AuditService(db).record(
        current_user, AuditAction.IMPORT, "operational_costs", "import",
        {"summary": summary, "errors": errors}, request,
    )
    await db.commit()

    return PricingImportResponse(success=not errors, created=created, errors=errors, summary=summary)


@router.post("/import/minimum-stay-rules", response_model=PricingImportResponse)
async def import_minimum_stay_rules(
    data: MinimumStayRuleImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(edit_financials),
):
    property_ids = await _org_property_ids(db, current_user.org_id)
    created = 0
    errors: list[str] = []

    for row_number, row in enumerate(data.rows, start=1):
        if row.property_id not in property_ids:
            errors.append(_not_found(row_number, row.property_id))
            continue
        db.add(MinimumStayRule(**row.model_dump()))
        created += 1

    summary = f"Created {created} minimum stay rules, failed {len(errors)}"
    await db.flush()
    await AuditService(db).record(
        current_user, AuditAction.IMPORT, "minimum_stay_rules", "import",
        {"summary": summary, "errors": errors}, request,
    )
    await db.commit()

    return PricingImportResponse(success=not errors, created=created, errors=errors, summary=summary)


@router.get("/export/price-ranges", response_model=ExportFile)
async def export_price_ranges(
    request: Request,
    format: str = "csv",
    property_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(view_financials),
):
    """Export price ranges ordered by property, then start date."""
    if format.lower() != "csv":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EXCEL_NOT_SUPPORTED)

    stmt = (
        select(PriceRange, Property.name)
        .join(Property, Property.id == PriceRange.property_id)
        .where(Property.org_id == current_user.org_id)
        .order_by(Property.name, PriceRange.start_date)
    )
    if property_id:
        stmt = stmt.where(PriceRange.property_id == property_id)
    result = await db.execute(stmt)

    rows = [
        [
            property_name,
            r.name,
            r.start_date,
            r.end_date,
            r.owner_nightly_rate,
            r.owner_weekly_rate,
            r.commission_rate,
            r.public_nightly_rate,
            r.public_weekly_rate,
            r.is_validated,
            r.minimum_stay,
        ]
        for r, property_name in result.all()
    ]
    content = to_csv(EXPORT_HEADERS, rows)

    await AuditService(db).record(
        current_user, AuditAction.EXPORT, "price_ranges", "export",
        {"format": "csv", "count": len(rows)}, request,
    )
    await AuditService(db).log_sensitive_access(
        current_user, "FINANCIAL_DATA", property_id, {"section": "price_range_export"}, action="EXPORT"
    )
    await db.commit()

    return ExportFile(filename=dated_filename("price_ranges_export"), content=to_base64(content))
