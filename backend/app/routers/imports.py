"""CSV import endpoints: preview, diagnostics, property upsert and availability import."""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.destination import Destination
from app.models.property import Property
from app.schemas.imports import (
    AvailabilityImportResponse,
    DestinationChoice,
    FieldMappingSchema,
    ImportPreviewResponse,
    PropertyImportResponse,
    RowIssueSchema,
    ValidationSummary,
)
from app.services.availability_import import TEMPLATE_HEADERS, AvailabilityImporter
from app.services.csv_diagnostics import analyze_csv
from app.services.csv_parser import ParseResult, parse_csv
from app.services.exports import to_csv
from app.services.field_mapper import (
    FieldMapping,
    apply_field_mappings,
    auto_map_fields,
    suggest_fields,
)
from app.services.import_validator import all_fields, validate_property_data
from app.services.property_import import IMPORT_MODES, PropertyImporter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/imports", tags=["imports"])

MAX_REPORTED_ISSUES = 100
PREVIEW_ROWS = 10

import_access = require_permission(Permission.PROPERTY_EDIT)


async def _read_csv(file: UploadFile) -> ParseResult:
    """Read an uploaded CSV, enforcing the import size limit."""
    content = await file.read()
    if len(content) > settings.max_import_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size exceeds {settings.max_import_size_mb}MB limit",
        )
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be UTF-8 encoded")

    parsed = parse_csv(text)
    if not parsed.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=parsed.error)
    if not parsed.data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No data found in CSV")
    return parsed


def _custom_mappings(raw: Optional[str]) -> Optional[list[FieldMapping]]:
    """Mappings posted by the client; unreadable input falls back to auto-mapping."""
    if not raw:
        return None
    try:
        items = json.loads(raw)
        return [
            FieldMapping(item["csv_field"], item["property_field"], float(item.get("confidence", 1.0)))
            for item in items
        ]
    except (ValueError, TypeError, KeyError):
        logger.warning("Ignoring unreadable field mappings")
        return None


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/properties/validate", response_model=ImportPreviewResponse)
async def validate_property_import(
    file: UploadFile = File(...),
    mappings: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(import_access),
):
    """Dry run: map headers, validate every row and preview the first ones."""
    parsed = await _read_csv(file)
    fields = all_fields()
    auto = auto_map_fields(parsed.headers, fields)
    final_mappings = _custom_mappings(mappings) or auto.mappings
    rows = apply_field_mappings(parsed.data, final_mappings)

    result = await db.execute(select(Property.name).where(Property.org_id == current_user.org_id))
    report = validate_property_data(rows, result.scalars().all())

    result = await db.execute(
        select(Destination).where(Destination.org_id == current_user.org_id).order_by(Destination.name)
    )
    destinations = result.scalars().all()

    errors = [RowIssueSchema(**e.to_dict()) for e in report.errors]
    warnings = [RowIssueSchema(**w.to_dict()) for w in report.warnings]

    preview: list[dict[str, Any]] = []
    for index, row in enumerate(rows[:PREVIEW_ROWS]):
        row_number = index + 2
        row_errors = [e for e in errors if e.row == row_number]
        preview.append({
            "row": row_number,
            "data": row,
            "valid": not row_errors,
            "errors": [e.model_dump() for e in row_errors],
            "warnings": [w.model_dump() for w in warnings if w.row == row_number],
        })

    return ImportPreviewResponse(
        total_rows=len(parsed.data),
        headers=parsed.headers,
        mappings=[FieldMappingSchema(**m.to_dict()) for m in final_mappings],
        unmapped_csv_fields=auto.unmapped_csv_fields,
        unmapped_fields=auto.unmapped_fields,
        suggestions=suggest_fields(auto.unmapped_csv_fields, auto.unmapped_fields),
        validation=ValidationSummary(
            valid=report.valid,
            valid_rows=len(report.valid_rows),
            error_count=len(errors),
            warning_count=len(warnings),
            errors=errors[:MAX_REPORTED_ISSUES],
            warnings=warnings[:MAX_REPORTED_ISSUES],
        ),
        preview=preview,
        destinations=[DestinationChoice.model_validate(d) for d in destinations],
    )


@router.post("/properties", response_model=PropertyImportResponse)
async def import_properties(
    request: Request,
    file: UploadFile = File(...),
    mode: str = Form("create"),
    mappings: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(import_access),
):
    """Create and/or update properties from a CSV in one transaction."""
    if mode not in IMPORT_MODES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid import mode: {mode}",
        )

    parsed = await _read_csv(file)
    final_mappings = _custom_mappings(mappings) or auto_map_fields(parsed.headers, all_fields()).mappings
    rows = apply_field_mappings(parsed.data, final_mappings)

    try:
        result = await PropertyImporter(db, current_user, request).run(rows, mode)
    except ValueError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    await db.commit()

    return PropertyImportResponse(
        success=result.success,
        imported=result.imported,
        updated=result.updated,
        failed=result.failed,
        errors=[RowIssueSchema(**e) for e in result.errors],
        warnings=[RowIssueSchema(**w) for w in result.warnings],
    )


@router.post("/analyze")
async def analyze_import_file(
    file: UploadFile = File(...),
    current_user: AuthenticatedUser = Depends(import_access),
):
    """Structural diagnostics for an availability CSV before it is imported."""
    parsed = await _read_csv(file)
    return analyze_csv(parsed).to_dict()


@router.get("/properties/template")
async def property_import_template(
    current_user: AuthenticatedUser = Depends(import_access),
):
    return _csv_response(to_csv(all_fields(), []), "property-import-template.csv")


@router.get("/bookings/template")
async def booking_import_template(
    current_user: AuthenticatedUser = Depends(import_access),
):
    return _csv_response(to_csv(TEMPLATE_HEADERS, []), "availability-import-template.csv")


@router.post("/bookings", response_model=AvailabilityImportResponse)
async def import_availability(
    request: Request,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(import_access),
):
    """Import calendar entries; overlaps are reported as warnings, not rejected."""
    parsed = await _read_csv(file)
    result = await AvailabilityImporter(db, current_user, request).run(parsed.data)
    await db.commit()

    return AvailabilityImportResponse(
        success=result.success,
        imported=result.imported,
        errors=[RowIssueSchema(**e) for e in result.errors],
        warnings=[RowIssueSchema(**w) for w in result.warnings],
    )
