"""CSV import request/response schemas."""

from typing import Any, Optional
from uuid import UUID

from app.schemas.base import BaseSchema


class FieldMappingSchema(BaseSchema):
    csv_field: str
    property_field: str
    confidence: float = 1.0


class RowIssueSchema(BaseSchema):
    row: int
    field: Optional[str] = None
    message: str


class ValidationSummary(BaseSchema):
    valid: bool
    valid_rows: int
    error_count: int
    warning_count: int
    errors: list[RowIssueSchema]
    warnings: list[RowIssueSchema]


class DestinationChoice(BaseSchema):
    id: UUID
    name: str
    country: str


class ImportPreviewResponse(BaseSchema):
    total_rows: int
    headers: list[str]
    mappings: list[FieldMappingSchema]
    unmapped_csv_fields: list[str]
    unmapped_fields: list[str]
    suggestions: dict[str, list[str]]
    validation: ValidationSummary
    preview: list[dict[str, Any]]
    destinations: list[DestinationChoice]


class PropertyImportResponse(BaseSchema):
    success: bool
    imported: int
    updated: int
    failed: int
    errors: list[RowIssueSchema]
    warnings: list[RowIssueSchema]


class AvailabilityImportResponse(BaseSchema):
    success: bool
    imported: int
    errors: list[RowIssueSchema]
    warnings: list[RowIssueSchema]
