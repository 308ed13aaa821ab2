"""Legal document schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, Field, field_validator

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin
from app.models.enums import LegalDocumentCategory, LegalDocumentStatus


def _check_tags(tags: Optional[list[str]]) -> Optional[list[str]]:
    if tags is None:
        return tags
    for tag in tags:
        if len(tag) > 50:
            raise ValueError("Tags must be at most 50 characters")
    return tags


class LegalDocumentMetadata(BaseSchema):
    """Form fields sent with an upload."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    category: LegalDocumentCategory
    subcategory: Optional[str] = Field(None, max_length=100)
    property_id: Optional[UUID] = None
    expiry_date: Optional[datetime] = None
    reminder_days: Optional[int] = Field(None, ge=0, le=365)
    tags: list[str] = []

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return _check_tags(v)


class LegalDocumentUpdate(PartialUpdate):
    not_nullable = ("name", "category", "status", "tags")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[LegalDocumentCategory] = None
    subcategory: Optional[str] = Field(None, max_length=100)
    status: Optional[LegalDocumentStatus] = None
    property_id: Optional[UUID] = None
    expiry_date: Optional[datetime] = None
    reminder_days: Optional[int] = Field(None, ge=0, le=365)
    tags: Optional[list[str]] = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return _check_tags(v)


class LegalDocumentVersionResponse(BaseSchema, IDMixin):
    document_id: UUID
    version_number: int
    url: str
    file_size: int
    uploaded_by: str
    uploaded_at: datetime
    comment: Optional[str] = None


class LegalDocumentResponse(BaseSchema, IDMixin, TimestampMixin):
    org_id: UUID
    property_id: Optional[UUID] = None
    property_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    category: LegalDocumentCategory
    subcategory: Optional[str] = None
    status: LegalDocumentStatus
    expiry_date: Optional[datetime] = None
    reminder_days: Optional[int] = None
    url: str
    file_size: int
    mime_type: str
    uploaded_by: str
    uploaded_at: datetime
    last_accessed_at: Optional[datetime] = None
    tags: list[str] = []
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("extra_data", "metadata")
    )
    versions: list[LegalDocumentVersionResponse] = []


class LegalDocumentListResponse(BaseSchema):
    documents: list[LegalDocumentResponse]
    total_count: int
    page: int
    page_size: int
    has_more: bool


class BulkDownloadRequest(BaseSchema):
    document_ids: list[UUID] = Field(..., min_length=1)
    include_versions: bool = False


class DownloadFile(BaseSchema):
    document_id: str
    path: str
    size: Optional[int] = None
    download_url: str


class BulkDownloadResponse(BaseSchema):
    filename: str
    files: list[DownloadFile]
    total_size: int


class DownloadUrlResponse(BaseSchema):
    url: str
    expires_in: int
