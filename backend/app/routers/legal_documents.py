"""Legal documents router."""

import json
import logging
import time
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from pydantic import ValidationError
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.database import get_db
from app.core.pagination import ilike_any, is_set, paginate
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.enums import (
    AuditAction,
    LegalDocumentCategory,
    LegalDocumentStatus,
    SENSITIVE_DOCUMENT_CATEGORIES,
)
from app.models.legal_document import LegalDocument, LegalDocumentVersion
from app.routers.properties import get_org_property
from app.schemas.base import BulkDeleteResponse, ExportFile, IdList
from app.schemas.legal_document import (
    BulkDownloadRequest,
    BulkDownloadResponse,
    DownloadUrlResponse,
    LegalDocumentListResponse,
    LegalDocumentMetadata,
    LegalDocumentResponse,
    LegalDocumentUpdate,
)
from app.services.audit import AuditService, snapshot
from app.services.exports import dated_filename, to_base64, to_csv
from app.services.legal_documents import build_download_manifest, export_row, refresh_statuses
from app.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/legal-documents", tags=["legal-documents"])

ENTITY_TYPE = "legal_document"

SORT_COLUMNS = {
    "created_at": LegalDocument.created_at,
    "name": LegalDocument.name,
    "expiry_date": LegalDocument.expiry_date,
    "uploaded_at": LegalDocument.uploaded_at,
    "file_size": LegalDocument.file_size,
}

EXPORT_HEADERS = {
    "id": "ID",
    "name": "Name",
    "description": "Description",
    "category": "Category",
    "subcategory": "Subcategory",
    "status": "Status",
    "property_name": "Property",
    "expiry_date": "Expiry Date",
    "uploaded_by": "Uploaded By",
    "uploaded_at": "Uploaded At",
    "file_size": "File Size",
    "tags": "Tags",
}
EXCEL_NOT_SUPPORTED = "Excel export not yet implemented. Please use CSV format."


def _with_relations(stmt):
    return stmt.options(
        selectinload(LegalDocument.property),
        selectinload(LegalDocument.versions),
    )


def document_response(doc: LegalDocument) -> LegalDocumentResponse:
    response = LegalDocumentResponse.model_validate(doc)
    response.property_name = doc.property.name if doc.property else None
    return response


async def _get_document(db: AsyncSession, document_id: UUID, org_id: UUID) -> LegalDocument:
    result = await db.execute(
        _with_relations(select(LegalDocument))
        .where(LegalDocument.id == document_id, LegalDocument.org_id == org_id)
        .execution_options(populate_existing=True)
    )
    doc = result.scalar_one_or_none()
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return doc


async def _read_upload(file: UploadFile, storage: StorageService) -> tuple[bytes, str]:
    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    try:
        storage.validate_upload(
            mime_type, len(content), StorageService.DOCUMENT_MIME_TYPES, settings.max_document_size_mb
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return content, mime_type


async def _discard_upload(db: AsyncSession, storage: StorageService, object_path: str) -> None:
    """Drop a stored file whose database rows could not be written."""
    logger.warning("Removing %s after a failed database write", object_path)
    await db.rollback()
    await storage.delete(object_path)


def _parse_tags(raw: Optional[str]) -> list[str]:
    """Tags arrive as a JSON array or a comma separated string."""
    if not raw:
        return []
    raw = raw.strip()
    if raw.startswith("["):
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid tags")
        return [str(v).strip() for v in values if str(v).strip()]
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _tag_match(tag: str):
    return cast(LegalDocument.tags, String).ilike(f'%"{tag}"%')


def _stored_paths(doc: LegalDocument) -> list[str]:
    """Every object path behind a document, main file included, without duplicates."""
    paths = [version.url for version in doc.versions]
    if doc.url not in paths:
        paths.append(doc.url)
    return paths


def _filtered(
    org_id: UUID,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status_filter: Optional[str] = None,
    property_id: Optional[str] = None,
    expiring_in_days: Optional[int] = None,
    uploaded_after: Optional[datetime] = None,
    uploaded_before: Optional[datetime] = None,
    tags: Optional[list[str]] = None,
):
    stmt = _with_relations(select(LegalDocument)).where(LegalDocument.org_id == org_id)
    if search:
        stmt = stmt.where(or_(
            ilike_any(search, LegalDocument.name, LegalDocument.description),
            cast(LegalDocument.tags, String).ilike(f"%{search.strip()}%"),
        ))
    try:
        if is_set(category):
            stmt = stmt.where(LegalDocument.category == LegalDocumentCategory(category.upper()))
        if is_set(status_filter):
            stmt = stmt.where(LegalDocument.status == LegalDocumentStatus(status_filter.upper()))
        if is_set(property_id):
            stmt = stmt.where(LegalDocument.property_id == UUID(property_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filter value")
    if expiring_in_days is not None:
        now = datetime.utcnow()
        stmt = stmt.where(
            LegalDocument.expiry_date >= now,
            LegalDocument.expiry_date <= now + timedelta(days=expiring_in_days),
        )
    if uploaded_after:
        stmt = stmt.where(LegalDocument.uploaded_at >= uploaded_after)
    if uploaded_before:
        stmt = stmt.where(LegalDocument.uploaded_at <= uploaded_before)
    if tags:
        stmt = stmt.where(or_(*[_tag_match(tag) for tag in tags]))
    return stmt


@router.get("", response_model=LegalDocumentListResponse)
async def list_legal_documents(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    category: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    property_id: Optional[str] = None,
    expiring_in_days: Optional[int] = Query(None, ge=0),
    uploaded_after: Optional[datetime] = None,
    uploaded_before: Optional[datetime] = None,
    tags: Optional[list[str]] = Query(None),
    sort_by: str = Query("created_at", pattern="^(created_at|name|expiry_date|uploaded_at|file_size)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_VIEW)),
):
    """List documents, refreshing expiry-based statuses on the way."""
    stmt = _filtered(
        current_user.org_id, search, category, status_filter, property_id,
        expiring_in_days, uploaded_after, uploaded_before, tags,
    )
    column = SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.desc() if sort_order == "desc" else column.asc())

    documents, total = await paginate(db, stmt, page, page_size)

    if refresh_statuses(documents):
        await db.commit()

    return LegalDocumentListResponse(
        documents=[document_response(d) for d in documents],
        total_count=total,
        page=page,
        page_size=page_size,
        has_more=page * page_size < total,
    )


@router.get("/export", response_model=ExportFile)
async def export_legal_documents(
    request: Request,
    format: str = "csv",
    search: Optional[str] = None,
    category: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    property_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_VIEW)),
):
    """Export document metadata as CSV or JSON."""
    export_format = format.lower()
    if export_format == "xlsx":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EXCEL_NOT_SUPPORTED)
    if export_format not in ("csv", "json"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported export format")

    stmt = _filtered(current_user.org_id, search, category, status_filter, property_id)
    result = await db.execute(stmt.order_by(LegalDocument.created_at.desc()))
    rows = [export_row(doc) for doc in result.scalars().all()]

    if export_format == "json":
        content = json.dumps(rows, indent=2)
        mime_type = "application/json"
    else:
        content = to_csv(
            list(EXPORT_HEADERS.values()),
            [[row[key] for key in EXPORT_HEADERS] for row in rows],
        )
        mime_type = "text/csv"

    await AuditService(db).record(
        current_user, AuditAction.EXPORT, ENTITY_TYPE, "export",
        {"format": export_format, "count": len(rows)}, request,
    )
    await db.commit()

    return ExportFile(
        filename=dated_filename("legal_documents_export", export_format),
        content=to_base64(content),
        mime_type=mime_type,
    )


@router.post("/bulk-download", response_model=BulkDownloadResponse)
async def bulk_download(
    data: BulkDownloadRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_VIEW)),
):
    """Archive manifest with presigned URLs for the selected documents."""
    result = await db.execute(
        _with_relations(select(LegalDocument)).where(
            LegalDocument.id.in_(data.document_ids),
            LegalDocument.org_id == current_user.org_id,
        )
    )
    documents = result.scalars().all()
    if not documents:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No documents found")

    manifest = await build_download_manifest(
        documents, storage, data.include_versions, settings.presign_ttl_seconds
    )
    return BulkDownloadResponse(**manifest)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_legal_documents(
    data: IdList,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_DELETE)),
):
    result = await db.execute(
        _with_relations(select(LegalDocument)).where(
            LegalDocument.id.in_(data.ids),
            LegalDocument.org_id == current_user.org_id,
        )
    )
    documents = result.scalars().all()

    paths = []
    for doc in documents:
        paths.extend(_stored_paths(doc))
        await db.delete(doc)

    await AuditService(db).record(
        current_user, AuditAction.BULK_DELETE_LEGAL_DOCUMENTS, ENTITY_TYPE, "BULK",
        {"deleted_ids": [str(d.id) for d in documents], "count": len(documents)},
        request,
    )
    await db.commit()

    for path in paths:
        await storage.delete(path)

    return BulkDeleteResponse(deleted=len(documents))


@router.post("", response_model=LegalDocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_legal_document(
    request: Request,
    file: UploadFile = File(...),
    name: str = Form(...),
    category: str = Form(...),
    description: Optional[str] = Form(None),
    subcategory: Optional[str] = Form(None),
    property_id: Optional[UUID] = Form(None),
    expiry_date: Optional[datetime] = Form(None),
    reminder_days: Optional[int] = Form(None),
    tags: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_CREATE)),
):
    """Upload a document; the file becomes version 1."""
    try:
        metadata = LegalDocumentMetadata(
            name=name,
            category=category,
            description=description or None,
            subcategory=subcategory or None,
            property_id=property_id,
            expiry_date=expiry_date,
            reminder_days=reminder_days,
            tags=_parse_tags(tags),
        )
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field}: {error['msg']}" if field else error["msg"],
        )

    if metadata.property_id:
        await get_org_property(db, metadata.property_id, current_user.org_id)

    content, mime_type = await _read_upload(file, storage)
    object_path = storage.legal_document_path(
        metadata.property_id, file.filename or metadata.name, int(time.time() * 1000)
    )
    await storage.upload(object_path, content, mime_type)

    uploader = current_user.email or current_user.uid
    try:
        doc = LegalDocument(
            org_id=current_user.org_id,
            url=object_path,
            file_size=len(content),
            mime_type=mime_type,
            uploaded_by=uploader,
            status=LegalDocumentStatus.ACTIVE,
            **metadata.model_dump(),
        )
        db.add(doc)
        await db.flush()

        db.add(LegalDocumentVersion(
            document_id=doc.id,
            version_number=1,
            url=object_path,
            file_size=len(content),
            uploaded_by=uploader,
            comment="Initial version",
        ))
        await AuditService(db).log_create(
            current_user, ENTITY_TYPE, doc, request, action=AuditAction.CREATE_LEGAL_DOCUMENT
        )
        await db.commit()
    except Exception:
        await _discard_upload(db, storage, object_path)
        raise

    doc = await _get_document(db, doc.id, current_user.org_id)
    return document_response(doc)


@router.get("/{document_id}", response_model=LegalDocumentResponse)
async def get_legal_document(
    document_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_VIEW)),
):
    """Get a document with its versions."""
    doc = await _get_document(db, document_id, current_user.org_id)
    doc.last_accessed_at = datetime.utcnow()

    if doc.category in SENSITIVE_DOCUMENT_CATEGORIES:
        await AuditService(db).record(
            current_user, AuditAction.VIEW_LEGAL_DOCUMENT, ENTITY_TYPE, doc.id,
            {"name": doc.name, "category": doc.category.value},
            request,
        )
    await db.commit()

    return document_response(doc)


@router.get("/{document_id}/download-url", response_model=DownloadUrlResponse)
async def get_download_url(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_VIEW)),
):
    doc = await _get_document(db, document_id, current_user.org_id)
    doc.last_accessed_at = datetime.utcnow()
    await db.commit()

    url = await storage.get_download_url(doc.url, settings.presign_ttl_seconds)
    return DownloadUrlResponse(url=url, expires_in=settings.presign_ttl_seconds)


@router.patch("/{document_id}", response_model=LegalDocumentResponse)
async def update_legal_document(
    document_id: UUID,
    data: LegalDocumentUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_EDIT)),
):
    doc = await _get_document(db, document_id, current_user.org_id)
    before = snapshot(doc)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("property_id"):
        await get_org_property(db, update_data["property_id"], current_user.org_id)
    for field, value in update_data.items():
        setattr(doc, field, value)

    await db.flush()
    await AuditService(db).log_update(
        current_user, ENTITY_TYPE, doc.id, before, snapshot(doc), request,
        action=AuditAction.UPDATE_LEGAL_DOCUMENT,
    )
    await db.commit()

    doc = await _get_document(db, doc.id, current_user.org_id)
    return document_response(doc)


@router.post(
    "/{document_id}/versions",
    response_model=LegalDocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_version(
    document_id: UUID,
    request: Request,
    file: UploadFile = File(...),
    comment: Optional[str] = Form(None, max_length=500),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_EDIT)),
):
    """Upload a new version; the document then points at it."""
    doc = await _get_document(db, document_id, current_user.org_id)

    result = await db.execute(
        select(func.max(LegalDocumentVersion.version_number))
        .where(LegalDocumentVersion.document_id == doc.id)
    )
    version_number = (result.scalar() or 0) + 1

    content, mime_type = await _read_upload(file, storage)
    object_path = storage.legal_document_version_path(
        doc.property_id, doc.id, version_number, file.filename or doc.name, int(time.time() * 1000)
    )
    await storage.upload(object_path, content, mime_type)

    uploader = current_user.email or current_user.uid
    try:
        db.add(LegalDocumentVersion(
            document_id=doc.id,
            version_number=version_number,
            url=object_path,
            file_size=len(content),
            uploaded_by=uploader,
            comment=comment,
        ))
        doc.url = object_path
        doc.file_size = len(content)
        doc.mime_type = mime_type
        await db.flush()

        await AuditService(db).record(
            current_user, AuditAction.UPLOAD_LEGAL_DOCUMENT_VERSION, ENTITY_TYPE, doc.id,
            {"version_number": version_number, "file_size": len(content), "comment": comment},
            request,
        )
        await db.commit()
    except Exception:
        await _discard_upload(db, storage, object_path)
        raise

    logger.info("Uploaded version %d of legal document %s", version_number, doc.id)
    doc = await _get_document(db, doc.id, current_user.org_id)
    return document_response(doc)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_legal_document(
    document_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.LEGAL_DOCUMENT_DELETE)),
):
    """Delete a document, its versions and the stored files."""
    doc = await _get_document(db, document_id, current_user.org_id)
    paths = _stored_paths(doc)

    await AuditService(db).log_delete(
        current_user, ENTITY_TYPE, doc, request, action=AuditAction.DELETE_LEGAL_DOCUMENT
    )
    await db.delete(doc)
    await db.commit()

    for path in paths:
        await storage.delete(path)
