"""Legal document expiry tracking, export rows and download manifests."""

import logging
import math
import re
from datetime import datetime
from typing import Any, Iterable, Optional

from app.models.enums import LegalDocumentStatus
from app.services.storage import StorageService

logger = logging.getLogger(__name__)

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size_bytes: int) -> str:
    """Human readable size with at most 2 decimals, e.g. '1.5 MB'."""
    if size_bytes <= 0:
        return "0 Bytes"
    index = 0
    while size_bytes >= 1024 ** (index + 1) and index < len(_SIZE_UNITS) - 1:
        index += 1
    value = round(size_bytes / (1024 ** index), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"


def compute_status(
    current: LegalDocumentStatus,
    expiry_date: Optional[datetime],
    reminder_days: Optional[int],
    now: Optional[datetime] = None,
) -> LegalDocumentStatus:
    """Status implied by the expiry date; archived documents are left alone."""
    if expiry_date is None or current == LegalDocumentStatus.ARCHIVED:
        return current

    now = now or datetime.utcnow()
    days_until_expiry = math.floor((expiry_date - now).total_seconds() / 86400)

    if days_until_expiry < 0:
        return LegalDocumentStatus.EXPIRED
    if reminder_days is not None and days_until_expiry <= reminder_days:
        return LegalDocumentStatus.PENDING_RENEWAL
    return current


def refresh_statuses(documents: Iterable[Any], now: Optional[datetime] = None) -> int:
    """Apply compute_status in place; returns how many documents changed."""
    changed = 0
    for doc in documents:
        new_status = compute_status(doc.status, doc.expiry_date, doc.reminder_days, now)
        if new_status != doc.status:
            logger.info(
                "Legal document %s status %s -> %s",
                doc.id, doc.status.value, new_status.value,
            )
            doc.status = new_status
            changed += 1
    return changed


def export_row(doc: Any) -> dict[str, Any]:
    return {
        "id": str(doc.id),
        "name": doc.name,
        "description": doc.description or "",
        "category": doc.category.value,
        "subcategory": doc.subcategory or "",
        "status": doc.status.value,
        "property_name": doc.property.name if doc.property else "",
        "expiry_date": doc.expiry_date.isoformat() if doc.expiry_date else "",
        "uploaded_by": doc.uploaded_by,
        "uploaded_at": doc.uploaded_at.isoformat() if doc.uploaded_at else "",
        "file_size": format_file_size(doc.file_size),
        "tags": ", ".join(doc.tags or []),
    }


def _extension(path: str) -> str:
    match = re.search(r"\.([^./]+)$", path)
    return f".{match.group(1)}" if match else ""


async def build_download_manifest(
    documents: Iterable[Any],
    storage: StorageService,
    include_versions: bool = False,
    ttl_seconds: int = 3600,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Archive layout for a bulk download, with presigned URLs per file."""
    timestamp = (now or datetime.utcnow()).isoformat().replace(":", "-").replace(".", "-")
    files: list[dict[str, Any]] = []
    total_size = 0

    for doc in documents:
        folder = doc.property.name if doc.property else "General"
        files.append({
            "document_id": str(doc.id),
            "path": f"{folder}/{doc.name}",
            "size": doc.file_size,
            "download_url": await storage.get_download_url(doc.url, ttl_seconds),
        })
        total_size += doc.file_size or 0

        if include_versions:
            stem = re.sub(r"\.[^/.]+$", "", doc.name)
            for version in doc.versions:
                files.append({
                    "document_id": str(doc.id),
                    "path": f"{folder}/versions/{stem}-v{version.version_number}{_extension(version.url)}",
                    "size": version.file_size,
                    "download_url": await storage.get_download_url(version.url, ttl_seconds),
                })
                total_size += version.file_size or 0

    return {
        "filename": f"legal-documents-{timestamp}.zip",
        "files": files,
        "total_size": total_size,
    }
