"""Audit log schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from app.schemas.base import BaseSchema, IDMixin


class AuditLogResponse(BaseSchema, IDMixin):
    org_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    user_email: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    entity_name: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AuditLogDetailResponse(AuditLogResponse):
    entity_details: Optional[dict[str, Any]] = None


class AuditLogListResponse(BaseSchema):
    logs: list[AuditLogResponse]
    total: int
    page: int
    limit: int
    total_pages: int
