"""Audit logging service."""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

from fastapi import Request
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AuthenticatedUser
from app.models.audit import AuditLog, SensitiveDataAccess
from app.models.enums import AuditAction


def to_jsonable(value: Any) -> Any:
    """Convert ORM values (UUIDs, dates, enums) into JSON-safe values."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


def snapshot(obj: Any) -> dict[str, Any]:
    """Column values of an ORM object as a JSON-safe dict."""
    mapper = inspect(obj).mapper
    return {
        attr.key: to_jsonable(getattr(obj, attr.key))
        for attr in mapper.column_attrs
    }


class AuditService:
    """Service for creating audit log entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: Union[AuditAction, str],
        entity_type: str,
        entity_id: Union[UUID, str],
        org_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        changes: Optional[dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Create an audit log entry."""
        entry = AuditLog(
            action=action.value if isinstance(action, AuditAction) else action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            org_id=org_id,
            user_id=user_id,
            changes=to_jsonable(changes or {}),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def record(
        self,
        current_user: AuthenticatedUser,
        action: Union[AuditAction, str],
        entity_type: str,
        entity_id: Union[UUID, str],
        changes: Optional[dict[str, Any]] = None,
        request: Optional[Request] = None,
    ) -> AuditLog:
        """Log on behalf of the caller, taking org/user/ip from the request context."""
        return await self.log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            org_id=current_user.org_id,
            user_id=current_user.db_user_id,
            changes=changes,
            ip_address=request.client.host if request is not None and request.client else None,
            user_agent=request.headers.get("user-agent") if request is not None else None,
        )

    async def log_create(
        self,
        current_user: AuthenticatedUser,
        entity_type: str,
        obj: Any,
        request: Optional[Request] = None,
        action: Union[AuditAction, str] = AuditAction.CREATE,
    ) -> AuditLog:
        """Log a newly created row as {"created": ...}."""
        return await self.record(
            current_user, action, entity_type, obj.id, {"created": snapshot(obj)}, request
        )

    async def log_update(
        self,
        current_user: AuthenticatedUser,
        entity_type: str,
        entity_id: Union[UUID, str],
        before: dict[str, Any],
        after: dict[str, Any],
        request: Optional[Request] = None,
        action: Union[AuditAction, str] = AuditAction.UPDATE,
    ) -> AuditLog:
        """Log an update as {"before": ..., "after": ...}."""
        return await self.record(
            current_user, action, entity_type, entity_id, {"before": before, "after": after}, request
        )

    async def log_delete(
        self,
        current_user: AuthenticatedUser,
        entity_type: str,
        obj: Any,
        request: Optional[Request] = None,
        action: Union[AuditAction, str] = AuditAction.DELETE,
    ) -> AuditLog:
        """Log a deletion as {"deleted": ...}."""
        return await self.record(
            current_user, action, entity_type, obj.id, {"deleted": snapshot(obj)}, request
        )

    async def log_sensitive_access(
        self,
        current_user: AuthenticatedUser,
        data_type: str,
        property_id: Optional[UUID] = None,
        metadata: Optional[dict[str, Any]] = None,
        action: str = "VIEW",
    ) -> SensitiveDataAccess:
        """Record a read of financial or owner data."""
        entry = SensitiveDataAccess(
            org_id=current_user.org_id,
            user_id=current_user.db_user_id,
            user_role=current_user.role.value,
            action=action,
            data_type=data_type,
            property_id=property_id,
            extra_data=to_jsonable(metadata or {}),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry
