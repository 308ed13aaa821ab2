"""Base schema utilities."""

from datetime import datetime
from typing import Any, ClassVar, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        populate_by_name=True,
    )


class PartialUpdate(BaseSchema):
    """PATCH body. Fields may be omitted, but those in `not_nullable` back NOT NULL columns."""

    not_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for name in cls.not_nullable:
                if name in data and data[name] is None:
                    raise ValueError(f"{name} cannot be null")
        return data


class TimestampMixin(BaseModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: datetime
    updated_at: Optional[datetime] = None


class IDMixin(BaseModel):
    """Mixin for UUID id field."""

    id: UUID


class IdList(BaseSchema):
    """Body for bulk operations and reorders."""

    ids: list[UUID]


class BulkDeleteResponse(BaseSchema):
    deleted: int


class ExportFile(BaseSchema):
    """A generated file returned inline."""

    filename: str
    content: str
    mime_type: str = "text/csv"
    encoding: str = "base64"
