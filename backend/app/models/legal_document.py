"""LegalDocument and LegalDocumentVersion models."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import LegalDocumentCategory, LegalDocumentStatus

if TYPE_CHECKING:
    from app.models.property import Property


class LegalDocument(Base):
    """A contract, permit or certificate, optionally tied to a property."""

    __tablename__ = "legal_documents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[LegalDocumentCategory] = mapped_column(SQLEnum(LegalDocumentCategory), nullable=False)
    subcategory: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[LegalDocumentStatus] = mapped_column(
        SQLEnum(LegalDocumentStatus),
        default=LegalDocumentStatus.ACTIVE,
        nullable=False,
    )

    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reminder_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Current file
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    uploaded_by: Mapped[str] = mapped_column(String(128), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_accessed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    tags: Mapped[list[str]] = mapped_column(JSONB, default=list)
    extra_data: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    property: Mapped[Optional["Property"]] = relationship("Property")
    versions: Mapped[list["LegalDocumentVersion"]] = relationship(
        "LegalDocumentVersion",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="LegalDocumentVersion.version_number.desc()",
    )


class LegalDocumentVersion(Base):
    """One uploaded revision of a legal document."""

    __tablename__ = "legal_document_versions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("legal_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    uploaded_by: Mapped[str] = mapped_column(String(128), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    comment: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    document: Mapped["LegalDocument"] = relationship("LegalDocument", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_legal_document_version"),
    )
