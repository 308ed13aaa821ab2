"""Contact schemas."""

from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin
from app.models.enums import ContactCategory, ContactPropertyRelationship


class ContactPropertyLink(BaseSchema):
    property_id: UUID
    relationship: ContactPropertyRelationship = ContactPropertyRelationship.OTHER


class ContactCreate(BaseSchema):
    """Create a contact with optional property links."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    language: str = Field("English", max_length=50)
    category: ContactCategory = ContactCategory.OTHER
    comments: Optional[str] = None
    contact_properties: list[ContactPropertyLink] = []


class ContactUpdate(PartialUpdate):
    """Update a contact. `contact_properties`, when given, replaces every link."""

    not_nullable = ("first_name", "last_name", "language", "category")

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    language: Optional[str] = Field(None, max_length=50)
    category: Optional[ContactCategory] = None
    comments: Optional[str] = None
    contact_properties: Optional[list[ContactPropertyLink]] = None


class LinkedProperty(BaseSchema):
    property_id: UUID
    property_name: str
    relationship: ContactPropertyRelationship


class ContactResponse(BaseSchema, IDMixin, TimestampMixin):
    org_id: UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    language: str
    category: ContactCategory
    comments: Optional[str] = None
    properties: list[LinkedProperty] = []


class ContactListResponse(BaseSchema):
    contacts: list[ContactResponse]
    total: int
    page: int
    page_size: int
    page_count: int


class UniquenessResponse(BaseSchema):
    is_unique: bool


class LinkContactRequest(BaseSchema):
    property_id: UUID
    relationship: ContactPropertyRelationship = ContactPropertyRelationship.OTHER


class PropertyContactResponse(BaseSchema):
    """A contact as seen from a property."""

    link_id: UUID
    contact_id: UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    category: ContactCategory
    relationship: ContactPropertyRelationship


class ContactImportRow(BaseSchema):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    language: Optional[str] = Field(None, max_length=50)
    category: Optional[ContactCategory] = None
    comments: Optional[str] = None
    linked_properties: list[str] = []


class ContactImportRequest(BaseSchema):
    contacts: list[ContactImportRow] = Field(..., min_length=1)
    skip_duplicates: bool = True
    update_existing: bool = False


class ContactImportResponse(BaseSchema):
    imported: int
    skipped: int
    updated: int
    errors: list[str] = []
