"""Contacts router."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.core.pagination import ilike_any, is_set, page_count, paginate
from app.core.permissions import Permission
from app.core.security import require_permission, AuthenticatedUser
from app.models.contact import Contact, ContactProperty
from app.models.enums import AuditAction, ContactCategory, ContactPropertyRelationship
from app.models.property import Property
from app.schemas.base import BulkDeleteResponse, ExportFile, IdList
from app.schemas.contact import (
    ContactCreate,
    ContactImportRequest,
    ContactImportResponse,
    ContactListResponse,
    ContactPropertyLink,
    ContactResponse,
    ContactUpdate,
    LinkContactRequest,
    LinkedProperty,
    UniquenessResponse,
)
from app.services.audit import AuditService, snapshot
from app.services.exports import dated_filename, to_base64, to_csv
from app.services.field_mapper import calculate_similarity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])

EXPORT_HEADERS = [
    "firstName",
    "lastName",
    "email",
    "phone",
    "category",
    "language",
    "comments",
    "linkedProperties",
]
EXCEL_NOT_SUPPORTED = "Excel export not yet implemented. Please use CSV format."
MAX_SUGGESTIONS = 3


def _with_links(stmt):
    return stmt.options(
        selectinload(Contact.property_links).selectinload(ContactProperty.property)
    )


def contact_response(contact: Contact) -> ContactResponse:
    response = ContactResponse.model_validate(contact)
    response.properties = [
        LinkedProperty(
            property_id=link.property_id,
            property_name=link.property.name,
            relationship=link.relationship_type,
        )
        for link in contact.property_links
    ]
    return response


async def _get_contact(db: AsyncSession, contact_id: UUID, org_id: UUID) -> Contact:
    result = await db.execute(
        _with_links(select(Contact))
        .where(Contact.id == contact_id, Contact.org_id == org_id)
        .execution_options(populate_existing=True)
    )
    contact = result.scalar_one_or_none()
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


async def _email_taken(
    db: AsyncSession,
    org_id: UUID,
    email: Optional[str],
    exclude_id: Optional[UUID] = None,
) -> bool:
    if not email:
        return False
    stmt = select(Contact.id).where(
        Contact.org_id == org_id,
        func.lower(Contact.email) == email.lower(),
    )
    if exclude_id:
        stmt = stmt.where(Contact.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _check_properties(db: AsyncSession, org_id: UUID, links: list[ContactPropertyLink]) -> None:
    ids = {link.property_id for link in links}
    if not ids:
        return
    result = await db.execute(
        select(func.count(Property.id)).where(Property.id.in_(ids), Property.org_id == org_id)
    )
    if result.scalar() != len(ids):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")


def _link_rows(contact_id: UUID, links: list[ContactPropertyLink]) -> list[ContactProperty]:
    seen = {}
    for link in links:
        seen[link.property_id] = link.relationship
    return [
        ContactProperty(contact_id=contact_id, property_id=pid, relationship_type=rel)
        for pid, rel in seen.items()
    ]


def _filtered(
    org_id: UUID,
    search: Optional[str] = None,
    category: Optional[str] = None,
    language: Optional[str] = None,
    has_linked_properties: Optional[bool] = None,
):
    stmt = _with_links(select(Contact)).where(Contact.org_id == org_id)
    if search:
        stmt = stmt.where(ilike_any(
            search, Contact.first_name, Contact.last_name, Contact.email, Contact.phone
        ))
    if is_set(category):
        try:
            stmt = stmt.where(Contact.category == ContactCategory(category.upper()))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category")
    if language:
        stmt = stmt.where(Contact.language == language)
    if has_linked_properties is not None:
        linked = exists().where(ContactProperty.contact_id == Contact.id)
        stmt = stmt.where(linked if has_linked_properties else ~linked)
    return stmt.order_by(Contact.last_name, Contact.first_name)


@router.get("", response_model=ContactListResponse)
async def list_contacts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    category: Optional[str] = None,
    language: Optional[str] = None,
    has_linked_properties: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_VIEW)),
):
    """List contacts ordered by last name, then first name."""
    stmt = _filtered(current_user.org_id, search, category, language, has_linked_properties)
    contacts, total = await paginate(db, stmt, page, page_size)

    return ContactListResponse(
        contacts=[contact_response(c) for c in contacts],
        total=total,
        page=page,
        page_size=page_size,
        page_count=page_count(total, page_size),
    )


@router.get("/search", response_model=list[ContactResponse])
async def search_contacts(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_VIEW)),
):
    stmt = _filtered(current_user.org_id, search=q).limit(limit)
    result = await db.execute(stmt)
    return [contact_response(c) for c in result.scalars().all()]


@router.get("/check-uniqueness", response_model=UniquenessResponse)
async def check_email_uniqueness(
    email: str,
    exclude_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_VIEW)),
):
    taken = await _email_taken(db, current_user.org_id, email, exclude_id)
    return UniquenessResponse(is_unique=not taken)


@router.get("/export", response_model=ExportFile)
async def export_contacts(
    request: Request,
    format: str = "csv",
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_VIEW)),
):
    """Export contacts as a base64 CSV file."""
    if format.lower() != "csv":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EXCEL_NOT_SUPPORTED)

    result = await db.execute(_filtered(current_user.org_id, search, category))
    contacts = result.scalars().all()

    rows = [
        [
            c.first_name,
            c.last_name,
            c.email,
            c.phone,
            c.category,
            c.language,
            c.comments,
            "; ".join(link.property.name for link in c.property_links),
        ]
        for c in contacts
    ]
    content = to_csv(EXPORT_HEADERS, rows, quote_all=True)

    await AuditService(db).record(
        current_user, AuditAction.EXPORT, "contact", "export",
        {"format": "csv", "count": len(contacts)}, request,
    )
    await db.commit()

    return ExportFile(filename=dated_filename("contacts_export"), content=to_base64(content))


@router.post("/import", response_model=ContactImportResponse)
async def import_contacts(
    data: ContactImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    """Import contacts, matching existing ones by email."""
    result = await db.execute(select(Property.id, Property.name).where(Property.org_id == current_user.org_id))
    properties = result.all()
    by_name = {name.lower(): pid for pid, name in properties}
    by_id = {str(pid): pid for pid, _ in properties}

    def resolve(reference: str, row_number: int, errors: list[str]) -> Optional[UUID]:
        reference = reference.strip()
        if reference.lower().startswith("name:"):
            name = reference[5:].strip()
            pid = by_name.get(name.lower())
            if pid:
                return pid
            ranked = sorted(
                (n for _, n in properties),
                key=lambda n: calculate_similarity(name, n),
                reverse=True,
            )[:MAX_SUGGESTIONS]
            message = f'Row {row_number}: Property "{name}" not found'
            if ranked:
                message += f". Similar properties: {', '.join(ranked)}"
            errors.append(message)
            return None
        pid = by_id.get(reference)
        if not pid:
            errors.append(f'Row {row_number}: Property "{reference}" not found')
        return pid

    imported = skipped = updated = 0
    errors: list[str] = []

    for row_number, row in enumerate(data.contacts, start=1):
        existing = None
        if row.email:
            lookup = await db.execute(
                _with_links(select(Contact)).where(
                    Contact.org_id == current_user.org_id,
                    func.lower(Contact.email) == row.email.lower(),
                )
            )
            existing = lookup.scalars().first()

        if existing and not data.update_existing:
            if data.skip_duplicates:
                skipped += 1
            else:
                errors.append(f"Row {row_number}: A contact with this email already exists")
            continue

        fields = row.model_dump(exclude={"linked_properties"}, exclude_none=True)
        if existing:
            contact = existing
            for field, value in fields.items():
                setattr(contact, field, value)
            linked = {link.property_id for link in contact.property_links}
            updated += 1
        else:
            contact = Contact(org_id=current_user.org_id, **fields)
            db.add(contact)
            await db.flush()
            linked = set()
            imported += 1

        for reference in row.linked_properties:
            pid = resolve(reference, row_number, errors)
            if pid and pid not in linked:
                db.add(ContactProperty(
                    contact_id=contact.id,
                    property_id=pid,
                    relationship_type=ContactPropertyRelationship.OTHER,
                ))
                linked.add(pid)

    await db.flush()
    await AuditService(db).record(
        current_user, AuditAction.IMPORT, "contact", "import",
        {
            "summary": f"Imported {imported}, updated {updated}, skipped {skipped}",
            "errors": len(errors),
        },
        request,
    )
    await db.commit()

    logger.info(
        "Contact import: %d imported, %d updated, %d skipped, %d errors",
        imported, updated, skipped, len(errors),
    )
    return ContactImportResponse(imported=imported, skipped=skipped, updated=updated, errors=errors)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_contacts(
    data: IdList,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    result = await db.execute(
        select(Contact).where(Contact.id.in_(data.ids), Contact.org_id == current_user.org_id)
    )
    contacts = result.scalars().all()

    await AuditService(db).record(
        current_user, AuditAction.BULK_DELETE, "contact", "bulk",
        {"deleted_ids": [str(c.id) for c in contacts], "count": len(contacts)},
        request,
    )
    for contact in contacts:
        await db.delete(contact)
    await db.commit()

    return BulkDeleteResponse(deleted=len(contacts))


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    data: ContactCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    """Create a contact with its property links."""
    if await _email_taken(db, current_user.org_id, data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A contact with this email already exists",
        )
    await _check_properties(db, current_user.org_id, data.contact_properties)

    contact = Contact(org_id=current_user.org_id, **data.model_dump(exclude={"contact_properties"}))
    db.add(contact)
    await db.flush()
    db.add_all(_link_rows(contact.id, data.contact_properties))
    await db.flush()

    await AuditService(db).record(
        current_user, AuditAction.CREATE, "contact", contact.id,
        {
            "summary": f"Created contact: {contact.first_name} {contact.last_name}",
            "created": snapshot(contact),
        },
        request,
    )
    await db.commit()

    contact = await _get_contact(db, contact.id, current_user.org_id)
    return contact_response(contact)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_VIEW)),
):
    contact = await _get_contact(db, contact_id, current_user.org_id)
    return contact_response(contact)


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    """Update a contact. A `contact_properties` list replaces every link."""
    contact = await _get_contact(db, contact_id, current_user.org_id)
    before = snapshot(contact)

    update_data = data.model_dump(exclude_unset=True, exclude={"contact_properties"})
    if update_data.get("email") and await _email_taken(
        db, current_user.org_id, update_data["email"], exclude_id=contact.id
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A contact with this email already exists",
        )

    for field, value in update_data.items():
        setattr(contact, field, value)

    if data.contact_properties is not None:
        await _check_properties(db, current_user.org_id, data.contact_properties)
        contact.property_links.clear()
        await db.flush()
        contact.property_links.extend(_link_rows(contact.id, data.contact_properties))

    await db.flush()
    await AuditService(db).log_update(
        current_user, "contact", contact.id, before, snapshot(contact), request
    )
    await db.commit()

    contact = await _get_contact(db, contact.id, current_user.org_id)
    return contact_response(contact)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    contact = await _get_contact(db, contact_id, current_user.org_id)

    await AuditService(db).log_delete(current_user, "contact", contact, request)
    await db.delete(contact)
    await db.commit()


@router.post("/{contact_id}/properties", status_code=status.HTTP_201_CREATED)
async def link_contact_to_property(
    contact_id: UUID,
    data: LinkContactRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    """Link a contact to a property."""
    contact = await _get_contact(db, contact_id, current_user.org_id)
    await _check_properties(
        db, current_user.org_id, [ContactPropertyLink(property_id=data.property_id)]
    )

    if any(link.property_id == data.property_id for link in contact.property_links):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Contact is already linked to this property",
        )

    link = ContactProperty(
        contact_id=contact.id,
        property_id=data.property_id,
        relationship_type=data.relationship,
    )
    db.add(link)
    await db.flush()

    await AuditService(db).record(
        current_user, AuditAction.LINK, "contact_property_link",
        f"{contact.id}_{data.property_id}",
        {"relationship": data.relationship.value},
        request,
    )
    await db.commit()

    return {"id": str(link.id), "relationship": data.relationship.value}


@router.delete("/{contact_id}/properties/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_contact_from_property(
    contact_id: UUID,
    property_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_permission(Permission.CONTACTS_EDIT)),
):
    contact = await _get_contact(db, contact_id, current_user.org_id)

    link = next((item for item in contact.property_links if item.property_id == property_id), None)
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact is not linked to this property",
        )

    await AuditService(db).record(
        current_user, AuditAction.UNLINK, "contact_property_link",
        f"{contact.id}_{property_id}",
        {"relationship": link.relationship_type.value},
        request,
    )
    await db.delete(link)
    await db.commit()
