"""Role to permission map for back-office actions."""

from enum import Enum
from typing import Optional, Union


class UserRole(str, Enum):
    """Role held by a member inside an organization."""
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    VIEWER = "viewer"


class Permission(str, Enum):
    """Operation strings checked before an action runs."""
    PROPERTY_VIEW = "property:view"
    PROPERTY_EDIT = "property:edit"
    PROPERTY_DELETE = "property:delete"

    INTERNAL_VIEW = "internal:view"
    INTERNAL_EDIT = "internal:edit"

    FINANCIAL_VIEW = "financial:view"
    FINANCIAL_EDIT = "financial:edit"

    CONTACTS_VIEW = "contacts:view"
    CONTACTS_EDIT = "contacts:edit"

    OWNER_VIEW = "owner:view"
    OWNER_EDIT = "owner:edit"

    VENDOR_VIEW = "vendor:view"
    VENDOR_EDIT = "vendor:edit"

    LEGAL_DOCUMENT_VIEW = "legal_document:view"
    LEGAL_DOCUMENT_CREATE = "legal_document:create"
    LEGAL_DOCUMENT_EDIT = "legal_document:edit"
    LEGAL_DOCUMENT_DELETE = "legal_document:delete"

    EQUIPMENT_REQUEST_VIEW = "equipment_request:view"
    EQUIPMENT_REQUEST_CREATE = "equipment_request:create"
    EQUIPMENT_REQUEST_EDIT = "equipment_request:edit"
    EQUIPMENT_REQUEST_APPROVE = "equipment_request:approve"
    EQUIPMENT_REQUEST_DELETE = "equipment_request:delete"


ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.ADMIN: frozenset(Permission),
    UserRole.MANAGER: frozenset({
        Permission.PROPERTY_VIEW,
        Permission.PROPERTY_EDIT,
        Permission.INTERNAL_VIEW,
        Permission.INTERNAL_EDIT,
        Permission.CONTACTS_VIEW,
        Permission.CONTACTS_EDIT,
        Permission.VENDOR_VIEW,
        Permission.VENDOR_EDIT,
        Permission.LEGAL_DOCUMENT_VIEW,
        Permission.LEGAL_DOCUMENT_CREATE,
        Permission.LEGAL_DOCUMENT_EDIT,
        Permission.EQUIPMENT_REQUEST_VIEW,
        Permission.EQUIPMENT_REQUEST_CREATE,
        Permission.EQUIPMENT_REQUEST_EDIT,
        Permission.EQUIPMENT_REQUEST_APPROVE,
    }),
    UserRole.STAFF: frozenset({
        Permission.PROPERTY_VIEW,
        Permission.PROPERTY_EDIT,
        Permission.EQUIPMENT_REQUEST_VIEW,
        Permission.EQUIPMENT_REQUEST_CREATE,
    }),
    UserRole.VIEWER: frozenset({
        Permission.PROPERTY_VIEW,
    }),
}

# Dashboard sections gated behind a view permission; anything else is open.
SECTION_PERMISSIONS: dict[str, Permission] = {
    "internal": Permission.INTERNAL_VIEW,
    "financial": Permission.FINANCIAL_VIEW,
    "owner": Permission.OWNER_VIEW,
    "contacts": Permission.CONTACTS_VIEW,
    "vendor": Permission.VENDOR_VIEW,
}


def resolve_role(role: Optional[Union[str, UserRole]]) -> UserRole:
    """Coerce a stored role value, falling back to viewer."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(str(role).lower()) if role else UserRole.VIEWER
    except ValueError:
        return UserRole.VIEWER


def role_permissions(role: Optional[Union[str, UserRole]]) -> frozenset[Permission]:
    return ROLE_PERMISSIONS[resolve_role(role)]


def has_permission(role: Optional[Union[str, UserRole]], permission: Permission) -> bool:
    return permission in role_permissions(role)


def can_access_section(role: Optional[Union[str, UserRole]], section: str) -> bool:
    """Check whether a role may open a dashboard section."""
    permission = SECTION_PERMISSIONS.get(section)
    if permission is None:
        return True
    return has_permission(role, permission)
