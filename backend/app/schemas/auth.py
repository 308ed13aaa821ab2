"""Auth schemas."""

from app.schemas.base import BaseSchema


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    db_user_id: str | None = None
    org_id: str | None = None
    org_role: str | None = None
    role: str
    permissions: list[str] = []
    sections: list[str] = []
