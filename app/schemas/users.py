"""Schemas for user listing (admin only)."""

from pydantic import BaseModel

from app.schemas.auth import UserOut


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[UserOut]
