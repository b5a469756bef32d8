"""User listing for administrators (SUPER_ADMIN, ADMIN)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import require_roles
from app.core.database import get_db
from app.models import User, UserRole
from app.schemas.auth import CurrentUser, UserOut
from app.schemas.users import UsersListResponse

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_roles(UserRole.SUPER_ADMIN, UserRole.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users without password digests."""
    users = db.query(User).order_by(User.id).all()
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])
