from typing import Any, Dict
from uuid import UUID

from app.models.schemas.user import User
from app.services.errors import Forbidden
from app.services.storage import get_current


def is_admin(user_id: UUID | str) -> bool:
    user = get_current("users", User, user_id, "user_id")
    return bool(user is not None and user.is_active and user.is_superuser)


def require_admin(user_id: UUID | str) -> None:
    if not user_id or not is_admin(user_id):
        raise Forbidden("You do not have permission to delete this commitment.")


def require_owner(user: Dict[str, Any], owner_id: UUID | str) -> None:
    """The acting user must own the resource; admins bypass."""
    if user.get("is_superuser"):
        return
    if str(user.get("user_id")) != str(owner_id):
        raise Forbidden("Cannot operate on another user's records")
