from typing import Optional

from fastapi import Header, HTTPException, status

from shopcore.config import settings
from shopcore.services.exceptions import ShopError

ADMIN_ACTIONS = {"orders:list_all", "orders:update_status"}
# allowed for the order's owner as well as for admins
OWNER_ACTIONS = {"orders:read", "orders:cancel"}


def current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    """The identity layer in front of this service puts the authenticated user id here."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header"
        )
    return x_user_id


def is_admin(user_id: str) -> bool:
    return user_id in settings.ADMIN_USER_IDS


def authorize(user_id: str, action: str, resource=None) -> bool:
    if is_admin(user_id):
        return True
    if action in ADMIN_ACTIONS:
        return False
    if action in OWNER_ACTIONS:
        return resource is not None and getattr(resource, "user_id", None) == user_id
    return True


def require(user_id: str, action: str, resource=None):
    if not authorize(user_id, action, resource):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def http_error(e: ShopError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.detail())
