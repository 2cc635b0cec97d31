"""
Authentication dependencies for API routes.

Provides:
- get_actor: FastAPI dependency building the Actor from gateway headers
- require_auth: FastAPI dependency that requires an authenticated caller

Authentication itself happens upstream: the gateway validates the session
and forwards the caller's identity and directory roles as request headers.

    X-User-Id:    opaque user identity (required)
    X-User-Roles: comma-separated role names (optional)
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from backend.src.services.approval_workflow import Actor
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

USER_HEADER = "X-User-Id"
ROLES_HEADER = "X-User-Roles"


async def get_actor(
    x_user_id: Optional[str] = Header(None, alias=USER_HEADER),
    x_user_roles: Optional[str] = Header(None, alias=ROLES_HEADER),
) -> Optional[Actor]:
    """
    Build the Actor for the current request.

    Returns:
        Actor, or None when no identity header was forwarded
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        return None

    roles = (x_user_roles or "").split(",")
    return Actor.of(user_id, roles)


async def require_auth(
    actor: Optional[Actor] = Depends(get_actor)
) -> Actor:
    """
    FastAPI dependency that requires an authenticated caller.

    Raises:
        HTTPException 401: If the identity header is missing

    Example:
        @router.get("/items")
        async def list_items(actor: Actor = Depends(require_auth)):
            return service.list_items(actor)
    """
    if actor is None:
        logger.warning("Rejected request without caller identity")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return actor


__all__ = [
    "Actor",
    "get_actor",
    "require_auth",
    "USER_HEADER",
    "ROLES_HEADER",
]
