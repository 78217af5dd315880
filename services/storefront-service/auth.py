"""Authentication for the storefront: bearer session JWTs and admin checks."""

import logging
from typing import Optional

import jwt
from fastapi import Request

from config import settings
from db import get_user

from packages.shared.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)


def verify_session_token(token: str) -> Optional[dict]:
    """Decode an HS256 session token. Returns None when invalid or auth is unconfigured."""
    if not settings.auth_jwt_secret:
        return None
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=["HS256"],
            options={"verify_aud": False},
        )
    except jwt.PyJWTError as e:
        logger.warning("Session JWT verify failed: %s", e)
        return None


def user_from_request(request: Request) -> Optional[dict]:
    """Resolve {id, email} from the Authorization header."""
    auth_header = request.headers.get("Authorization") or ""
    if not auth_header.lower().startswith("bearer "):
        return None
    token = auth_header[7:].strip()
    if not token:
        return None
    payload = verify_session_token(token)
    if not payload or not payload.get("sub"):
        return None
    return {"id": str(payload["sub"]), "email": payload.get("email")}


def current_user(request: Request) -> Optional[dict]:
    """Dependency: the signed-in user or None (guest)."""
    return getattr(request.state, "user", None)


def require_user(request: Request) -> dict:
    """Dependency: a signed-in user. Raises 401 otherwise."""
    user = getattr(request.state, "user", None)
    if not user:
        raise UnauthorizedError("Authentication required")
    return user


async def require_admin(request: Request) -> dict:
    """Dependency: a signed-in user whose users row has is_admin.

    When AUTH_REQUIRED is off (local development) everyone is treated as admin.
    """
    user = getattr(request.state, "user", None)
    if not settings.auth_required:
        return user or {"id": "dev-admin", "email": None}
    if not user:
        raise UnauthorizedError("Authentication required")
    row = await get_user(user["id"])
    if not row or not row.get("is_admin"):
        raise ForbiddenError("Admin access required")
    return user
