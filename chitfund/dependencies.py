"""
Common dependencies for route handlers.
"""
from typing import Optional

from fastapi import Depends, Request

from chitfund.auth import validate_session
from chitfund.config import SESSION_COOKIE_NAME
from chitfund.database import Store
from chitfund.exceptions import AuthenticationError, ConnectionError


async def get_store(request: Request) -> Store:
    """The store opened at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None or not store.is_open:
        raise ConnectionError("Database service not initialized")
    return store


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the cookie, or from an Authorization: Bearer header."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


async def get_current_user(request: Request, store: Store = Depends(get_store)) -> Optional[dict]:
    """
    Get the current logged-in user from the session token.
    Returns user dict or None if not authenticated.
    """
    token = get_session_token(request)
    if not token:
        return None
    return validate_session(store, token)


async def require_auth(user: Optional[dict] = Depends(get_current_user)) -> dict:
    """Dependency that requires authentication."""
    if not user:
        raise AuthenticationError("Not authenticated")
    return user
