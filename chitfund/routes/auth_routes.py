"""
Authentication routes: login, session validation, logout.
"""
from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from chitfund import auth
from chitfund.config import SESSION_COOKIE_NAME, SESSION_MAX_AGE
from chitfund.database import Store
from chitfund.dependencies import get_session_token, get_store
from chitfund.responses import ok

router = APIRouter()


@router.post("/login")
async def login_submit(request: Request, payload: dict = Body(...), store: Store = Depends(get_store)):
    """Check credentials and set the session cookie."""
    result = auth.login(
        store,
        payload.get("username"),
        payload.get("password"),
        request.app.state.login_throttle,
    )

    response = JSONResponse(ok(token=result["token"], user=result["user"], message="Login successful"))
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=result["token"],
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
    )
    return response


@router.post("/validate-session")
async def validate_session(request: Request, payload: dict = Body(default=None), store: Store = Depends(get_store)):
    """Report whether a token (body, cookie or bearer header) is still valid."""
    token = (payload or {}).get("token") or get_session_token(request)
    user = auth.validate_session(store, token)
    if not user:
        return ok(valid=False, error="Invalid or expired token")
    return ok(valid=True, user=user)


@router.post("/logout")
async def logout():
    """Tokens are stateless; logging out drops the cookie."""
    response = JSONResponse(ok(message="Logged out successfully"))
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response
