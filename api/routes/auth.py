"""
api/routes/auth.py -- Login and logout.

Routes:
  POST /api/login   -- password login; issues a token and sets the credential cookie
  POST /api/logout  -- clears the credential cookie

Security:
  [H2] POST /login is rate-limited per client IP (Settings.login_rate_limit).
  [C1] authenticate_user() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on login responses.
  Unknown username and wrong password return the same bad_credentials error.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MessageResponse
from auth.errors import SigningError
from auth.store import UserStore
from auth.tokens import TokenService, authenticate_user, clear_auth_cookie, set_auth_cookie
from core.config import get_settings

logger = logging.getLogger("neonthreads.api.auth")

# Auth policy:
# - POST /api/login:  public -- login endpoint must be unauthenticated
# - POST /api/logout: public -- clearing a cookie needs no prior auth
router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


@limiter.limit(_login_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; issue a token and set the cookie.

    The token is returned in the body as well so non-browser clients can
    replay it by setting the cookie themselves.
    """
    user_store: UserStore = request.app.state.user_store
    tokens: TokenService = request.app.state.tokens
    settings = request.app.state.settings

    user = authenticate_user(user_store, body.username, body.password)
    if user is None:
        logger.info("Failed login for username %r", body.username)
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid username or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    try:
        token = tokens.issue(user.id)
    except SigningError:
        logger.exception("Could not sign token for user id=%s", user.id)
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "internal_error", "message": "An unexpected error occurred."}},
        )

    logger.info("User %s (id=%s, level=%d) logged in", user.username, user.id, user.level)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            expires_in=tokens.expire_seconds,
            user_id=user.id,
            username=user.username,
            level=user.level,
        ).model_dump(),
    )
    set_auth_cookie(resp, token, settings)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> JSONResponse:
    """Clear the credential cookie.

    Tokens are stateless, so a copy of the token held elsewhere stays valid
    until it expires.
    """
    resp = JSONResponse(content={"message": "logged out"})
    clear_auth_cookie(resp, request.app.state.settings)
    return resp
