"""
api/routes/auth.py -- Login endpoint.

Routes:
  POST /api/login  -- directory login; returns a bearer session token

Security:
  POST /api/login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Wrong username and wrong password produce the same 401 "bad_credentials"
  answer; the directory's own error text is logged, never returned.
  Cache-Control: no-store on every login response -- it carries a token.
  There is no logout route: tokens are stateless and expire on their own.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, UserInfo
from auth.issuer import CredentialIssuer
from core.config import get_settings
from core.errors import FileVaultError

router = APIRouter()


@limiter.limit(get_settings().login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate against the directory and return a session token.

    First successful login for a uid also provisions its storage namespace.
    """
    issuer: CredentialIssuer = request.app.state.issuer
    try:
        result = issuer.login(body.username, body.password)
    except FileVaultError as exc:
        resp = JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": {"code": exc.code, "message": exc.message}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    session = result.session
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            user=UserInfo(uid=session.user_id, dn=session.dn, home_directory=session.storage_root),
            token=session.token,
            expires_at=session.expires_at,
        ).model_dump(mode="json", by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
