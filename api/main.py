"""
api/main.py -- FastAPI application entry point for filevault.

Run with:      python main.py
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds every component once from Settings and hangs it on app.state.
Components never read config themselves; tests swap the lifespan to wire the
same components onto temporary directories and a fake directory service.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.files import router as files_router
from audit.recorder import AuditRecorder
from auth.directory import Authenticator, LdapAuthenticator
from auth.issuer import CredentialIssuer
from auth.tokens import SessionTokenCodec
from auth.verifier import SessionVerifier
from core.config import Settings, get_settings
from core.errors import FileVaultError
from storage.gateway import FileGateway
from storage.namespaces import NamespaceManager

__version__ = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("filevault.api")


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def wire_components(app: FastAPI, settings: Settings, authenticator: Authenticator) -> None:
    """Build the component graph and attach it to app.state.

    Shared by the real lifespan and the test lifespan so both run the exact
    same wiring; only the settings and the directory backend differ.
    """
    namespaces = NamespaceManager(Path(settings.storage_base_dir))
    audit = AuditRecorder(Path(settings.audit_log_path))
    codec = SessionTokenCodec(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)

    app.state.namespaces = namespaces
    app.state.audit = audit
    app.state.issuer = CredentialIssuer(authenticator, namespaces, codec, audit)
    app.state.verifier = SessionVerifier(codec)
    app.state.gateway = FileGateway(namespaces, audit)
    app.state.max_upload_bytes = settings.max_upload_bytes


def build_authenticator(settings: Settings) -> Authenticator:
    if not settings.ldap_url:
        logger.warning("LDAP_URL is not set -- every login will be rejected")
    return LdapAuthenticator(
        url=settings.ldap_url,
        bind_dn=settings.ldap_bind_dn,
        bind_password=settings.ldap_bind_password,
        search_base=settings.ldap_base,
        username_attribute=settings.ldap_username_attribute,
        timeout=settings.ldap_timeout_seconds,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Everything before yield runs on startup; everything after on shutdown.

    There is nothing to tear down: the audit recorder opens its file per
    write and the gateway holds no handles between requests.
    """
    logger.info("filevault API starting up")
    wire_components(app, _settings, build_authenticator(_settings))
    logger.info(
        "Storage at %s, audit log at %s, token lifetime %ds",
        app.state.namespaces.base_dir,
        app.state.audit.log_path,
        _settings.token_expire_seconds,
    )

    yield

    logger.info("filevault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="filevault API",
    description="Directory-authenticated personal file storage with an audit trail.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(files_router, tags=["Files"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(FileVaultError)
async def domain_error_handler(request: Request, exc: FileVaultError) -> JSONResponse:
    """Map a domain error to its status code and public message.

    Only exc.code and exc.message reach the client. The chained cause (an
    OSError, a JWT error) has already been logged where it was raised.
    """
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit and no auth -- load balancers must always reach it.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
