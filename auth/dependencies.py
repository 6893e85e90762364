"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

One auth method only: the Authorization: Bearer <token> header. There is no
cookie and no API key -- every file route requires a session token obtained
from POST /api/login.

get_identity_context() raises the domain CredentialError subclasses; the
FileVaultError handler in api/main.py turns them into 401 responses.

Layer rule: this module may import from fastapi (for Request) because it is
part of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import IdentityContext
from auth.verifier import SessionVerifier


def get_identity_context(request: Request) -> IdentityContext:
    """Require a valid session token.

    Use as a FastAPI dependency:
        @router.get("/files")
        def route(context: IdentityContext = Depends(get_identity_context)): ...
    """
    verifier: SessionVerifier = request.app.state.verifier
    return verifier.verify(request.headers.get("Authorization"))
