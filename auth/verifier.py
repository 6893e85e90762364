"""
auth/verifier.py -- Stateless bearer-token check run before every file operation.

The verifier does no lookups: a token that decodes with the current secret and
has not reached exp is accepted. There is no logout and no revocation.
"""

from __future__ import annotations

from auth.models import IdentityContext
from auth.tokens import SessionTokenCodec
from core.errors import InvalidCredential, MissingCredential

_BEARER = "bearer"


class SessionVerifier:
    def __init__(self, codec: SessionTokenCodec) -> None:
        self._codec = codec

    def verify(self, authorization: str | None) -> IdentityContext:
        """Check an Authorization header value and return the caller's context.

        Raises:
            MissingCredential: header absent, blank, or "Bearer" with no token.
            InvalidCredential: another scheme, or a token that fails to decode.
            ExpiredCredential: a well-formed token past its expiry.
        """
        if authorization is None or not authorization.strip():
            raise MissingCredential()

        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() != _BEARER:
            raise InvalidCredential()
        token = token.strip()
        if not token:
            raise MissingCredential()
        return self._codec.decode(token)
