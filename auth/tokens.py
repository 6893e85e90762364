"""
auth/tokens.py -- Session token encode / decode.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry the
       directory uid, DN, the caller's storage root, issue time and expiry.
       There is no server-side session store: a token stays valid until exp,
       and the only way to invalidate all tokens early is to rotate the key.

  Claims: sub and uid both hold the directory uid (sub because JWT tooling
       expects it, uid for readability in decoded tokens). storage_root is
       signed along with the rest so a client can read it but never change it.

  Errors: decode() raises typed errors rather than returning None so the API
       can tell an expired session from a forged one. Both are 401s with a
       generic message; only the code differs.

The secret and lifetime are constructor arguments. Nothing here reads config.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import Identity, IdentityContext, SessionToken
from core.errors import ExpiredCredential, InvalidCredential

logger = logging.getLogger("filevault.auth")

_ALGORITHM = "HS256"

# Every claim the verifier relies on. python-jose checks presence of the
# registered ones; storage_root and uid are checked by hand.
_DECODE_OPTIONS = {"require_exp": True, "require_iat": True, "require_sub": True}


def _canonical_signature(token: str) -> bool:
    """True if the signature segment is the exact base64url text of its bytes.

    The last character of an HS256 signature carries two unused bits, and the
    decoder ignores them. Without this check a token with that character
    altered would still verify.
    """
    _, _, signature = token.rpartition(".")
    try:
        raw = signature.encode("ascii")
        return base64url_encode(base64url_decode(raw)) == raw
    except (ValueError, TypeError):
        return False


class SessionTokenCodec:
    """Mints and checks signed, time-bounded session tokens.

    Usage:
        codec = SessionTokenCodec(secret_key, lifetime_seconds=3600)
        session = codec.issue(identity, storage_root="/srv/home/alice")
        context = codec.decode(session.token)
    """

    def __init__(self, secret_key: str, lifetime_seconds: int = 3600) -> None:
        self._secret_key = secret_key
        self.lifetime = timedelta(seconds=lifetime_seconds)

    def issue(self, identity: Identity, storage_root: str, issued_at: datetime | None = None) -> SessionToken:
        """Encode a signed JWT for a verified identity.

        issued_at defaults to now. Tests pass a past value to produce a token
        that is already close to (or past) its expiry.
        """
        if not identity.user_id:
            raise ValueError("cannot issue a session token without a user id")
        # JWT NumericDate has whole-second resolution; truncate so the returned
        # expires_at matches what decode() will report.
        issued = (issued_at or datetime.now(timezone.utc)).replace(microsecond=0)
        expires = issued + self.lifetime
        payload = {
            "sub": identity.user_id,
            "uid": identity.user_id,
            "dn": identity.dn,
            "storage_root": storage_root,
            "iat": issued,
            "exp": expires,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)
        return SessionToken(
            token=token,
            user_id=identity.user_id,
            dn=identity.dn,
            storage_root=storage_root,
            issued_at=issued,
            expires_at=expires,
        )

    def decode(self, token: str) -> IdentityContext:
        """Verify signature and expiry, then return the identity context.

        Raises:
            ExpiredCredential: signature is valid but exp has passed.
            InvalidCredential: anything else -- bad signature, wrong algorithm,
                malformed token, missing or mistyped claims.
        """
        if not _canonical_signature(token):
            logger.info("Rejected session token: non-canonical signature encoding")
            raise InvalidCredential()
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM], options=_DECODE_OPTIONS)
        except ExpiredSignatureError as exc:
            raise ExpiredCredential() from exc
        except JWTError as exc:
            logger.info("Rejected session token: %s", exc)
            raise InvalidCredential() from exc

        uid = payload.get("uid")
        storage_root = payload.get("storage_root")
        if not isinstance(uid, str) or uid != payload["sub"] or not isinstance(storage_root, str):
            logger.info("Rejected session token: claims incomplete")
            raise InvalidCredential()

        return IdentityContext(
            user_id=uid,
            dn=str(payload.get("dn") or ""),
            storage_root=storage_root,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
