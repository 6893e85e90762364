"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, issuers and
routes do the work; these only own the shape.

AuthSuccess / AuthFailure form the variant result of a directory lookup.
Callers branch with isinstance() -- there is no third case.

Layer rule: no imports from api/, storage/, or audit/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Identity:
    """A directory entry that has just proven its password.

    user_id is the directory's uid attribute. It can be None when the entry
    has no such attribute -- the issuer refuses to mint a token in that case.
    """

    user_id: str | None
    dn: str
    attributes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSuccess:
    identity: Identity


@dataclass(frozen=True)
class AuthFailure:
    # Internal only. Logged, never returned to the client.
    reason: str


AuthResult = Union[AuthSuccess, AuthFailure]


@dataclass(frozen=True)
class SessionToken:
    """A freshly minted token plus the claims it carries."""

    token: str
    user_id: str
    dn: str
    storage_root: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IdentityContext:
    """Verified caller identity attached to every file operation."""

    user_id: str
    dn: str
    storage_root: str
    expires_at: datetime


@dataclass(frozen=True)
class LoginResult:
    session: SessionToken
    identity: Identity
