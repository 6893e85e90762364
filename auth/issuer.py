"""
auth/issuer.py -- Login: directory check, namespace provisioning, token minting.

Order of operations on success:
  1. Directory says yes and returns an identity with a uid.
  2. The uid's namespace is provisioned (no-op after the first login).
  3. A token is minted carrying the uid and the namespace root.
  4. A "login" audit entry is written.

On a directory "no", the attempted username is audited as "failed-login" --
there is no verified identity to key it by -- and the caller gets one generic
AuthenticationFailure whether the username or the password was wrong.
"""

from __future__ import annotations

import logging

from audit.recorder import AuditAction, AuditRecorder
from auth.directory import Authenticator
from auth.models import AuthFailure, LoginResult
from auth.tokens import SessionTokenCodec
from core.errors import AuthenticationFailure, CredentialsRequired, IdentityIncomplete, StorageUnavailable
from storage.namespaces import NamespaceManager

logger = logging.getLogger("filevault.auth")


class CredentialIssuer:
    def __init__(
        self,
        authenticator: Authenticator,
        namespaces: NamespaceManager,
        codec: SessionTokenCodec,
        audit: AuditRecorder,
    ) -> None:
        self.authenticator = authenticator
        self.namespaces = namespaces
        self.codec = codec
        self.audit = audit

    def login(self, username: str, password: str) -> LoginResult:
        if not username or not password:
            raise CredentialsRequired()

        result = self.authenticator.authenticate(username, password)
        if isinstance(result, AuthFailure):
            logger.warning("Login failed for %r: %s", username, result.reason)
            self.audit.record(AuditAction.FAILED_LOGIN, None, username)
            raise AuthenticationFailure()

        identity = result.identity
        if not identity.user_id:
            logger.error("Directory entry %r has no uid attribute", identity.dn)
            raise IdentityIncomplete()

        try:
            root = self.namespaces.ensure_provisioned(identity.user_id)
        except OSError as exc:
            logger.error("Provisioning namespace for %r failed: %s", identity.user_id, exc)
            raise StorageUnavailable() from exc

        session = self.codec.issue(identity, storage_root=str(root))
        self.audit.record(AuditAction.LOGIN, None, identity.user_id)
        logger.info("Login succeeded for %r (session expires %s)", identity.user_id, session.expires_at.isoformat())
        return LoginResult(session=session, identity=identity)
