"""
storage/gateway.py -- The four file operations, scoped to the caller's namespace.

Every method takes a verified IdentityContext and nothing path-like except a
bare filename. Paths come only from NamespaceManager, keyed by the context's
user_id, so one user's request can never name another user's file.

Audit policy: upload, download, view and delete each write an audit entry
whether they succeed or fail, before returning or raising. Listing is
read-only and not audited. Audit failures never affect the result (see
audit/recorder.py).

Naming: stored files are "<epoch milliseconds>-<original basename>". Files are
created exclusively, so two uploads that collide on that name produce a
WriteFailure for the second instead of silently replacing the first.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path, PureWindowsPath

from audit.recorder import AuditAction, AuditRecorder
from auth.models import IdentityContext
from core.errors import InvalidCredential, InvalidFilename, NotFound, StorageUnavailable, WriteFailure
from storage.namespaces import NamespaceManager

logger = logging.getLogger("filevault.storage")


def _original_basename(filename: str | None) -> str:
    # Browsers on Windows have been known to send full client paths.
    name = PureWindowsPath(filename or "").name.strip()
    if not name or name in (".", "..") or "\x00" in name:
        raise InvalidFilename()
    return name


class FileGateway:
    def __init__(self, namespaces: NamespaceManager, audit: AuditRecorder) -> None:
        self.namespaces = namespaces
        self.audit = audit

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _uploads(self, context: IdentityContext) -> Path:
        # The root is signed into the token at login. If it no longer matches
        # what the uid maps to, the token came from a different deployment.
        if Path(context.storage_root) != self.namespaces.namespace_root(context.user_id):
            raise InvalidCredential()
        return self.namespaces.uploads_dir(context.user_id)

    def _existing_file(self, context: IdentityContext, filename: str) -> Path:
        self._uploads(context)
        path = self.namespaces.resolve(context.user_id, filename)
        if not path.is_file():
            raise NotFound()
        return path

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_files(self, context: IdentityContext) -> list[str]:
        """Return the stored filenames in the caller's uploads directory, sorted."""
        uploads = self._uploads(context)
        try:
            with os.scandir(uploads) as it:
                names = [entry.name for entry in it if entry.is_file()]
        except OSError as exc:
            logger.error("Listing %s failed: %s", uploads, exc)
            raise StorageUnavailable() from exc
        return sorted(names)

    def upload(self, context: IdentityContext, data: bytes, original_filename: str | None) -> str:
        """Store `data` and return the generated stored filename."""
        audited_name = original_filename or ""
        try:
            uploads = self._uploads(context)
            stored_name = f"{int(time.time() * 1000)}-{_original_basename(original_filename)}"
            audited_name = stored_name
            target = self.namespaces.resolve(context.user_id, stored_name)
            try:
                uploads.mkdir(parents=True, exist_ok=True)
                with target.open("xb") as fh:
                    fh.write(data)
            except OSError as exc:
                logger.error("Writing %s failed: %s", target, exc)
                raise WriteFailure() from exc
        finally:
            self.audit.record(AuditAction.UPLOAD, audited_name, context.user_id)
        logger.info("Stored %d bytes as %r for %r", len(data), stored_name, context.user_id)
        return stored_name

    def download(self, context: IdentityContext, filename: str) -> Path:
        """Return the path of an existing file for the API layer to stream."""
        try:
            return self._existing_file(context, filename)
        finally:
            self.audit.record(AuditAction.DOWNLOAD, filename, context.user_id)

    def view(self, context: IdentityContext, filename: str) -> str:
        """Return a file's content decoded as UTF-8; undecodable bytes are replaced."""
        try:
            path = self._existing_file(context, filename)
            try:
                return path.read_bytes().decode("utf-8", errors="replace")
            except FileNotFoundError as exc:
                raise NotFound() from exc
            except OSError as exc:
                logger.error("Reading %s failed: %s", path, exc)
                raise StorageUnavailable() from exc
        finally:
            self.audit.record(AuditAction.VIEW, filename, context.user_id)

    def delete(self, context: IdentityContext, filename: str) -> None:
        try:
            path = self._existing_file(context, filename)
            try:
                path.unlink()
            except FileNotFoundError as exc:
                raise NotFound() from exc
            except OSError as exc:
                logger.error("Deleting %s failed: %s", path, exc)
                raise StorageUnavailable() from exc
        finally:
            self.audit.record(AuditAction.DELETE, filename, context.user_id)
        logger.info("Deleted %r for %r", filename, context.user_id)
