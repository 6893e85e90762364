"""
storage/namespaces.py -- Per-user storage roots and safe path resolution.

Layout under the configured base directory:

    <base>/<escaped uid>/instructions.txt    seed file, written once
    <base>/<escaped uid>/uploads/             every stored file lives here

Isolation rests on two rules:
  1. A namespace root is computed from the uid alone. No request input ever
     contributes to it.
  2. resolve() accepts a bare filename only, and double-checks that the
     resolved path is a direct child of the caller's uploads directory.

Escaping: the uid is percent-encoded with no safe characters, then any "."
left at the edges of "." / ".." is encoded too. Percent-encoding is
injective (a literal "%" becomes "%25"), so two distinct uids can never map
to the same directory, and no uid can produce a separator or a parent link.

Known gap: provisioning is not atomic. If the process dies after the
directory is created but before the seed file is written, later logins see
an existing directory and skip provisioning, so the seed file stays missing.
"""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from urllib.parse import quote

from core.errors import InvalidFilename

logger = logging.getLogger("filevault.storage")

UPLOADS_DIRNAME = "uploads"
SEED_FILENAME = "instructions.txt"
SEED_CONTENT = (
    "General information about this storage area:\n\n"
    "Files you upload are kept in the uploads folder and are visible only to you.\n"
    "Each stored file is named <upload time>-<original name>.\n"
    "Every upload, download, view and delete is recorded in the audit log.\n"
)

_FORBIDDEN_CHARS = ("/", "\\", "\x00")
# Longest single path component most filesystems accept, in bytes.
_NAME_MAX = 255


def escape_user_id(user_id: str) -> str:
    """Map a uid to a single, safe path component. Injective."""
    if not user_id:
        raise ValueError("user id must be a non-empty string")
    escaped = quote(user_id, safe="")
    if escaped in (".", ".."):
        escaped = escaped.replace(".", "%2E")
    return escaped


class NamespaceManager:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir).resolve()

    def namespace_root(self, user_id: str) -> Path:
        return self.base_dir / escape_user_id(user_id)

    def uploads_dir(self, user_id: str) -> Path:
        return self.namespace_root(user_id) / UPLOADS_DIRNAME

    def ensure_provisioned(self, user_id: str) -> Path:
        """Create the namespace on first use. Returns the namespace root.

        An existing root directory counts as provisioned, whatever it holds.
        """
        root = self.namespace_root(user_id)
        if root.is_dir():
            return root

        (root / UPLOADS_DIRNAME).mkdir(parents=True, exist_ok=True)
        # Two first logins can race here; whichever writes the seed first wins.
        with contextlib.suppress(FileExistsError):
            with (root / SEED_FILENAME).open("x", encoding="utf-8") as fh:
                fh.write(SEED_CONTENT)
        logger.info("Provisioned storage namespace for %r at %s", user_id, root)
        return root

    def resolve(self, user_id: str, filename: str) -> Path:
        """Return the path of `filename` inside the user's uploads directory.

        Raises InvalidFilename for anything that is not a plain file name:
        empty, "." or "..", containing a path separator or NUL byte, or longer
        than a single path component may be.
        """
        if not filename or filename in (".", "..") or any(c in filename for c in _FORBIDDEN_CHARS):
            raise InvalidFilename()
        if len(os.fsencode(filename)) > _NAME_MAX:
            raise InvalidFilename()

        uploads = self.uploads_dir(user_id)
        candidate = (uploads / filename).resolve()
        if candidate.parent != uploads.resolve():
            raise InvalidFilename()
        return candidate
