"""
core/errors.py -- Domain exception taxonomy for filevault.

Every failure a caller can observe is one of these classes. Each carries the
HTTP status and machine-readable code the API layer should answer with, plus a
public message that is safe to show a client. Internal detail (directory
service errors, OS errors) goes to the log, never into `message`.

api/main.py registers a single exception handler for FileVaultError, so
components raise these and never build HTTP responses themselves.

Layer rule: no imports from api/, auth/, storage/, or audit/.
"""

from __future__ import annotations


class FileVaultError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Authentication (login)
# ---------------------------------------------------------------------------


class CredentialsRequired(FileVaultError):
    status_code = 400
    code = "credentials_required"
    message = "Username and password are required."


class AuthenticationFailure(FileVaultError):
    """Bad credentials. Never says whether the username or the password was wrong."""

    status_code = 401
    code = "bad_credentials"
    message = "Authentication failed."


class IdentityIncomplete(FileVaultError):
    """The directory accepted the login but returned no usable uid."""

    status_code = 500
    code = "identity_incomplete"
    message = "User identity is incomplete."


# ---------------------------------------------------------------------------
# Session verification
# ---------------------------------------------------------------------------


class CredentialError(FileVaultError):
    status_code = 401
    code = "unauthorized"
    message = "Invalid or missing token."


class MissingCredential(CredentialError):
    code = "missing_credential"
    message = "Authorization header is missing."


class InvalidCredential(CredentialError):
    code = "invalid_credential"


class ExpiredCredential(CredentialError):
    code = "expired_credential"
    message = "Session has expired."


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class InvalidFilename(FileVaultError):
    status_code = 400
    code = "invalid_filename"
    message = "Invalid filename."


class NotFound(FileVaultError):
    status_code = 404
    code = "not_found"
    message = "File not found."


class StorageUnavailable(FileVaultError):
    code = "storage_unavailable"
    message = "Storage is unavailable."


class WriteFailure(FileVaultError):
    code = "write_failure"
    message = "Could not store the file."
