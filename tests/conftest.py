"""
tests/conftest.py -- Shared test fixtures for filevault.

This module provides:
  - FakeDirectory: in-memory Authenticator standing in for LDAP
  - settings: Settings pointing storage and the audit log at tmp_path
  - namespaces / audit / codec / gateway / issuer: components built from settings
  - client: TestClient over the real app with a patched lifespan

Design: the real lifespan builds an LdapAuthenticator from the environment.
_patch_lifespan() swaps it for one that calls the same wire_components() with
test settings and a FakeDirectory, so routes, dependencies and handlers all run
for real while nothing touches the network or the working directory.

DEBUG and RATE_LIMIT_ENABLED must be set before any api/ or core/ import:
get_settings() is cached on first use, and api.limiter reads it at import.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from pathlib import Path

# CRITICAL: Set before any core/api import -- see module docstring.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_components
from audit.recorder import AuditRecorder
from auth.issuer import CredentialIssuer
from auth.models import AuthFailure, AuthResult, AuthSuccess, Identity
from auth.tokens import SessionTokenCodec
from core.config import Settings
from storage.gateway import FileGateway
from storage.namespaces import NamespaceManager

TEST_SECRET = "test-secret-key-for-filevault-0123456789"

ALICE = Identity(user_id="alice", dn="uid=alice,ou=people,dc=example,dc=com", attributes={"uid": ["alice"]})
BOB = Identity(user_id="bob", dn="uid=bob,ou=people,dc=example,dc=com", attributes={"uid": ["bob"]})
NO_UID = Identity(user_id=None, dn="cn=service,ou=people,dc=example,dc=com")


class FakeDirectory:
    """Authenticator backed by a dict of username -> (password, identity)."""

    def __init__(self, users: dict[str, tuple[str, Identity]]) -> None:
        self.users = users
        self.calls: list[str] = []

    def authenticate(self, username: str, password: str) -> AuthResult:
        self.calls.append(username)
        entry = self.users.get(username)
        if entry is None:
            return AuthFailure(f"no such user: {username}")
        if entry[0] != password:
            return AuthFailure("invalid credentials")
        return AuthSuccess(entry[1])


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(
        {
            "alice": ("correct-pw", ALICE),
            "bob": ("bob-pw", BOB),
            "service": ("service-pw", NO_UID),
        }
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        debug=True,
        secret_key=TEST_SECRET,
        storage_base_dir=str(tmp_path / "home"),
        audit_log_path=str(tmp_path / "audit" / "record.txt"),
        max_upload_bytes=64 * 1024,
    )


@pytest.fixture
def namespaces(settings: Settings) -> NamespaceManager:
    return NamespaceManager(Path(settings.storage_base_dir))


@pytest.fixture
def audit(settings: Settings) -> AuditRecorder:
    return AuditRecorder(Path(settings.audit_log_path))


@pytest.fixture
def codec(settings: Settings) -> SessionTokenCodec:
    return SessionTokenCodec(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)


@pytest.fixture
def gateway(namespaces: NamespaceManager, audit: AuditRecorder) -> FileGateway:
    return FileGateway(namespaces, audit)


@pytest.fixture
def issuer(directory, namespaces, codec, audit) -> CredentialIssuer:
    return CredentialIssuer(directory, namespaces, codec, audit)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, directory: FakeDirectory):
    """Return a lifespan that wires test settings and the fake directory."""

    @asynccontextmanager
    async def test_lifespan(app):
        wire_components(app, settings, directory)
        yield

    return test_lifespan


@pytest.fixture
def client(settings: Settings, directory: FakeDirectory) -> Generator[TestClient, None, None]:
    """TestClient over the real app, one fresh storage tree per test."""
    app.router.lifespan_context = _patch_lifespan(settings, directory)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client


@pytest.fixture
def login_as(client: TestClient):
    """Return a helper that logs in and yields ready-to-use Authorization headers."""

    def _login(username: str, password: str) -> dict[str, str]:
        resp = client.post("/api/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
