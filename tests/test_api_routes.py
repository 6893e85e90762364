"""
tests/test_api_routes.py -- Integration tests for the login and file routes.

These tests exercise the full stack: FastAPI routing -> bearer dependency ->
issuer / gateway -> exception handlers -> response serialization. The
directory service is the in-memory FakeDirectory from conftest.py; storage and
the audit log live under tmp_path.

Coverage:
  - Login: success payload, bad credentials, missing fields, uid-less identity
  - Auth failures: 401 on every file route without / with a bad / expired token
  - End-to-end scenario: login, upload, list, view, download, delete, audit trail
  - Isolation between two logged-in users
  - Error envelope for 400 / 404 / 413, including over-long filenames
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from auth.models import Identity

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


def _audit_tail(client: TestClient) -> list[str]:
    return [line.split(" - ", 1)[1] for line in client.app.state.audit.read_entries()]


class TestLogin:
    def test_valid_credentials(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"username": "alice", "password": "correct-pw"})
        assert resp.status_code == 200, resp.text
        assert resp.headers["cache-control"] == "no-store"
        data = resp.json()
        assert data["success"] is True
        assert data["user"]["uid"] == "alice"
        assert data["user"]["dn"].startswith("uid=alice")
        assert data["user"]["homeDirectory"].endswith(str(Path("home") / "alice"))
        assert jwt.get_unverified_claims(data["token"])["uid"] == "alice"

    def test_namespace_created_on_first_login(self, client: TestClient, settings) -> None:
        client.post("/api/login", json={"username": "alice", "password": "correct-pw"})
        root = Path(settings.storage_base_dir) / "alice"
        assert (root / "uploads").is_dir()
        assert (root / "instructions.txt").is_file()

    @pytest.mark.parametrize("username,password", [("alice", "wrong"), ("mallory", "correct-pw")])
    def test_bad_credentials(self, client: TestClient, username: str, password: str) -> None:
        resp = client.post("/api/login", json={"username": username, "password": password})
        assert resp.status_code == 401
        data = resp.json()
        assert data["success"] is False
        assert data["error"] == {"code": "bad_credentials", "message": "Authentication failed."}
        assert "token" not in data
        assert _audit_tail(client) == [f"failed-login by {username}"]

    def test_directory_detail_not_leaked(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"username": "mallory", "password": "x"})
        assert "no such user" not in resp.text

    @pytest.mark.parametrize("body", [{}, {"username": "alice"}, {"username": "", "password": "pw"}])
    def test_missing_fields(self, client: TestClient, body: dict) -> None:
        resp = client.post("/api/login", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "credentials_required"

    def test_identity_without_uid(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"username": "service", "password": "service-pw"})
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "identity_incomplete"


class TestAuthRequired:
    ROUTES = [
        ("get", "/files"),
        ("get", "/download/1-a.txt"),
        ("get", "/view/1-a.txt"),
        ("delete", "/delete/1-a.txt"),
    ]

    @pytest.mark.parametrize("method,path", ROUTES)
    def test_no_header(self, client: TestClient, method: str, path: str) -> None:
        resp = getattr(client, method)(path)
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "missing_credential"
        assert resp.headers["www-authenticate"] == "Bearer"

    @pytest.mark.parametrize("method,path", ROUTES)
    def test_garbage_token(self, client: TestClient, method: str, path: str) -> None:
        resp = getattr(client, method)(path, headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_credential"

    def test_upload_without_token(self, client: TestClient) -> None:
        resp = client.post("/upload", files={"file": ("a.txt", b"x", "text/plain")})
        assert resp.status_code == 401

    def test_expired_token(self, client: TestClient, login_as) -> None:
        login_as("alice", "correct-pw")
        state = client.app.state
        root = str(state.namespaces.namespace_root("alice"))
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = state.issuer.codec.issue(Identity(user_id="alice", dn="uid=alice"), root, issued_at=issued).token
        resp = client.get("/files", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "expired_credential"

    def test_token_signed_with_other_secret(self, client: TestClient) -> None:
        now = datetime.now(timezone.utc)
        forged = jwt.encode(
            {"sub": "alice", "uid": "alice", "storage_root": "/", "iat": now, "exp": now + timedelta(hours=1)},
            "attacker-chosen-secret-0123456789abcdef",
            algorithm="HS256",
        )
        resp = client.get("/files", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401


class TestScenario:
    def test_alice_full_lifecycle(self, client: TestClient, login_as, settings) -> None:
        headers = login_as("alice", "correct-pw")
        uploads = Path(settings.storage_base_dir) / "alice" / "uploads"
        assert uploads.is_dir()

        resp = client.post("/upload", files={"file": ("report.pdf", PDF_BYTES, "application/pdf")}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["message"] == "File uploaded successfully"
        stored = resp.json()["filename"]
        assert re.fullmatch(r"\d+-report\.pdf", stored)

        resp = client.get("/files", headers=headers)
        assert resp.json() == {"files": [{"name": stored}]}

        resp = client.get(f"/view/{stored}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["content"] == PDF_BYTES.decode("utf-8", errors="replace")

        resp = client.get(f"/download/{stored}", headers=headers)
        assert resp.status_code == 200
        assert resp.content == PDF_BYTES
        assert "attachment" in resp.headers["content-disposition"]
        assert stored in resp.headers["content-disposition"]

        resp = client.delete(f"/delete/{stored}", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"message": "File deleted successfully"}

        assert client.get("/files", headers=headers).json() == {"files": []}

        assert _audit_tail(client) == [
            "login by alice",
            f"upload by alice on file {stored}",
            f"view by alice on file {stored}",
            f"download by alice on file {stored}",
            f"delete by alice on file {stored}",
        ]


class TestFileErrors:
    def test_delete_missing_file(self, client: TestClient, login_as) -> None:
        headers = login_as("alice", "correct-pw")
        resp = client.delete("/delete/1-nope.txt", headers=headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_backslash_traversal(self, client: TestClient, login_as) -> None:
        headers = login_as("alice", "correct-pw")
        resp = client.get("/view/..%5Cinstructions.txt", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_filename"

    @pytest.mark.parametrize("method, route", [("GET", "/download"), ("GET", "/view"), ("DELETE", "/delete")])
    def test_overlong_filename(self, client: TestClient, login_as, method: str, route: str) -> None:
        headers = login_as("alice", "correct-pw")
        resp = client.request(method, f"{route}/{'a' * 300}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_filename"

    def test_upload_too_large(self, client: TestClient, login_as, settings) -> None:
        headers = login_as("alice", "correct-pw")
        payload = b"x" * (settings.max_upload_bytes + 1)
        resp = client.post("/upload", files={"file": ("big.bin", payload, "application/octet-stream")}, headers=headers)
        assert resp.status_code == 413
        assert resp.json()["error"]["code"] == "file_too_large"
        assert client.get("/files", headers=headers).json() == {"files": []}

    def test_upload_without_file_field(self, client: TestClient, login_as) -> None:
        headers = login_as("alice", "correct-pw")
        resp = client.post("/upload", headers=headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"


class TestIsolation:
    def test_bob_cannot_touch_alice_files(self, client: TestClient, login_as) -> None:
        alice = login_as("alice", "correct-pw")
        bob = login_as("bob", "bob-pw")

        stored = client.post("/upload", files={"file": ("secret.txt", b"alice only", "text/plain")}, headers=alice)
        stored = stored.json()["filename"]

        assert client.get("/files", headers=bob).json() == {"files": []}
        assert client.get(f"/view/{stored}", headers=bob).status_code == 404
        assert client.get(f"/download/{stored}", headers=bob).status_code == 404
        assert client.delete(f"/delete/{stored}", headers=bob).status_code == 404

        assert client.get(f"/view/{stored}", headers=alice).json() == {"content": "alice only"}
