"""
auth/directory.py -- Directory-service capability and its LDAP adapter.

The rest of the system only knows the Authenticator protocol:

    authenticate(username, password) -> AuthSuccess(identity) | AuthFailure(reason)

Anything that satisfies it can back logins -- tests use an in-memory fake.

LdapAuthenticator follows the usual search-then-bind flow:
  1. Bind as the service account (LDAP_BIND_DN / LDAP_BIND_PASSWORD).
  2. Search LDAP_BASE for exactly one entry whose username attribute equals
     the submitted username (filter value escaped per RFC 4515).
  3. Bind as that entry's DN with the submitted password.
  4. Take the user id from the entry's uid attribute.

Security:
  An empty password is rejected before any network call. Many directories
  treat a simple bind with an empty password as an anonymous bind and report
  success, which would log anyone in.

  Failure reasons are for the server log only. The issuer turns every
  AuthFailure into the same generic AuthenticationFailure.
"""

from __future__ import annotations

from typing import Protocol

from ldap3 import ALL_ATTRIBUTES, SYNC, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from auth.models import AuthFailure, AuthResult, AuthSuccess, Identity

UID_ATTRIBUTE = "uid"


class Authenticator(Protocol):
    def authenticate(self, username: str, password: str) -> AuthResult: ...


class LdapAuthenticator:
    """Authenticator backed by an LDAP directory via ldap3.

    `server` and `client_strategy` exist for tests: ldap3's MOCK_SYNC
    strategy keeps its entries on the Server object, so every connection
    has to share one.
    """

    def __init__(
        self,
        url: str,
        bind_dn: str,
        bind_password: str,
        search_base: str,
        username_attribute: str = "uid",
        timeout: int = 10,
        server: Server | None = None,
        client_strategy: str = SYNC,
    ) -> None:
        self.url = url
        self.bind_dn = bind_dn
        self.bind_password = bind_password
        self.search_base = search_base
        self.username_attribute = username_attribute
        self.timeout = timeout
        self._server = server
        self._client_strategy = client_strategy

    def _connection(self, server: Server, user: str | None, password: str | None, **kwargs) -> Connection:
        return Connection(
            server,
            user=user,
            password=password,
            receive_timeout=self.timeout,
            client_strategy=self._client_strategy,
            **kwargs,
        )

    def authenticate(self, username: str, password: str) -> AuthResult:
        if not self.url:
            return AuthFailure("directory service is not configured (LDAP_URL is empty)")
        if not username or not password:
            return AuthFailure("empty username or password")

        server = self._server or Server(self.url, connect_timeout=self.timeout)
        search_filter = f"({self.username_attribute}={escape_filter_chars(username)})"
        try:
            with self._connection(
                server, self.bind_dn or None, self.bind_password or None, auto_bind=True
            ) as service:
                service.search(self.search_base, search_filter, attributes=[ALL_ATTRIBUTES])
                entries = list(service.entries)
            if len(entries) != 1:
                return AuthFailure(f"expected one directory entry for {username!r}, found {len(entries)}")

            entry = entries[0]
            user_conn = self._connection(server, entry.entry_dn, password)
            try:
                if not user_conn.bind():
                    return AuthFailure(f"bind rejected for {entry.entry_dn}: {user_conn.result.get('description')}")
            finally:
                user_conn.unbind()
        except LDAPException as exc:
            return AuthFailure(f"LDAP error: {exc}")

        attributes = {k: list(v) for k, v in entry.entry_attributes_as_dict.items() if k.lower() != "userpassword"}
        # The storage namespace is keyed on uid, whatever attribute the
        # username was matched against.
        uid_values = next((v for k, v in attributes.items() if k.lower() == UID_ATTRIBUTE), [])
        user_id = str(uid_values[0]) if uid_values else None
        return AuthSuccess(Identity(user_id=user_id, dn=entry.entry_dn, attributes=attributes))
