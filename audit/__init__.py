"""audit/ -- Append-only audit trail for security-relevant actions.

Layer rule: audit/ imports only stdlib. It does NOT import from api/, auth/,
or storage/. Those layers call into audit/, not the other way around.
"""
