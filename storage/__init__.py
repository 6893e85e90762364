"""storage/ -- Per-user file namespaces and the operations allowed inside them.

Layer rule: storage/ imports from core/, audit/ and auth.models only. It does
NOT import from api/.
"""
