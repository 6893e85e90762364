"""auth/ -- Session credential package for filevault.

Layer rule: auth/ imports from core/, storage/ and audit/ (the issuer
provisions namespaces and records logins). It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
