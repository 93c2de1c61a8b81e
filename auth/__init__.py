"""auth/ -- Credentials, sessions and authorization for OrderDesk.

Layer rule: auth/ imports from core/ and audit/ only.
It does NOT import from orders/ or service.py.
service.py imports from auth/, not the other way around.
"""
