"""orders/ -- The protected Order resource.

Layer rule: orders/ imports from core/ and audit/ only.
Who may act on an order is decided by auth/permissions.py, not here.
"""
