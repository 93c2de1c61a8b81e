"""audit/ -- Append-only, bounded security event ledger.

Layer rule: audit/ imports from core/ only. Every other layer writes to it.
"""
