"""
core/ids.py -- Opaque identifiers for users, orders and audit entries.

128 bits from the OS CSPRNG, hex encoded. Ids are not secrets, but being
unguessable keeps order ids from being enumerable by other customers.
"""

import secrets

ID_BYTES = 16


def generate_id() -> str:
    return secrets.token_hex(ID_BYTES)
