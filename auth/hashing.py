"""
auth/hashing.py -- Salted slow-KDF password hashing and constant-time verification.

Security design decisions:
  KDF: bcrypt_pbkdf (bcrypt.kdf) -- the bcrypt library's key-derivation mode.
       Each round is a full Blowfish key schedule, so the cost is CPU-bound and
       scales linearly with `rounds`. Unlike bcrypt.hashpw it takes any salt and
       output length and has no 72-byte password truncation.

  Encoding: "<rounds>:<key bytes>:<salt hex>:<derived key hex>". The rounds
       count travels with the hash so raising kdf_rounds later does not
       invalidate existing credentials. The declared key length must equal the
       stored key's length; a cut-down key is malformed. This module is the
       only code that parses the format.

  Input: the KDF sees the UTF-8 password behind a 4-byte length prefix, so
       every string, the empty one included, hashes and verifies.

  Verification: the candidate key is re-derived with the stored salt, rounds
       and key length, then compared with hmac.compare_digest, which does not
       exit early on the first differing byte. Malformed stored values verify
       as False; verify() never raises.

  Timing equalization: dummy_hash is computed once per hasher so
       UserStore.authenticate() can spend the same KDF work on an unknown
       email as on a real one.

Callers must not hold a lock across hash() or verify(): a single call costs
tens to hundreds of milliseconds.

Layer rule: imports only core/ and third-party libraries.
"""

from __future__ import annotations

import hmac
import logging
import secrets

import bcrypt

from core.config import Settings, get_settings

logger = logging.getLogger("orderdesk.auth")

# Below this the bcrypt library itself warns that the KDF is too cheap.
KDF_SAFE_ROUNDS = 50
# Upper bound accepted from a stored hash, so a corrupted or hostile record
# cannot pin a worker thread for minutes.
KDF_MAX_ROUNDS = 10_000
MIN_SALT_BYTES = 16
MAX_KEY_BYTES = 512

_SEPARATOR = ":"


class CredentialHasher:
    """Hash and verify passwords.

    Usage:
        hasher = CredentialHasher.from_settings(get_settings())
        stored = hasher.hash("Str0ng!Pass")
        hasher.verify("Str0ng!Pass", stored)   # True
        hasher.verify("wrong", "garbage")      # False, never raises
    """

    def __init__(self, rounds: int = KDF_SAFE_ROUNDS, salt_bytes: int = MIN_SALT_BYTES, key_bytes: int = 64) -> None:
        if salt_bytes < MIN_SALT_BYTES:
            raise ValueError(f"salt_bytes must be at least {MIN_SALT_BYTES}")
        if not 1 <= rounds <= KDF_MAX_ROUNDS:
            raise ValueError(f"rounds must be between 1 and {KDF_MAX_ROUNDS}")
        if not 1 <= key_bytes <= MAX_KEY_BYTES:
            raise ValueError(f"key_bytes must be between 1 and {MAX_KEY_BYTES}")
        if rounds < KDF_SAFE_ROUNDS:
            logger.warning("Credential KDF configured with %d rounds; use at least %d in production", rounds, KDF_SAFE_ROUNDS)
        self.rounds = rounds
        self.salt_bytes = salt_bytes
        self.key_bytes = key_bytes
        self.dummy_hash: str = self.hash("orderdesk_timing_dummy")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CredentialHasher:
        cfg = settings or get_settings()
        return cls(rounds=cfg.kdf_rounds, salt_bytes=cfg.kdf_salt_bytes, key_bytes=cfg.kdf_key_bytes)

    def hash(self, password: str) -> str:
        """Return the encoded hash of `password` under a fresh random salt."""
        salt = secrets.token_bytes(self.salt_bytes)
        key = self._derive(_material(password), salt, self.key_bytes, self.rounds)
        return _SEPARATOR.join((str(self.rounds), str(self.key_bytes), salt.hex(), key.hex()))

    def verify(self, password: str, stored: str) -> bool:
        """Return True if `password` derives the key embedded in `stored`."""
        if not isinstance(password, str):
            return False
        parsed = _parse(stored)
        if parsed is None:
            return False
        rounds, salt, expected = parsed
        candidate = self._derive(_material(password), salt, len(expected), rounds)
        return hmac.compare_digest(candidate, expected)

    @staticmethod
    def _derive(material: bytes, salt: bytes, key_bytes: int, rounds: int) -> bytes:
        # ignore_few_rounds only silences the library warning; the constructor
        # already logged it once for low configured costs.
        return bcrypt.kdf(
            password=material,
            salt=salt,
            desired_key_bytes=key_bytes,
            rounds=rounds,
            ignore_few_rounds=True,
        )


def _material(password: str) -> bytes:
    """Length-prefixed UTF-8 bytes: never empty, and unambiguous for every password."""
    raw = password.encode("utf-8")
    return len(raw).to_bytes(4, "big") + raw


def _parse(stored: str) -> tuple[int, bytes, bytes] | None:
    """Split an encoded hash into (rounds, salt, key), or None if malformed.

    The declared key length must match the key actually stored. bcrypt.kdf
    output of a shorter length can be a prefix of the full key, so a cut-down
    key would otherwise still verify.
    """
    if not isinstance(stored, str):
        return None
    parts = stored.split(_SEPARATOR)
    if len(parts) != 4:
        return None
    rounds_text, key_len_text, salt_hex, key_hex = parts
    if not all(t.isascii() and t.isdigit() for t in (rounds_text, key_len_text)):
        return None
    rounds = int(rounds_text)
    key_len = int(key_len_text)
    if not 1 <= rounds <= KDF_MAX_ROUNDS or not 1 <= key_len <= MAX_KEY_BYTES:
        return None
    try:
        salt = bytes.fromhex(salt_hex)
        key = bytes.fromhex(key_hex)
    except ValueError:
        return None
    if not salt or len(key) != key_len:
        return None
    return rounds, salt, key
