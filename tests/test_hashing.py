"""Unit tests for auth/hashing.py -- the credential hasher.

Covers:
- hash() then verify() with the same password is True, any other is False
- Each hash carries a fresh salt of at least 16 bytes
- Malformed, truncated or hostile stored values verify as False, never raise
- Every string hashes, the empty one included
- The rounds count and key length travel with the hash
- Constructor guards against unsafe parameters
"""

from __future__ import annotations

import pytest

from auth.hashing import KDF_MAX_ROUNDS, CredentialHasher
from core.config import Settings
from tests.conftest import PASSWORD, WRONG_PASSWORD

# ---------------------------------------------------------------------------
# TestRoundTrip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    def test_same_password_verifies(self, hasher: CredentialHasher) -> None:
        stored = hasher.hash(PASSWORD)
        assert hasher.verify(PASSWORD, stored) is True

    def test_other_password_fails(self, hasher: CredentialHasher) -> None:
        stored = hasher.hash(PASSWORD)
        assert hasher.verify(WRONG_PASSWORD, stored) is False
        assert hasher.verify(PASSWORD + " ", stored) is False
        assert hasher.verify(PASSWORD.lower(), stored) is False

    def test_unicode_password(self, hasher: CredentialHasher) -> None:
        stored = hasher.hash("Pässwörd!123")
        assert hasher.verify("Pässwörd!123", stored) is True
        assert hasher.verify("Passwort!123", stored) is False

    def test_empty_password_never_verifies_against_real_hash(self, hasher: CredentialHasher) -> None:
        stored = hasher.hash(PASSWORD)
        assert hasher.verify("", stored) is False

    def test_empty_password_round_trips(self, hasher: CredentialHasher) -> None:
        """Policy keeps empty passwords out upstream; the hasher itself accepts every string."""
        stored = hasher.hash("")
        assert hasher.verify("", stored) is True
        assert hasher.verify(PASSWORD, stored) is False

    def test_nul_bytes_are_significant(self, hasher: CredentialHasher) -> None:
        stored = hasher.hash("abc")
        assert hasher.verify("abc\x00", stored) is False


# ---------------------------------------------------------------------------
# TestEncoding
# ---------------------------------------------------------------------------


class TestEncoding:
    def test_fresh_salt_each_time(self, hasher: CredentialHasher) -> None:
        """Two hashes of one password must differ -- the salt is random per call."""
        assert hasher.hash(PASSWORD) != hasher.hash(PASSWORD)

    def test_format_is_rounds_keylen_salt_key(self, hasher: CredentialHasher) -> None:
        rounds, key_len, salt_hex, key_hex = hasher.hash(PASSWORD).split(":")
        assert int(rounds) == hasher.rounds
        assert int(key_len) == hasher.key_bytes
        assert len(bytes.fromhex(salt_hex)) >= 16
        assert len(bytes.fromhex(key_hex)) == hasher.key_bytes

    def test_rounds_travel_with_hash(self) -> None:
        """A hash made at one cost still verifies after the configured cost changes."""
        cheap = CredentialHasher(rounds=1)
        dearer = CredentialHasher(rounds=2)
        assert dearer.verify(PASSWORD, cheap.hash(PASSWORD)) is True

    def test_key_length_travels_with_hash(self) -> None:
        short = CredentialHasher(rounds=1, key_bytes=32)
        assert CredentialHasher(rounds=1).verify(PASSWORD, short.hash(PASSWORD)) is True

    def test_from_settings(self) -> None:
        hasher = CredentialHasher.from_settings(Settings(kdf_rounds=2, kdf_salt_bytes=24, kdf_key_bytes=32))
        _rounds, key_len, salt_hex, key_hex = hasher.hash(PASSWORD).split(":")
        assert hasher.rounds == 2
        assert key_len == "32"
        assert len(salt_hex) == 48
        assert len(key_hex) == 64


# ---------------------------------------------------------------------------
# TestMalformed
# ---------------------------------------------------------------------------

SALT = "00112233445566778899aabbccddeeff"


class TestMalformed:
    @pytest.mark.parametrize(
        "stored",
        [
            "",
            "not-a-hash",
            "1:2:abcd",
            f"1:{SALT}:00ff",
            f"1:2:{SALT}:00ff:extra",
            f"x:2:{SALT}:00ff",
            f"1:x:{SALT}:00ff",
            "1:2:zz:00ff",
            f"1:2:{SALT}:zz",
            "1:2::00ff",
            f"1:2:{SALT}:",
            f"1:0:{SALT}:",
            f"1:3:{SALT}:00ff",
            f"1:513:{SALT}:00ff",
            f"0:2:{SALT}:00ff",
            f"-1:2:{SALT}:00ff",
            f"{KDF_MAX_ROUNDS + 1}:2:{SALT}:00ff",
            f"²:2:{SALT}:00ff",
            f"1:²:{SALT}:00ff",
        ],
    )
    def test_malformed_verifies_false(self, hasher: CredentialHasher, stored: str) -> None:
        assert hasher.verify(PASSWORD, stored) is False

    @pytest.mark.parametrize("cut", [1, 2, 4, 8, 32, 64, 126])
    def test_truncated_hash_verifies_false(self, hasher: CredentialHasher, cut: int) -> None:
        """bcrypt.kdf output at a shorter length can be a prefix of the full key."""
        stored = hasher.hash(PASSWORD)
        assert hasher.verify(PASSWORD, stored[:-cut]) is False

    def test_declared_key_length_must_match(self, hasher: CredentialHasher) -> None:
        rounds, _key_len, salt_hex, key_hex = hasher.hash(PASSWORD).split(":")
        assert hasher.verify(PASSWORD, ":".join((rounds, "32", salt_hex, key_hex))) is False

    def test_non_string_verifies_false(self, hasher: CredentialHasher) -> None:
        assert hasher.verify(PASSWORD, None) is False  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# TestConstructor
# ---------------------------------------------------------------------------


class TestConstructor:
    def test_short_salt_rejected(self) -> None:
        with pytest.raises(ValueError):
            CredentialHasher(rounds=1, salt_bytes=8)

    @pytest.mark.parametrize("rounds", [0, KDF_MAX_ROUNDS + 1])
    def test_rounds_out_of_range_rejected(self, rounds: int) -> None:
        with pytest.raises(ValueError):
            CredentialHasher(rounds=rounds)

    def test_dummy_hash_is_a_real_hash(self, hasher: CredentialHasher) -> None:
        assert hasher.verify("orderdesk_timing_dummy", hasher.dummy_hash) is True
