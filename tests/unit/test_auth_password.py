"""
Test suite for credential hashing.

This module tests Argon2id hashing, verification and the async variants.
"""

import logging

import pytest

from conduit.auth.password import CredentialHasher
from conduit.core.exceptions import CredentialFormatError, UnauthorizedError


class TestCredentialHashing:
    """Test CredentialHasher hashing and verification."""

    def test_hash_is_argon2id_phc_string(self, fast_hasher):
        """Hashes are self-describing Argon2id PHC strings."""
        hashed = fast_hasher.hash("password123")

        assert hashed.startswith("$argon2id$")
        assert "password123" not in hashed

    def test_hash_is_salted(self, fast_hasher):
        """Same password produces different hashes."""
        assert fast_hasher.hash("samepassword") != fast_hasher.hash("samepassword")

    def test_verify_roundtrip(self, fast_hasher):
        hashed = fast_hasher.hash("correct horse")

        assert fast_hasher.verify("correct horse", hashed) is True
        assert fast_hasher.verify("wrong horse", hashed) is False

    def test_verify_unicode_password(self, fast_hasher):
        password = "pässwörd🔒"
        hashed = fast_hasher.hash(password)

        assert fast_hasher.verify(password, hashed) is True
        assert fast_hasher.verify("passwort", hashed) is False

    @pytest.mark.parametrize("stored", [
        "not-a-hash",
        "",
        "$argon2id$v=19$m=8192,t=1,p=1$garbage",
    ])
    def test_verify_fails_closed_on_malformed_hash(self, fast_hasher, stored):
        assert fast_hasher.verify("password123", stored) is False

    def test_verify_malformed_hash_logs_no_error(self, fast_hasher, caplog):
        """Fail-closed verification is not a server fault."""
        with caplog.at_level(logging.DEBUG):
            assert fast_hasher.verify("password123", "not-a-hash") is False

        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    def test_verify_accepts_hash_from_other_parameters(self, fast_hasher):
        """Parameters are read from the stored string, not the hasher."""
        other = CredentialHasher(time_cost=2, memory_cost=16384, parallelism=2)
        hashed = other.hash("password123")

        assert fast_hasher.verify("password123", hashed) is True


class TestCredentialCheck:
    """Test the login-path check."""

    def test_check_success(self, fast_hasher):
        hashed = fast_hasher.hash("password123")
        fast_hasher.check("password123", hashed)

    def test_check_mismatch_is_unauthorized(self, fast_hasher):
        hashed = fast_hasher.hash("password123")

        with pytest.raises(UnauthorizedError):
            fast_hasher.check("nope", hashed)

    def test_check_corrupt_credential_is_internal(self, fast_hasher):
        """A corrupt stored hash is a server fault, not a wrong password."""
        with pytest.raises(CredentialFormatError) as exc_info:
            fast_hasher.check("password123", "not-a-hash")

        assert exc_info.value.status_code == 500

    def test_needs_rehash(self, fast_hasher):
        other = CredentialHasher(time_cost=2, memory_cost=16384, parallelism=2)

        assert fast_hasher.needs_rehash(fast_hasher.hash("pw")) is False
        assert fast_hasher.needs_rehash(other.hash("pw")) is True


class TestCredentialHasherAsync:
    """Test the executor-backed variants."""

    @pytest.mark.asyncio
    async def test_hash_and_verify_async(self, fast_hasher):
        hashed = await fast_hasher.hash_async("password123")

        assert await fast_hasher.verify_async("password123", hashed) is True
        assert await fast_hasher.verify_async("other", hashed) is False

    @pytest.mark.asyncio
    async def test_check_async_raises(self, fast_hasher):
        hashed = await fast_hasher.hash_async("password123")

        await fast_hasher.check_async("password123", hashed)
        with pytest.raises(UnauthorizedError):
            await fast_hasher.check_async("other", hashed)

    def test_executor_created_lazily_and_released(self):
        hasher = CredentialHasher(time_cost=1, memory_cost=8192, parallelism=1, max_workers=1)
        assert hasher._executor is None

        executor = hasher.executor
        assert hasher.executor is executor

        hasher.shutdown()
        assert hasher._executor is None
        hasher.shutdown()
