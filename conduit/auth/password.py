"""
Password hashing and verification.

This module provides salted, memory-hard password hashing with Argon2id.
Hashing is deliberately expensive (tens of milliseconds and tens of MiB per
call), so request handlers use the ``*_async`` variants, which run on a
dedicated thread pool instead of the event loop.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from ..core.exceptions import CredentialFormatError, UnauthorizedError

logger = logging.getLogger(__name__)


class CredentialHasher:
    """Argon2id credential hasher with fixed, process-wide parameters."""

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536,
                 parallelism: int = 4, max_workers: int = 4):
        """
        Initialize credential hasher.

        Args:
            time_cost: Argon2 iterations
            memory_cost: Argon2 memory in KiB
            parallelism: Argon2 lanes
            max_workers: Size of the thread pool used by the async variants
        """
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID
        )
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

        logger.info(
            f"Credential hasher initialized (argon2id, t={time_cost}, m={memory_cost}KiB, p={parallelism})"
        )

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="credential-hasher"
            )
        return self._executor

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password with a fresh random salt.

        Args:
            plaintext: Plain text password

        Returns:
            Self-describing PHC string (parameters, salt and hash)
        """
        return self._hasher.hash(plaintext)

    def _verify_or_raise(self, plaintext: str, stored: str) -> bool:
        try:
            return self._hasher.verify(stored, plaintext)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as e:
            raise CredentialFormatError(cause=e)

    def verify(self, plaintext: str, stored: str) -> bool:
        """
        Verify a plaintext password against a stored hash.

        Fails closed: a malformed stored string reads as "not verified". The
        comparison itself is constant-time.

        Args:
            plaintext: Plain text password
            stored: Stored PHC string

        Returns:
            True if password matches
        """
        try:
            return self._hasher.verify(stored, plaintext)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as e:
            logger.debug(f"Stored credential could not be verified: {type(e).__name__}")
            return False

    def check(self, plaintext: str, stored: str) -> None:
        """
        Verify a password on the login path.

        Raises:
            UnauthorizedError: If the password does not match
            CredentialFormatError: If the stored credential is corrupt
        """
        if not self._verify_or_raise(plaintext, stored):
            raise UnauthorizedError("Invalid credentials")

    def needs_rehash(self, stored: str) -> bool:
        """Check whether a stored hash was created with other parameters."""
        return self._hasher.check_needs_rehash(stored)

    async def hash_async(self, plaintext: str) -> str:
        """Hash off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.hash, plaintext)

    async def verify_async(self, plaintext: str, stored: str) -> bool:
        """Verify off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.verify, plaintext, stored)

    async def check_async(self, plaintext: str, stored: str) -> None:
        """Check off the event loop."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self.executor, self.check, plaintext, stored)

    def shutdown(self) -> None:
        """Release the hashing thread pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
