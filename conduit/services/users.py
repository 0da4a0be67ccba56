"""
Account service: registration, login and profile updates.

Hashing goes through the credential hasher's async variants and every store
call runs on the worker thread pool, so the event loop never blocks here.
"""

import sqlite3
import logging
from typing import Any, Dict, Optional

from starlette.concurrency import run_in_threadpool

from ..auth.models import Identity, UserRecord, create_user_id
from ..auth.password import CredentialHasher
from ..core.database import Database, constraint_name, utc_timestamp
from ..core.exceptions import ConduitError, InternalError, NotFoundError, UnprocessableEntityError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("email", "username", "bio", "image")

USER_COLUMNS = "user_id, username, email, bio, image, password_hash"


def unique_violation(error: sqlite3.IntegrityError) -> ConduitError:
    """Translate a unique-constraint failure on the user table."""
    name = constraint_name(error)
    if name == "user.username":
        return UnprocessableEntityError.single("username", "username taken")
    if name == "user.email":
        return UnprocessableEntityError.single("email", "email taken")
    return InternalError("Unexpected constraint violation on user", cause=error)


class UserService:
    """Service for account management."""

    def __init__(self, database: Database, hasher: CredentialHasher):
        """
        Initialize the user service.

        Args:
            database: Backing store
            hasher: Credential hasher
        """
        self.database = database
        self.hasher = hasher

    def get_by_id(self, user_id: Identity) -> UserRecord:
        row = self.database.fetch_one(
            f'select {USER_COLUMNS} from "user" where user_id = ?', (str(user_id),)
        )
        if row is None:
            raise NotFoundError("User not found")
        return UserRecord.from_row(row)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        row = self.database.fetch_one(
            f'select {USER_COLUMNS} from "user" where email = ?', (email,)
        )
        return UserRecord.from_row(row) if row else None

    def _insert(self, username: str, email: str, password_hash: str) -> UserRecord:
        user_id = create_user_id()
        try:
            with self.database.transaction() as conn:
                conn.execute(
                    'insert into "user" (user_id, username, email, password_hash, created_at) '
                    'values (?, ?, ?, ?, ?)',
                    (str(user_id), username, email, password_hash, utc_timestamp())
                )
        except sqlite3.IntegrityError as e:
            raise unique_violation(e) from e

        return UserRecord(
            user_id=user_id,
            username=username,
            email=email,
            bio="",
            image=None,
            password_hash=password_hash
        )

    def _update(self, user_id: Identity, changes: Dict[str, Any],
                password_hash: Optional[str]) -> UserRecord:
        try:
            with self.database.transaction() as conn:
                cursor = conn.execute(
                    '''
                    update "user"
                    set email = coalesce(?, email),
                        username = coalesce(?, username),
                        password_hash = coalesce(?, password_hash),
                        bio = coalesce(?, bio),
                        image = coalesce(?, image),
                        updated_at = ?
                    where user_id = ?
                    ''',
                    (
                        changes.get("email"),
                        changes.get("username"),
                        password_hash,
                        changes.get("bio"),
                        changes.get("image"),
                        utc_timestamp(),
                        str(user_id)
                    )
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("User not found")
                row = conn.execute(
                    f'select {USER_COLUMNS} from "user" where user_id = ?', (str(user_id),)
                ).fetchone()
        except sqlite3.IntegrityError as e:
            raise unique_violation(e) from e

        return UserRecord.from_row(row)

    def _set_password_hash(self, user_id: Identity, password_hash: str) -> None:
        with self.database.transaction() as conn:
            conn.execute(
                'update "user" set password_hash = ? where user_id = ?',
                (password_hash, str(user_id))
            )

    async def register(self, username: str, email: str, password: str) -> UserRecord:
        """
        Create an account.

        Raises:
            UnprocessableEntityError: If the username or email is taken
        """
        password_hash = await self.hasher.hash_async(password)
        user = await run_in_threadpool(self._insert, username, email, password_hash)
        logger.info(f"User registered: {username}")
        return user

    async def login(self, email: str, password: str) -> UserRecord:
        """
        Authenticate by email and password.

        Raises:
            UnprocessableEntityError: If no account has this email
            UnauthorizedError: If the password is wrong
            CredentialFormatError: If the stored hash is corrupt
        """
        user = await run_in_threadpool(self.get_by_email, email)
        if user is None:
            raise UnprocessableEntityError.single("email", "does not exist")

        await self.hasher.check_async(password, user.password_hash)

        if self.hasher.needs_rehash(user.password_hash):
            new_hash = await self.hasher.hash_async(password)
            await run_in_threadpool(self._set_password_hash, user.user_id, new_hash)
            user.password_hash = new_hash
            logger.info(f"Rehashed credential with current parameters for: {user.username}")

        logger.debug(f"User logged in: {user.username}")
        return user

    async def current(self, user_id: Identity) -> UserRecord:
        return await run_in_threadpool(self.get_by_id, user_id)

    async def update(self, user_id: Identity, changes: Dict[str, Any]) -> UserRecord:
        """
        Apply a partial update; fields left out keep their value.

        Args:
            user_id: Account to update
            changes: Any of email, username, password, bio, image

        Raises:
            UnprocessableEntityError: If the new username or email is taken
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return await self.current(user_id)

        password = changes.pop("password", None)
        password_hash = await self.hasher.hash_async(password) if password is not None else None

        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        user = await run_in_threadpool(self._update, user_id, fields, password_hash)
        logger.info(f"User updated: {user.username}")
        return user
