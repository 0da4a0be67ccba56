"""
SQLite persistence for the Conduit API.

Each unit of work opens its own connection, so any worker thread can use the
store without sharing connection state. Writers that must be atomic with a
preceding read use ``transaction(immediate=True)``, which takes SQLite's
write lock up front.
"""

import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)


def format_timestamp(value: datetime) -> str:
    """
    Render a timestamp in the stored form.

    Stored timestamps are fixed-width UTC ISO-8601 strings, so they sort and
    compare correctly as text. Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def utc_timestamp() -> str:
    """Current time in the stored form."""
    return format_timestamp(datetime.now(timezone.utc))


SCHEMA = """
create table if not exists "user" (
    user_id       text primary key,
    username      text not null unique,
    email         text not null unique,
    bio           text not null default '',
    image         text,
    password_hash text not null,
    created_at    text not null,
    updated_at    text
);

create table if not exists follow (
    followed_user_id  text not null references "user" (user_id) on delete cascade,
    following_user_id text not null references "user" (user_id) on delete cascade,
    created_at        text not null,
    constraint user_cannot_follow_self check (followed_user_id != following_user_id),
    primary key (following_user_id, followed_user_id)
);

create table if not exists article (
    article_id  text primary key,
    user_id     text not null references "user" (user_id) on delete cascade,
    slug        text not null unique,
    title       text not null,
    description text not null,
    body        text not null,
    tag_list    text not null default '[]',
    created_at  text not null,
    updated_at  text not null
);

create index if not exists article_created_at_idx on article (created_at);

create table if not exists article_favorite (
    article_id text not null references article (article_id) on delete cascade,
    user_id    text not null references "user" (user_id) on delete cascade,
    created_at text not null,
    primary key (article_id, user_id)
);

create table if not exists article_comment (
    comment_id integer primary key autoincrement,
    article_id text not null references article (article_id) on delete cascade,
    user_id    text not null references "user" (user_id) on delete cascade,
    body       text not null,
    created_at text not null,
    updated_at text not null
);

create index if not exists article_comment_article_idx on article_comment (article_id, created_at);
"""


class Database:
    """Connection factory and transaction helper for the SQLite store."""

    def __init__(self, path: str, timeout: float = 5.0):
        """
        Initialize database.

        Args:
            path: Path to the SQLite database file
            timeout: Seconds a connection waits on a locked database
        """
        self.path = Path(path)
        self.timeout = timeout

    def connect(self) -> sqlite3.Connection:
        """Open a connection in autocommit mode; transactions are explicit."""
        conn = sqlite3.connect(
            str(self.path),
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        conn.execute("pragma foreign_keys = on")
        return conn

    def init_schema(self) -> None:
        """Create the schema if it does not exist yet."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = self.connect()
        try:
            conn.execute("pragma journal_mode = wal")
            conn.executescript(SCHEMA)
        finally:
            conn.close()
        logger.info(f"Database schema ready at {self.path}")

    @contextmanager
    def transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Run a block inside one transaction.

        Args:
            immediate: Acquire the write lock at ``begin`` instead of at the
                first write. Required when a read must not be invalidated by
                a concurrent writer before this transaction writes.

        Yields:
            A connection with an open transaction; committed on normal exit,
            rolled back on any exception.
        """
        conn = self.connect()
        try:
            conn.execute("begin immediate" if immediate else "begin")
            try:
                yield conn
            except BaseException:
                conn.execute("rollback")
                raise
            conn.execute("commit")
        finally:
            conn.close()

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        """Run a read query and return the first row, if any."""
        conn = self.connect()
        try:
            return conn.execute(sql, params).fetchone()
        finally:
            conn.close()

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        """Run a read query and return all rows."""
        conn = self.connect()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()


def constraint_name(error: sqlite3.IntegrityError) -> str:
    """
    Best-effort name of the constraint an IntegrityError refers to.

    SQLite reports unique violations as ``UNIQUE constraint failed: user.email``
    and named checks as ``CHECK constraint failed: user_cannot_follow_self``.
    """
    message = str(error)
    _, _, detail = message.partition(": ")
    return detail.strip()
