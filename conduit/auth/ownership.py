"""
Owner-restricted mutations as one atomic check-and-act.

Every update or delete of a user-owned resource goes through
``OwnershipGuard.execute``. It runs, inside a single transaction that holds
the store's write lock from the start:

1. an existence probe scoped by the resource key alone, and
2. the mutation itself, scoped by the resource key AND the owner.

No other writer can interleave between the two, so the pair of booleans they
produce classifies the attempt exactly:

======= ======= =========
existed mutated outcome
======= ======= =========
no      no      NOT_FOUND
yes     no      FORBIDDEN
yes     yes     SUCCESS
no      yes     invariant violation
======= ======= =========
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Sequence

from ..core.database import Database
from ..core.exceptions import ForbiddenError, InvariantViolationError, NotFoundError

logger = logging.getLogger(__name__)


class OwnershipOutcome(Enum):
    """Result of an owner-restricted mutation."""
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    SUCCESS = "success"


class Statement(NamedTuple):
    """A parameterized SQL statement."""
    sql: str
    params: Sequence[Any] = ()


def classify(existed: bool, mutated: bool) -> OwnershipOutcome:
    """
    Combine the probe and mutation results into an outcome.

    Raises:
        InvariantViolationError: If a row was mutated that did not exist
    """
    if mutated:
        if not existed:
            raise InvariantViolationError(
                "Owner-scoped mutation affected a row the existence probe did not see"
            )
        return OwnershipOutcome.SUCCESS
    if existed:
        return OwnershipOutcome.FORBIDDEN
    return OwnershipOutcome.NOT_FOUND


@dataclass(frozen=True)
class OwnershipResult:
    """Outcome plus the number of rows the mutation touched."""

    outcome: OwnershipOutcome
    rows_affected: int = 0

    @property
    def succeeded(self) -> bool:
        return self.outcome is OwnershipOutcome.SUCCESS

    def raise_for_outcome(self) -> None:
        """
        Raise the API error matching a failed outcome.

        Raises:
            NotFoundError: If the resource key does not exist
            ForbiddenError: If the resource belongs to someone else
        """
        if self.outcome is OwnershipOutcome.NOT_FOUND:
            raise NotFoundError()
        if self.outcome is OwnershipOutcome.FORBIDDEN:
            raise ForbiddenError()


class OwnershipGuard:
    """Runs owner-restricted mutations against the store."""

    def __init__(self, database: Database):
        """
        Initialize ownership guard.

        Args:
            database: Store the statements run against
        """
        self.database = database

    def execute(self, probe: Statement, mutation: Statement) -> OwnershipResult:
        """
        Authorize and perform a mutation in one indivisible unit.

        Args:
            probe: ``select exists(...)`` scoped by the resource key only
            mutation: ``update``/``delete`` scoped by resource key and owner

        Returns:
            OwnershipResult

        Raises:
            InvariantViolationError: If the store reports an impossible state
            sqlite3.IntegrityError: If the mutation violates a constraint;
                nothing is written in that case
        """
        with self.database.transaction(immediate=True) as conn:
            existed = bool(conn.execute(probe.sql, probe.params).fetchone()[0])
            rows_affected = conn.execute(mutation.sql, mutation.params).rowcount
            outcome = classify(existed, rows_affected > 0)

        logger.debug(f"Ownership-guarded mutation: {outcome.value}")
        return OwnershipResult(outcome=outcome, rows_affected=max(rows_affected, 0))
