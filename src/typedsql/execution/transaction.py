"""
Transaction coordinator.

Commit and rollback are delegated to the database through the adapter;
the coordinator only decides *when*.  The body's outcome drives the
decision:

    ===========================  ==========================================
    body outcome                 coordinator
    ===========================  ==========================================
    returns ``Err``              rollback, return the ``Err``
    returns ``Ok`` or a value    commit, return ``Ok``
    raises                       rollback, re-raise
    ===========================  ==========================================

Nested scopes join the enclosing transaction: only the outermost scope
commits or rolls back, and an ``Err`` from a nested body is handed back to
the enclosing body to act on.  A nested scope that raises dooms the
whole transaction even when an enclosing body catches the exception; the
outermost ``run`` then rolls back and returns that exception as ``Err``.

Examples:
    >>> def body(db):
    ...     db.insert_into(ACTOR, "first_name", "last_name").values("A", "B").execute()
    ...     return Err(ValueError("changed my mind"))
    >>> db.transaction(body).is_err()   # nothing was inserted
    True

Tags:
    transaction, result, rollback, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from typedsql.core.adapters import DatabaseAdapter
from typedsql.core.errors import DatabaseError
from typedsql.core.logging import LogContext, get_logger
from typedsql.core.result import Err, Ok, Result

logger = get_logger(__name__)

C = TypeVar("C")


@dataclass
class TransactionState:
    """The open transaction of one coordinator."""

    transaction_id: str
    depth: int = 1
    rollback_only: bool = False
    failure: Exception | None = None

    def mark_rollback(self) -> None:
        """Roll back instead of committing when the outermost scope ends."""
        self.rollback_only = True

    def mark_failed(self, error: BaseException) -> None:
        """Record a nested scope that raised; the whole transaction is lost."""
        self.mark_rollback()
        if self.failure is None and isinstance(error, Exception):
            self.failure = error


class TransactionCoordinator:
    """Scopes statements on one adapter to transactions."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter
        self._state: TransactionState | None = None

    @property
    def in_transaction(self) -> bool:
        return self._state is not None

    @property
    def depth(self) -> int:
        return self._state.depth if self._state else 0

    @contextmanager
    def scope(self) -> Iterator[TransactionState]:
        """Context-manager form: commit on normal exit, rollback on exception."""
        if self._state is not None:
            self._state.depth += 1
            try:
                yield self._state
            except BaseException as exc:
                self._state.mark_failed(exc)
                raise
            finally:
                self._state.depth -= 1
            return

        state = TransactionState(uuid.uuid4().hex[:12])
        with LogContext(transaction_id=state.transaction_id):
            self.adapter.begin()
            self._state = state
            logger.debug("transaction_begin")
            try:
                yield state
            except BaseException:
                self._state = None
                self._rollback("exception")
                raise
            self._state = None
            if state.rollback_only:
                self._rollback("rollback_only")
            else:
                try:
                    self.adapter.commit()
                except DatabaseError:
                    self._rollback("commit_failed")
                    raise
                logger.debug("transaction_commit")

    def run(self, body: Callable[[C], Any], context: C) -> Result[Any]:
        """Run ``body(context)`` in a transaction and return its outcome as a Result."""
        with self.scope() as state:
            outermost = state.depth == 1
            outcome = body(context)
            if isinstance(outcome, Err):
                if outermost:
                    state.mark_rollback()
                return outcome
        if outermost and state.failure is not None:
            # a nested body raised and the enclosing body swallowed it
            return Err(state.failure)
        if isinstance(outcome, Ok):
            return outcome
        return Ok(outcome)

    def _rollback(self, reason: str) -> None:
        try:
            self.adapter.rollback()
        except DatabaseError as exc:
            # the body's own error is the one the caller needs to see
            logger.warning("transaction_rollback_failed", reason=reason, error=str(exc))
            return
        logger.debug("transaction_rollback", reason=reason)


__all__ = ["TransactionCoordinator", "TransactionState"]
