"""Execution: the engine, transaction coordinator and Database context."""

from typedsql.execution.context import Database
from typedsql.execution.engine import Executor
from typedsql.execution.transaction import TransactionCoordinator, TransactionState

__all__ = ["Database", "Executor", "TransactionCoordinator", "TransactionState"]
