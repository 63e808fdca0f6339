"""
Result envelope for explicit success/failure outcomes.

``Ok[T]`` and ``Err[T]`` make an outcome a value instead of a raised
exception.  The transaction coordinator uses them to decide between commit
and rollback without relying on exception control flow: a transaction body
that returns ``Err`` is rolled back, one that returns ``Ok`` (or any plain
value) is committed.

Architecture:
    ::

        ┌─────────────────┬─────────────────┬──────────────────────┐
        │     Ok[T]       │     Err[T]      │     Utilities        │
        ├─────────────────┼─────────────────┼──────────────────────┤
        │ • value: T      │ • error: Exc    │ • try_result()       │
        │ • map()         │ • map_err()     │ • collect_results()  │
        │ • flat_map()    │ • unwrap_or()   │ • as_result()        │
        └─────────────────┴─────────────────┴──────────────────────┘

Examples:
    >>> from typedsql.core.result import Ok, Err
    >>> Ok(2).map(lambda x: x * 3).unwrap()
    6
    >>> Err(ValueError("boom")).unwrap_or(0)
    0

    Deciding a transaction outcome:

    >>> def body(ctx):
    ...     if not ctx.insert_into(actor).set(actor.c.first_name, "A").execute():
    ...         return Err(ValueError("nothing inserted"))
    ...     return Ok(None)

Guardrails:
    ❌ DON'T: call ``unwrap()`` without checking ``is_ok()``
    ✅ DO: pattern match on ``Ok(value)`` / ``Err(error)``

Tags:
    result-pattern, error-handling, transactions, typedsql

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from typedsql.core.errors import TypedSQLError


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome wrapping a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value."""
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed outcome wrapping the exception that describes it."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Err(self.error)

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, TypedSQLError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def as_result(value: Any) -> Result[Any]:
    """Return ``value`` unchanged if it already is a Result, else wrap it in Ok."""
    if isinstance(value, (Ok, Err)):
        return value
    return Ok(value)


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Run ``f`` and capture its outcome.

    Returns ``Ok`` with the return value, or ``Err`` with the raised
    exception.
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


def collect_results(results: list[Result[T]]) -> Result[list[T]]:
    """Collapse a list of results into one: the first ``Err`` wins."""
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return Err(result.error)
        values.append(result.value)
    return Ok(values)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "as_result",
    "try_result",
    "collect_results",
]
