"""Semantic column types.

``ColumnType`` is the closed set of value kinds a column can declare.  It
decides which Python values a column accepts in predicates and inserts,
which columns may be compared with each other, and how raw driver values
are turned back into Python values when rows are read.

Examples:
    >>> ColumnType.INTEGER.accepts(3)
    True
    >>> ColumnType.INTEGER.accepts(True)
    False
    >>> ColumnType.DATE.coerce("2006-02-15")
    datetime.date(2006, 2, 15)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class ColumnType(str, Enum):
    """Value kind of a column."""

    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    DECIMAL = "DECIMAL"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DATETIME = "DATETIME"
    BYTES = "BYTES"

    @property
    def python_types(self) -> tuple[type, ...]:
        """Python types accepted as literal values for this kind."""
        return _PYTHON_TYPES[self]

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC

    def accepts(self, value: Any) -> bool:
        """Whether ``value`` is a valid literal for this kind.

        ``bool`` is only ever a BOOLEAN and a ``datetime`` is never a DATE,
        even though Python subclasses say otherwise.
        """
        if isinstance(value, bool):
            return self is ColumnType.BOOLEAN
        if self is ColumnType.DATE and isinstance(value, datetime):
            return False
        return isinstance(value, self.python_types)

    def comparable_with(self, other: ColumnType) -> bool:
        """Whether columns of the two kinds may be compared."""
        if self is other:
            return True
        if self.is_numeric and other.is_numeric:
            return True
        return {self, other} == {ColumnType.DATE, ColumnType.DATETIME}

    def coerce(self, value: Any) -> Any:
        """Turn a raw driver (or JSON) value into this kind's Python type."""
        if value is None:
            return None
        match self:
            case ColumnType.STRING:
                return value if isinstance(value, str) else str(value)
            case ColumnType.INTEGER:
                return value if type(value) is int else int(value)
            case ColumnType.FLOAT:
                return value if type(value) is float else float(value)
            case ColumnType.DECIMAL:
                return value if isinstance(value, Decimal) else Decimal(str(value))
            case ColumnType.BOOLEAN:
                return bool(value)
            case ColumnType.DATE:
                if isinstance(value, datetime):
                    return value.date()
                if isinstance(value, date):
                    return value
                return date.fromisoformat(str(value)[:10])
            case ColumnType.DATETIME:
                if isinstance(value, datetime):
                    return value
                if isinstance(value, date):
                    return datetime(value.year, value.month, value.day)
                return datetime.fromisoformat(str(value))
            case ColumnType.BYTES:
                return value if isinstance(value, bytes) else bytes(value)

    @classmethod
    def parse(cls, name: str) -> ColumnType:
        """Look a kind up by (case-insensitive) name or alias."""
        key = name.strip().upper()
        key = _ALIASES.get(key, key)
        return cls(key)


_PYTHON_TYPES: dict[ColumnType, tuple[type, ...]] = {
    ColumnType.STRING: (str,),
    ColumnType.INTEGER: (int,),
    ColumnType.FLOAT: (float, int),
    ColumnType.DECIMAL: (Decimal, int),
    ColumnType.BOOLEAN: (bool,),
    ColumnType.DATE: (date,),
    ColumnType.DATETIME: (datetime,),
    ColumnType.BYTES: (bytes, bytearray, memoryview),
}

_NUMERIC = frozenset({ColumnType.INTEGER, ColumnType.FLOAT, ColumnType.DECIMAL})

_ALIASES = {
    "STR": "STRING",
    "TEXT": "STRING",
    "VARCHAR": "STRING",
    "INT": "INTEGER",
    "BIGINT": "INTEGER",
    "SMALLINT": "INTEGER",
    "REAL": "FLOAT",
    "DOUBLE": "FLOAT",
    "NUMERIC": "DECIMAL",
    "BOOL": "BOOLEAN",
    "TIMESTAMP": "DATETIME",
    "BLOB": "BYTES",
}


__all__ = ["ColumnType"]
