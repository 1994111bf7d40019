"""Predicate fragments understood by every asset store.

A predicate is a small immutable tree.  Stores either render it to SQL with
:meth:`Predicate.to_sql` or test records in-process with
:meth:`Predicate.evaluate`; both paths give ``None`` the SQL ``NULL``
meaning, so a comparison against a missing value never matches.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Tuple

from ...errors import InvalidArgumentError

SqlFragment = Tuple[str, List[Any]]


class Op(str, Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "IN"


def utc_text(value: datetime) -> str:
    """Render *value* as fixed-width UTC text; naive values are taken as UTC.

    Stored and bound dates both go through here so SQL text comparison
    orders instants, not wall-clock strings.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


_PY_OPS: dict[Op, Callable[[Any, Any], bool]] = {
    Op.EQ: operator.eq,
    Op.NE: operator.ne,
    Op.LT: operator.lt,
    Op.LE: operator.le,
    Op.GT: operator.gt,
    Op.GE: operator.ge,
}


def adapt_sql_value(value: Any) -> Any:
    """Convert a Python value into something sqlite3 can bind."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return int(value.value) if isinstance(value.value, int) else value.value
    if isinstance(value, datetime):
        return utc_text(value)
    return value


def _column(columns: Mapping[str, str], key: str) -> str:
    try:
        return columns[key]
    except KeyError:
        raise InvalidArgumentError(f"Unsupported predicate key: {key!r}") from None


class Predicate:
    """Base class of all predicate nodes."""

    def evaluate(self, record: Any) -> bool:
        raise NotImplementedError

    def to_sql(self, columns: Mapping[str, str], adapt: Callable[[Any], Any] = adapt_sql_value) -> SqlFragment:
        raise NotImplementedError

    def __and__(self, other: Predicate) -> Predicate:
        return And((self, other))

    def __or__(self, other: Predicate) -> Predicate:
        return Or((self, other))

    def __invert__(self) -> Predicate:
        return Not(self)


@dataclass(frozen=True)
class Constant(Predicate):
    value: bool

    def evaluate(self, record: Any) -> bool:
        return self.value

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        return ("1=1" if self.value else "1=0"), []


TRUE = Constant(True)
FALSE = Constant(False)


@dataclass(frozen=True)
class Comparison(Predicate):
    key: str
    op: Op
    value: Any

    def __post_init__(self):
        if self.op is Op.IN:
            # Freeze the candidates so the node stays hashable and reusable.
            object.__setattr__(self, "value", tuple(self.value))

    def evaluate(self, record: Any) -> bool:
        actual = getattr(record, self.key, None)
        if self.value is None and self.op in (Op.EQ, Op.NE):
            return (actual is None) if self.op is Op.EQ else (actual is not None)
        if actual is None:
            return False
        if self.op is Op.IN:
            return actual in self.value
        if self.value is None:
            return False
        return bool(_PY_OPS[self.op](actual, self.value))

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        column = _column(columns, self.key)
        if self.value is None and self.op in (Op.EQ, Op.NE):
            return (f"{column} IS NULL" if self.op is Op.EQ else f"{column} IS NOT NULL"), []
        if self.op is Op.IN:
            if not self.value:
                return "1=0", []
            marks = ", ".join("?" for _ in self.value)
            return f"{column} IN ({marks})", [adapt(v) for v in self.value]
        return f"{column} {self.op.value} ?", [adapt(self.value)]


@dataclass(frozen=True)
class BitmaskAny(Predicate):
    """Matches when any bit of *mask* is set on the record's *key*."""

    key: str
    mask: int

    def evaluate(self, record: Any) -> bool:
        actual = getattr(record, self.key, None)
        if actual is None:
            return False
        return (int(actual) & int(self.mask)) != 0

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        return f"({_column(columns, self.key)} & ?) != 0", [int(self.mask)]


@dataclass(frozen=True)
class BitmaskNone(Predicate):
    """Matches when no bit of *mask* is set on the record's *key*."""

    key: str
    mask: int

    def evaluate(self, record: Any) -> bool:
        actual = getattr(record, self.key, None)
        if actual is None:
            return False
        return (int(actual) & int(self.mask)) == 0

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        return f"({_column(columns, self.key)} & ?) = 0", [int(self.mask)]


def _flatten(terms: Iterable[Predicate], kind: type) -> tuple[Predicate, ...]:
    flat: list[Predicate] = []
    for term in terms:
        if isinstance(term, kind):
            flat.extend(term.terms)
        else:
            flat.append(term)
    return tuple(flat)


@dataclass(frozen=True)
class And(Predicate):
    terms: tuple[Predicate, ...]

    def __post_init__(self):
        object.__setattr__(self, "terms", _flatten(self.terms, And))

    def evaluate(self, record: Any) -> bool:
        return all(term.evaluate(record) for term in self.terms)

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        if not self.terms:
            return "1=1", []
        parts, params = [], []
        for term in self.terms:
            sql, term_params = term.to_sql(columns, adapt)
            parts.append(f"({sql})")
            params.extend(term_params)
        return " AND ".join(parts), params


@dataclass(frozen=True)
class Or(Predicate):
    terms: tuple[Predicate, ...]

    def __post_init__(self):
        object.__setattr__(self, "terms", _flatten(self.terms, Or))

    def evaluate(self, record: Any) -> bool:
        return any(term.evaluate(record) for term in self.terms)

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        if not self.terms:
            return "1=0", []
        parts, params = [], []
        for term in self.terms:
            sql, term_params = term.to_sql(columns, adapt)
            parts.append(f"({sql})")
            params.extend(term_params)
        return " OR ".join(parts), params


@dataclass(frozen=True)
class Not(Predicate):
    term: Predicate

    def evaluate(self, record: Any) -> bool:
        return not self.term.evaluate(record)

    def to_sql(self, columns, adapt=adapt_sql_value) -> SqlFragment:
        sql, params = self.term.to_sql(columns, adapt)
        # NULL inside the term counts as "no match", so NOT turns it into a match
        # exactly like evaluate() does.
        return f"NOT COALESCE(({sql}), 0)", params


def where(key: str, op: Op | str, value: Any) -> Comparison:
    """Shorthand for ``Comparison(key, Op(op), value)``."""
    return Comparison(key, Op(op), value)


def all_of(*terms: Predicate) -> Predicate:
    return And(terms)


def any_of(*terms: Predicate) -> Predicate:
    return Or(terms)


__all__ = [
    "And",
    "BitmaskAny",
    "BitmaskNone",
    "Comparison",
    "Constant",
    "FALSE",
    "Not",
    "Op",
    "Or",
    "Predicate",
    "TRUE",
    "adapt_sql_value",
    "all_of",
    "any_of",
    "where",
]
