"""Declarative query filters.

Each list endpoint declares the filters it supports as a tuple of
``FieldFilter`` entries. A filter names the query parameter it reads, the
kind of comparison and the column(s) it applies to; ``build_predicates``
turns the supplied parameter values into bound SQLAlchemy predicates.
Parameters that are absent (``None``) contribute nothing.

Semantics:

* ``CONTAINS``: case-insensitive substring match; with several columns a
  row matches when any column contains the value. ``%`` and ``_`` in the
  value are matched literally.
* ``GTE`` / ``LTE``: inclusive lower / upper bound.
* ``EQ``: equality.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

LIKE_ESCAPE = "\\"


class FilterKind(str, Enum):
    CONTAINS = "contains"
    GTE = "gte"
    LTE = "lte"
    EQ = "eq"


def escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


@dataclass(frozen=True)
class FieldFilter:
    param: str
    kind: FilterKind
    columns: tuple

    def predicate(self, value: Any) -> ColumnElement:
        if self.kind == FilterKind.CONTAINS:
            pattern = f"%{escape_like(str(value))}%"
            clauses = [col.ilike(pattern, escape=LIKE_ESCAPE) for col in self.columns]
            return clauses[0] if len(clauses) == 1 else or_(*clauses)

        (column,) = self.columns
        if self.kind == FilterKind.GTE:
            return column >= value
        if self.kind == FilterKind.LTE:
            return column <= value
        return column == value


def build_predicates(
    filters: Iterable[FieldFilter], values: Mapping[str, Any]
) -> list[ColumnElement]:
    predicates = []
    for field_filter in filters:
        value = values.get(field_filter.param)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        predicates.append(field_filter.predicate(value))
    return predicates
