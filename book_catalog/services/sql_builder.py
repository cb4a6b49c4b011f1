"""
Parameterized SELECT builder.

Clauses are collected as an ordered list of (clause, bound value) pairs and
rendered into a SQLAlchemy ``TextClause`` with named bind parameters. The
driver dialect turns those names into its own placeholder syntax, so user
input never ends up in the SQL text.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from sqlalchemy import bindparam, text
from sqlalchemy.sql.expression import TextClause

from book_catalog.schemas.book import SortOrder

# Fixed ORDER BY literals, selected by enum and never by caller text
ORDER_BY_CLAUSES = {
    SortOrder.PRICE_ASC: "price ASC",
    SortOrder.PRICE_DESC: "price DESC",
}

_NO_VALUE = object()

# Render order of clause kinds within the statement
_WHERE, _ORDER_BY, _LIMIT, _OFFSET = range(4)


class _Clause(NamedTuple):
    kind: int
    template: str  # "{}" marks the bound-parameter slot
    value: Any


class RenderedQuery(NamedTuple):
    statement: TextClause
    args: list[Any]


class SelectBuilder:
    def __init__(self, table: str, columns: list[str]) -> None:
        for name in [table, *columns]:
            _check_identifier(name)
        self._base = f"SELECT {', '.join(columns)} FROM {table}"
        self._clauses: list[_Clause] = []

    def where_equals(self, column: str, value: Any) -> SelectBuilder:
        _check_identifier(column)
        self._clauses.append(_Clause(_WHERE, f"{column} = {{}}", value))
        return self

    def order_by(self, sort: SortOrder) -> SelectBuilder:
        clause = ORDER_BY_CLAUSES.get(SortOrder(sort))
        if clause is not None:
            self._clauses.append(_Clause(_ORDER_BY, clause, _NO_VALUE))
        return self

    def limit(self, value: int) -> SelectBuilder:
        return self._replace(_Clause(_LIMIT, "LIMIT {}", value))

    def offset(self, value: int) -> SelectBuilder:
        return self._replace(_Clause(_OFFSET, "OFFSET {}", value))

    def _replace(self, clause: _Clause) -> SelectBuilder:
        self._clauses = [c for c in self._clauses if c.kind != clause.kind]
        self._clauses.append(clause)
        return self

    def build(self) -> RenderedQuery:
        """Render clauses in SQL order, numbering bound parameters as they appear."""
        params = []
        args: list[Any] = []
        rendered: dict[int, list[str]] = {kind: [] for kind in (_WHERE, _ORDER_BY, _LIMIT, _OFFSET)}

        # sorted() is stable, so filters keep the order they were added in
        for clause in sorted(self._clauses, key=lambda c: c.kind):
            sql = clause.template
            if clause.value is not _NO_VALUE:
                name = f"p{len(args) + 1}"
                params.append(bindparam(name, value=clause.value))
                args.append(clause.value)
                sql = clause.template.format(f":{name}")
            rendered[clause.kind].append(sql)

        parts = [self._base]
        if rendered[_WHERE]:
            parts.append("WHERE " + " AND ".join(rendered[_WHERE]))
        if rendered[_ORDER_BY]:
            parts.append("ORDER BY " + ", ".join(rendered[_ORDER_BY]))
        parts.extend(rendered[_LIMIT])
        parts.extend(rendered[_OFFSET])

        statement = text(" ".join(parts)).bindparams(*params)
        return RenderedQuery(statement, args)


def _check_identifier(name: str) -> None:
    if not name.isidentifier():
        raise ValueError(f"not a plain SQL identifier: {name!r}")
