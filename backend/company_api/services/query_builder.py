"""
QueryBuilder: fluent SQL query construction with parameterized queries.

Compiles filter expressions for the SQLite company store. All user input goes
through ? placeholders; column names and sort expressions only ever come from
whitelists.
"""
from __future__ import annotations

import re
from typing import Any, Iterable

from .filters import (
    ContainsAll,
    ExactMatch,
    FilterExpression,
    PatternMatch,
    RangeMatch,
    TextMatch,
)

LIKE_ESCAPE = "\\"

_FTS_TOKEN = re.compile(r"\w+", re.UNICODE)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def fts_query(search: str) -> str:
    """Turn free text into an FTS5 query of quoted terms (implicit AND).

    Quoting every token keeps user input from being read as FTS syntax.
    Returns an empty string when the input has no word characters.
    """
    return " ".join(f'"{token}"' for token in _FTS_TOKEN.findall(search))


class QueryBuilder:
    """Fluent SQL query builder with safe parameterization."""

    def __init__(self, base_table: str):
        """
        Args:
            base_table: Table name with optional alias, e.g. "companies c"
        """
        self.base_table = base_table
        self._conditions: list[str] = []
        self._params: list[Any] = []
        self._order_by: str | None = None
        self._limit: int | None = None
        self._offset: int | None = None

    # --- Leaf filters ---

    def filter_text(self, search: str | None, fts_table: str, id_column: str = "id") -> QueryBuilder:
        """Restrict to rows the FTS5 index matches.

        A search with no indexable terms can match nothing.
        """
        if not search:
            return self
        query = fts_query(search)
        if not query:
            self._conditions.append("0 = 1")
            return self
        self._conditions.append(
            f"{id_column} IN (SELECT rowid FROM {fts_table} WHERE {fts_table} MATCH ?)"
        )
        self._params.append(query)
        return self

    def filter_pattern(self, pattern: str | None, column: str) -> QueryBuilder:
        """Case-insensitive substring match."""
        if pattern:
            self._conditions.append(
                f"LOWER({column}) LIKE LOWER(?) ESCAPE '{LIKE_ESCAPE}'"
            )
            self._params.append(f"%{escape_like(pattern)}%")
        return self

    def filter_exact(self, value: Any, column: str) -> QueryBuilder:
        """Equality if a value is provided."""
        if value is not None and value != "":
            self._conditions.append(f"{column} = ?")
            self._params.append(value)
        return self

    def filter_range(
        self,
        low: float | None,
        high: float | None,
        column: str,
    ) -> QueryBuilder:
        """Inclusive range; bounds are applied as given, even when inverted."""
        if low is not None:
            self._conditions.append(f"{column} >= ?")
            self._params.append(low)
        if high is not None:
            self._conditions.append(f"{column} <= ?")
            self._params.append(high)
        return self

    def filter_contains_all(self, values: Iterable[str], json_column: str) -> QueryBuilder:
        """Every value must be an element of the JSON array column."""
        for value in values:
            self._conditions.append(
                f"EXISTS (SELECT 1 FROM json_each({json_column}) WHERE json_each.value = ?)"
            )
            self._params.append(value)
        return self

    def apply(
        self,
        expression: FilterExpression,
        columns: dict[str, str],
        fts_table: str,
    ) -> QueryBuilder:
        """Add one condition per leaf of a filter expression.

        Args:
            expression: Leaves to compile
            columns: Maps record field names to SQL column expressions
            fts_table: FTS5 table used for text leaves
        """
        for leaf in expression:
            if isinstance(leaf, TextMatch):
                self.filter_text(leaf.query, fts_table, id_column=columns["id"])
            elif isinstance(leaf, PatternMatch):
                self.filter_pattern(leaf.pattern, columns[leaf.field])
            elif isinstance(leaf, ExactMatch):
                self.filter_exact(leaf.value, columns[leaf.field])
            elif isinstance(leaf, RangeMatch):
                self.filter_range(leaf.gte, leaf.lte, columns[leaf.field])
            elif isinstance(leaf, ContainsAll):
                self.filter_contains_all(leaf.values, columns[leaf.field])
            else:
                raise TypeError(f"Unsupported filter leaf: {leaf!r}")
        return self

    # --- Sorting ---

    def sort(
        self,
        fields: Iterable[tuple[str, str]],
        whitelist: dict[str, str],
        tiebreaker: str | None = None,
    ) -> QueryBuilder:
        """
        Set ORDER BY from (field, order) pairs mapped through a whitelist.

        Args:
            fields: Record field names with 'asc' or 'desc'
            whitelist: Maps safe field names to SQL column expressions.
                       Unknown fields raise KeyError; callers decide how to report it.
            tiebreaker: Column appended last (ascending) for a stable order
        """
        parts: list[str] = []
        used: set[str] = set()
        for name, order in fields:
            column = whitelist[name]
            if column in used:
                continue
            used.add(column)
            safe_order = "DESC" if order and order.lower() == "desc" else "ASC"
            parts.append(f"{column} {safe_order}")
        if tiebreaker and tiebreaker not in used:
            parts.append(f"{tiebreaker} ASC")
        self._order_by = ", ".join(parts) if parts else None
        return self

    # --- Pagination ---

    def paginate(self, offset: int, limit: int) -> QueryBuilder:
        """Set LIMIT/OFFSET from an already-normalized page window."""
        self._limit = max(1, limit)
        self._offset = max(0, offset)
        return self

    # --- Build methods ---

    def _build_where(self) -> str:
        """Build WHERE clause."""
        if not self._conditions:
            return ""
        return "WHERE " + " AND ".join(self._conditions)

    def _build_tail(self) -> str:
        """Build ORDER BY + LIMIT + OFFSET."""
        parts = []
        if self._order_by:
            parts.append(f"ORDER BY {self._order_by}")
        if self._limit is not None:
            parts.append(f"LIMIT {int(self._limit)}")
        if self._offset is not None:
            parts.append(f"OFFSET {int(self._offset)}")
        return " ".join(parts)

    def build_count(self) -> tuple[str, list[Any]]:
        """Build a COUNT(*) query."""
        parts = ["SELECT COUNT(*)", f"FROM {self.base_table}", self._build_where()]
        sql = " ".join(p for p in parts if p)
        return sql, list(self._params)

    def build_select(self, columns: str) -> tuple[str, list[Any]]:
        """Build a full SELECT query."""
        parts = [
            f"SELECT {columns}",
            f"FROM {self.base_table}",
            self._build_where(),
            self._build_tail(),
        ]
        sql = " ".join(p for p in parts if p)
        return sql, list(self._params)
