"""
Filter builder: turns loosely-typed listing parameters into a filter expression.

The builder never fails. A parameter that is absent, empty, or not numeric
where a number is required simply contributes no leaf, so malformed input
narrows (or widens) the result set instead of aborting the request.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Union

import structlog

from ..config.constants import STORE_INT_MAX, STORE_INT_MIN

logger = structlog.get_logger("company_api.services.filters")

# Wire name -> attribute name for parameters whose spelling differs
_WIRE_NAMES = {
    "sizeMin": "size_min",
    "sizeMax": "size_max",
    "foundedFrom": "founded_from",
    "foundedTo": "founded_to",
}


@dataclass(frozen=True)
class QueryParameters:
    """Listing parameters as received from the transport layer.

    Every field is an optional raw string. ``None`` and ``""`` both mean
    "not specified".
    """

    search: str | None = None
    name: str | None = None
    industry: str | None = None
    location: str | None = None
    tag: str | None = None
    tags: str | None = None
    size_min: str | None = None
    size_max: str | None = None
    founded_from: str | None = None
    founded_to: str | None = None
    sort: str | None = None
    page: str | None = None
    limit: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> QueryParameters:
        """Build from a flat mapping keyed by wire names (``sizeMin`` etc.).

        Unknown keys are ignored; non-string values are stringified.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, str | None] = {}
        for key, value in raw.items():
            attr = _WIRE_NAMES.get(key, key)
            if attr not in known or value is None:
                continue
            values[attr] = value if isinstance(value, str) else str(value)
        return cls(**values)


# --- Leaves ---

@dataclass(frozen=True)
class TextMatch:
    """Full-text match served by the store's native text index."""
    query: str
    kind: str = field(default="text", init=False)


@dataclass(frozen=True)
class PatternMatch:
    """Case-insensitive, unanchored substring match on a text field."""
    field: str
    pattern: str
    kind: str = field(default="pattern", init=False)


@dataclass(frozen=True)
class ExactMatch:
    """Equality against a field."""
    field: str
    value: Any
    kind: str = field(default="exact", init=False)


@dataclass(frozen=True)
class RangeMatch:
    """Inclusive range; either bound may be missing."""
    field: str
    gte: int | float | None = None
    lte: int | float | None = None
    kind: str = field(default="range", init=False)


@dataclass(frozen=True)
class ContainsAll:
    """The record's multi-valued field must contain every listed value."""
    field: str
    values: tuple[str, ...]
    kind: str = field(default="contains_all", init=False)


Leaf = Union[TextMatch, PatternMatch, ExactMatch, RangeMatch, ContainsAll]


@dataclass(frozen=True)
class FilterExpression:
    """Leaves combined with a single implicit AND. No leaves matches everything."""

    leaves: tuple[Leaf, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.leaves

    def __iter__(self):
        return iter(self.leaves)

    def __len__(self) -> int:
        return len(self.leaves)

    def leaf(self, kind: type, field_name: str | None = None) -> Leaf | None:
        """Return the first leaf of the given type (and field), if any."""
        for item in self.leaves:
            if isinstance(item, kind) and (
                field_name is None or getattr(item, "field", None) == field_name
            ):
                return item
        return None

    def to_dict(self) -> dict:
        """JSON-able form used for logging."""
        out: list[dict] = []
        for item in self.leaves:
            entry = {"kind": item.kind}
            for f in fields(item):
                if f.name == "kind":
                    continue
                value = getattr(item, f.name)
                if value is None:
                    continue
                entry[f.name] = list(value) if isinstance(value, tuple) else value
            out.append(entry)
        return {"and": out}


# --- Parsing helpers ---

def _present(value: str | None) -> bool:
    return value is not None and value != ""


def parse_number(value: str | None) -> int | float | None:
    """Parse a numeric bound. Returns None when absent or not a finite number.

    Integers wider than the stores' 64-bit integers come back as floats, so
    the comparison still works and binding never overflows.
    """
    if not _present(value):
        return None
    text = value.strip()
    try:
        number = int(text)
    except ValueError:
        pass
    else:
        if STORE_INT_MIN <= number <= STORE_INT_MAX:
            return number
        try:
            return float(number)
        except OverflowError:
            return None
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    if number.is_integer() and STORE_INT_MIN <= number <= STORE_INT_MAX:
        return int(number)
    return number


def parse_tag_list(tags: str | None, tag: str | None = None) -> tuple[str, ...]:
    """Split the comma-joined ``tags`` list and append the single ``tag``.

    Tokens are trimmed, empty tokens dropped and duplicates collapsed,
    keeping first-seen order.
    """
    tokens: list[str] = []
    if _present(tags):
        tokens.extend(t.strip() for t in tags.split(","))
    if _present(tag):
        tokens.append(tag.strip())
    seen: set[str] = set()
    result: list[str] = []
    for token in tokens:
        if token and token not in seen:
            seen.add(token)
            result.append(token)
    return tuple(result)


def _range_leaf(field_name: str, low: str | None, high: str | None) -> RangeMatch | None:
    gte = parse_number(low)
    lte = parse_number(high)
    if gte is None and lte is None:
        return None
    return RangeMatch(field_name, gte=gte, lte=lte)


def build_filters(params: QueryParameters) -> FilterExpression:
    """Map listing parameters to a filter expression."""
    leaves: list[Leaf] = []

    if _present(params.search):
        leaves.append(TextMatch(params.search))
    if _present(params.name):
        leaves.append(PatternMatch("name", params.name))
    if _present(params.industry):
        leaves.append(ExactMatch("industry", params.industry))
    if _present(params.location):
        leaves.append(PatternMatch("location", params.location))

    tag_list = parse_tag_list(params.tags, params.tag)
    if tag_list:
        leaves.append(ContainsAll("tags", tag_list))

    for leaf in (
        _range_leaf("size", params.size_min, params.size_max),
        _range_leaf("foundedYear", params.founded_from, params.founded_to),
    ):
        if leaf is not None:
            leaves.append(leaf)

    expression = FilterExpression(tuple(leaves))
    logger.debug("filters_built", filter=expression.to_dict())
    return expression
