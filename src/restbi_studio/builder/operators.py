"""
Filter operators and value coercion.

Every filter value must have the shape its operator expects: the
multi-select operators take a list of strings, everything else a scalar.
Raw widget input is converted according to the column's data type before it
lands in a ``QueryFilter``.
"""
from __future__ import annotations

import datetime
import math
import re
from typing import Any

from restbi_studio.domain.schema import ColumnDataType, FilterValue

# ── Operator groups ─────────────────────────────────────

CACHED_VALUE_OPERATORS = ("NOT IN", "IN", "=", "!=")
MULTISELECT_OPERATORS = ("IN", "NOT IN")
NULL_OPERATORS = ("IS NULL", "IS NOT NULL")

OPERATORS_BY_DATA_TYPE: dict[ColumnDataType, tuple[str, ...]] = {
    ColumnDataType.STRING: ("=", "!=", "LIKE", "IN", "NOT IN", "IS NULL", "IS NOT NULL"),
    ColumnDataType.NUMBER: ("=", ">", "<"),
    ColumnDataType.DATE: ("=", "BETWEEN", ">", "<"),
    ColumnDataType.BOOLEAN: ("=",),
}

_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def is_multiselect(operator: str) -> bool:
    return operator in MULTISELECT_OPERATORS


def uses_cached_values(data_type: ColumnDataType, operator: str) -> bool:
    """True when the value is picked from sampled column values, not typed."""
    return data_type is ColumnDataType.STRING and operator in CACHED_VALUE_OPERATORS


def operators_for(data_type: ColumnDataType) -> tuple[str, ...]:
    return OPERATORS_BY_DATA_TYPE.get(data_type, ("=",))


def reset_value_for(operator: str) -> FilterValue:
    """Value a filter takes right after its operator changes."""
    if is_multiselect(operator):
        return []
    return ""


# ── Parsing ─────────────────────────────────────────────

def parse_float(raw: Any) -> float:
    """Leading-number parse in the spirit of a form field: ``"12.5kg"`` -> 12.5, junk -> NaN."""
    if isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)
    match = _LEADING_FLOAT_RE.match(str(raw))
    if not match:
        return math.nan
    return float(match.group(1))


def parse_int(raw: Any) -> int | float:
    """Leading-integer parse; returns NaN (a float) when nothing parses."""
    if isinstance(raw, bool):
        return math.nan
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else math.nan
    match = _LEADING_INT_RE.match(str(raw))
    if not match:
        return math.nan
    return int(match.group(1))


def parse_date(raw: Any) -> datetime.datetime | None:
    if isinstance(raw, datetime.datetime):
        return raw
    if isinstance(raw, datetime.date):
        return datetime.datetime(raw.year, raw.month, raw.day)
    try:
        return datetime.datetime.fromisoformat(str(raw).strip())
    except ValueError:
        return None


def coerce_value(data_type: ColumnDataType, raw: Any) -> FilterValue:
    """Convert raw widget input into the value stored on the filter.

    DATE -> ``datetime`` (``None`` if unparseable), NUMBER -> float (NaN if
    unparseable).  STRING and BOOLEAN pass through; booleans stay the
    ``"true"`` / ``"false"`` strings the service interprets.
    """
    if data_type is ColumnDataType.DATE:
        return parse_date(raw)
    if data_type is ColumnDataType.NUMBER:
        return parse_float(raw)
    return raw
