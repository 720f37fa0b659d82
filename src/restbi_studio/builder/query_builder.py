"""
QueryBuilder -- the query a user assembles column by column and filter by filter.

The builder keeps its own filter list as the source of truth and copies it
onto ``Query.filters`` after every change, so ``serialize()`` is always the
exact object handed to the execution service.

Nothing here raises on bad input: a garbage limit is stored as NaN and
``is_ready`` reports it, leaving the decision to refuse execution to the
caller.
"""
from __future__ import annotations

import math

from restbi_studio.builder.operators import parse_int
from restbi_studio.core.config import get_settings
from restbi_studio.core.logging import get_logger
from restbi_studio.core.utils import compact_json
from restbi_studio.domain.schema import Query, QueryFilter, SortClause, SortDirection

logger = get_logger(__name__)


class QueryBuilder:
    """Mutable query state for one report-building session.

    Parameters
    ----------
    default_limit : int, optional
        Limit of a fresh query.  Defaults to ``settings.default_query_limit``.
    """

    def __init__(self, default_limit: int | None = None):
        if default_limit is None:
            default_limit = get_settings().default_query_limit
        self._default_limit = default_limit
        self._query = Query(limit=default_limit)
        self._filters: list[QueryFilter] = []

    # ── Read access ─────────────────────────────────────

    @property
    def columns(self) -> list[str]:
        return list(self._query.columns)

    @property
    def filters(self) -> list[QueryFilter]:
        return list(self._filters)

    @property
    def limit(self) -> int | float:
        return self._query.limit

    @property
    def sort_by(self) -> SortClause | None:
        return self._query.sort_by

    @property
    def is_ready(self) -> bool:
        """False while the limit is NaN (or otherwise not a finite number)."""
        limit = self._query.limit
        return isinstance(limit, int) or (isinstance(limit, float) and math.isfinite(limit))

    def is_selected(self, column: str) -> bool:
        return column in self._query.columns

    def filter_for(self, column: str) -> QueryFilter | None:
        for f in self._filters:
            if f.column == column:
                return f
        return None

    # ── Columns ─────────────────────────────────────────

    def reset(self) -> None:
        """Back to ``{columns: [], limit: <default>}`` with no filters."""
        self._query = Query(limit=self._default_limit)
        self._filters = []

    def load(self, query: Query) -> None:
        """Adopt a query built elsewhere (duplicate columns collapse)."""
        self.reset()
        for column in query.columns:
            self.add_column(column)
        self._filters = [f.model_copy(deep=True) for f in query.filters]
        self._sync_filters()
        self._query.limit = query.limit
        self._query.sort_by = query.sort_by.model_copy() if query.sort_by is not None else None

    def add_column(self, column: str) -> None:
        if column not in self._query.columns:
            self._query.columns.append(column)

    def remove_column(self, column: str) -> None:
        self._query.columns = [c for c in self._query.columns if c != column]

    def toggle_column(self, column: str, selected: bool) -> None:
        if selected:
            self.add_column(column)
        else:
            self.remove_column(column)

    # ── Limit and sort ──────────────────────────────────

    def set_limit(self, limit: int | float) -> None:
        self._query.limit = limit

    def set_limit_text(self, text: str) -> None:
        limit = parse_int(text)
        if isinstance(limit, float) and math.isnan(limit):
            logger.debug("Limit input %r is not a number", text)
        self.set_limit(limit)

    def set_sort(self, column: str, direction: SortDirection = SortDirection.ASC) -> None:
        self._query.sort_by = SortClause(name=column, direction=direction)

    def clear_sort(self) -> None:
        self._query.sort_by = None

    # ── Filters ─────────────────────────────────────────

    def add_filter(self, column: str) -> QueryFilter:
        """Append a blank ``=`` filter.  An existing filter on *column* is not checked."""
        new_filter = QueryFilter(column=column, operator="=", value=None)
        self._filters.append(new_filter)
        self._sync_filters()
        return new_filter

    def update_filter(self, new_filter: QueryFilter) -> bool:
        """Replace the entries for ``new_filter.column``; no-op if there are none."""
        replaced = False
        updated: list[QueryFilter] = []
        for f in self._filters:
            if f.column == new_filter.column:
                updated.append(new_filter)
                replaced = True
            else:
                updated.append(f)
        if replaced:
            self._filters = updated
            self._sync_filters()
        return replaced

    def remove_filter(self, column: str) -> int:
        """Drop every filter on *column*; returns how many were removed."""
        kept = [f for f in self._filters if f.column != column]
        removed = len(self._filters) - len(kept)
        self._filters = kept
        self._sync_filters()
        return removed

    # ── Output ──────────────────────────────────────────

    def serialize(self) -> Query:
        """The transport-ready query (a copy; later edits do not leak into it)."""
        filters = [f.model_copy(deep=True) for f in self._filters]
        return self._query.model_copy(update={"filters": filters}, deep=True)

    def to_json(self) -> str:
        return compact_json(self.serialize().to_wire())

    def _sync_filters(self) -> None:
        self._query.filters = list(self._filters)
