"""
Editing state for a single filter widget.

The editor owns the operator, the current value and, for STRING columns
filtered with ``=``, ``!=``, ``IN`` or ``NOT IN``, a list of sampled column
values to pick from.  Each change returns the ``QueryFilter`` the query
builder should store.
"""
from __future__ import annotations

from typing import Any

from restbi_studio.builder.operators import (
    coerce_value,
    is_multiselect,
    operators_for,
    reset_value_for,
    uses_cached_values,
)
from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.config import get_settings
from restbi_studio.core.errors import RestBIError
from restbi_studio.core.logging import get_logger
from restbi_studio.core.utils import RequestSequencer
from restbi_studio.domain.schema import Column, ColumnDataType, FilterValue, Model, Query, QueryFilter, SQLResult

logger = get_logger(__name__)

_OPTIONS_OP = "options"


class FilterEditor:
    """Operator/value state machine for one filtered column.

    Parameters
    ----------
    column : Column
        The column being filtered.
    query_filter : QueryFilter, optional
        Existing filter to start from.  Defaults to ``=`` with an empty value.
    client : RestBIClient, optional
        Used to sample values for STRING columns.  Without a client the
        option list simply stays empty.
    model : Model, optional
        Model the sampling query runs against.
    option_limit : int, optional
        Max sampled values.  Defaults to ``settings.option_fetch_limit``.
    """

    def __init__(
        self,
        column: Column,
        query_filter: QueryFilter | None = None,
        client: RestBIClient | None = None,
        model: Model | None = None,
        option_limit: int | None = None,
    ):
        self.column = column
        self.operator: str = "="
        self.value: FilterValue = ""
        self.options: list[str] = []
        self._client = client
        self._model = model
        self._option_limit = option_limit if option_limit is not None else get_settings().option_fetch_limit
        self._sequencer = RequestSequencer()
        if query_filter is not None:
            self.sync(query_filter)

    # ── State ───────────────────────────────────────────

    @property
    def data_type(self) -> ColumnDataType:
        return self.column.data_type

    @property
    def allowed_operators(self) -> tuple[str, ...]:
        return operators_for(self.data_type)

    @property
    def is_multiselect(self) -> bool:
        return is_multiselect(self.operator)

    @property
    def needs_options(self) -> bool:
        return uses_cached_values(self.data_type, self.operator)

    def current(self) -> QueryFilter:
        return QueryFilter(column=self.column.name, operator=self.operator, value=self.value)

    def sync(self, query_filter: QueryFilter) -> None:
        """Adopt operator and value from a filter edited elsewhere."""
        self.operator = query_filter.operator or "="
        self.value = query_filter.value if query_filter.value is not None else ""

    # ── Transitions ─────────────────────────────────────

    def change_operator(self, operator: str) -> QueryFilter:
        """Switch operator; the value resets to ``[]`` or ``''`` to match it."""
        if operator not in self.allowed_operators:
            logger.debug("Operator %r is not offered for %s columns", operator, self.data_type.value)
        self.operator = operator
        self.value = reset_value_for(operator)
        if self.needs_options:
            self.refresh_options()
        return self.current()

    def change_value(self, raw: Any) -> QueryFilter:
        """Typed input (text, number, date, boolean select)."""
        self.value = coerce_value(self.data_type, raw)
        return self.current()

    def change_selection(self, selected: str | list[str]) -> QueryFilter:
        """Pick from the sampled options; a list for IN / NOT IN, one value otherwise."""
        if self.is_multiselect:
            values = [selected] if isinstance(selected, str) else list(selected)
            self.value = [str(v) for v in values]
        elif isinstance(selected, str):
            self.value = selected
        else:
            self.value = str(selected[0]) if selected else ""
        return self.current()

    # ── Option sampling ─────────────────────────────────

    def options_query(self) -> Query:
        return Query(columns=[self.column.name], filters=[], limit=self._option_limit)

    def begin_options_fetch(self) -> tuple[int, Query]:
        """Issue a ticket for a new sampling request."""
        return self._sequencer.issue(_OPTIONS_OP), self.options_query()

    def apply_options(self, ticket: int, result: SQLResult) -> bool:
        """Store sampled values unless a newer request has been issued since."""
        if not self._sequencer.is_latest(_OPTIONS_OP, ticket):
            logger.debug("Discarding stale options for %s (ticket %d)", self.column.name, ticket)
            return False
        options: list[str] = []
        for row in result.rows:
            first = next(iter(row.values()), None)
            if first is not None:
                options.append(str(first))
        self.options = options
        return True

    def refresh_options(self) -> bool:
        """Fetch and apply sampled values; failures keep the previous list."""
        if self._client is None or self._model is None:
            return False
        ticket, query = self.begin_options_fetch()
        try:
            result = self._client.execute_query(query, self._model)
        except RestBIError as exc:
            logger.warning("Error fetching options for %s: %s", self.column.name, exc)
            return False
        return self.apply_options(ticket, result)
