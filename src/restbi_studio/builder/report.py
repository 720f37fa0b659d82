"""
Report session -- column picking, filters, execution and result state.

One session per active model: selecting another model throws away the
query, the filters and any result.  Execution results and execution errors
are mutually exclusive: a run either stores rows and clears the error, or
stores the error and drops the rows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from restbi_studio.builder.filter_editor import FilterEditor
from restbi_studio.builder.query_builder import QueryBuilder
from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.errors import SQLError
from restbi_studio.core.logging import get_logger
from restbi_studio.domain.schema import Column, ColumnDataType, Formula, Model, QueryFilter, SQLResult, Table

logger = get_logger(__name__)


@dataclass
class CatalogView:
    """Tables and formulas left visible by a column search."""
    tables: list[Table] = field(default_factory=list)
    formulas: list[Formula] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tables": [t.to_wire() for t in self.tables],
            "formulas": [f.to_wire() for f in self.formulas],
        }


class ReportSession:
    """Query-building session over one model.

    Parameters
    ----------
    client : RestBIClient
        Executes queries and samples filter values.
    model : Model
        The active model.
    default_limit : int, optional
        Limit of a fresh query.
    """

    def __init__(self, client: RestBIClient, model: Model, default_limit: int | None = None):
        self._client = client
        self.model = model
        self.builder = QueryBuilder(default_limit)
        self.editors: dict[str, FilterEditor] = {}
        self.result: SQLResult | None = None
        self.error: SQLError | None = None

    def set_model(self, model: Model) -> None:
        logger.info("Active model -> %s", model.name)
        self.model = model
        self.builder.reset()
        self.editors = {}
        self.result = None
        self.error = None

    # ── Catalog ─────────────────────────────────────────

    def column(self, name: str) -> Column:
        """Column behind a display name; unknown names filter as plain strings."""
        found = self.model.find_column(name)
        if found is not None:
            return found
        return Column(id="unknown", dbName=name, name=name, dataType=ColumnDataType.STRING)

    def search(self, text: str = "") -> CatalogView:
        needle = text.lower()
        if not needle:
            return CatalogView(tables=list(self.model.tables), formulas=list(self.model.formulas))
        tables: list[Table] = []
        for table in self.model.tables:
            matches = [c for c in table.columns if needle in c.name.lower()]
            if matches:
                tables.append(table.model_copy(update={"columns": matches}))
        formulas = [f for f in self.model.formulas if needle in f.name.lower()]
        return CatalogView(tables=tables, formulas=formulas)

    # ── Column selection ────────────────────────────────

    def toggle_column(self, name: str, selected: bool) -> None:
        self.builder.toggle_column(name, selected)

    # ── Filters ─────────────────────────────────────────

    def add_filter(self, column_name: str) -> FilterEditor:
        new_filter = self.builder.add_filter(column_name)
        editor = FilterEditor(self.column(column_name), new_filter, client=self._client, model=self.model)
        self.editors[column_name] = editor
        if editor.needs_options:
            editor.refresh_options()
        return editor

    def change_operator(self, column_name: str, operator: str) -> QueryFilter:
        return self._apply(self._editor(column_name).change_operator(operator))

    def change_value(self, column_name: str, raw: Any) -> QueryFilter:
        return self._apply(self._editor(column_name).change_value(raw))

    def change_selection(self, column_name: str, selected: str | list[str]) -> QueryFilter:
        return self._apply(self._editor(column_name).change_selection(selected))

    def remove_filter(self, column_name: str) -> int:
        self.editors.pop(column_name, None)
        return self.builder.remove_filter(column_name)

    def _editor(self, column_name: str) -> FilterEditor:
        editor = self.editors.get(column_name)
        if editor is None:
            raise KeyError(f"No filter on column '{column_name}'")
        return editor

    def _apply(self, new_filter: QueryFilter) -> QueryFilter:
        self.builder.update_filter(new_filter)
        return new_filter

    # ── Execution ───────────────────────────────────────

    def execute(self) -> SQLResult | None:
        """Run the current query; returns the rows or ``None`` if refused or failed."""
        if not self.builder.is_ready:
            logger.warning("Query not ready (limit=%r) -- not executing", self.builder.limit)
            return None

        query = self.builder.serialize()
        try:
            data = self._client.execute_query(query, self.model)
        except SQLError as exc:
            logger.warning("Query execution failed: %s", exc.message)
            self.result = None
            self.error = exc
            return None

        self.result = data
        self.error = None
        return data

    def query_json(self) -> str:
        return self.builder.to_json()
