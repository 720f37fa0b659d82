"""
Drill-anywhere exploration.

Pick a dimension and a metric, get a bar chart of the metric by the
dimension (top rows first).  Clicking a bar and choosing another dimension
pins the clicked value as an ``=`` filter and regroups by the new dimension.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.config import get_settings
from restbi_studio.core.errors import SQLError
from restbi_studio.core.logging import get_logger
from restbi_studio.domain.schema import Model, Query, QueryFilter, SortClause, SortDirection, SQLResult

logger = get_logger(__name__)


@dataclass
class ChartSeries:
    """Bar-chart data for the UI."""
    title: str
    labels: list[Any] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "labels": self.labels, "values": self.values}


class DrillSession:
    def __init__(self, client: RestBIClient, model: Model, limit: int | None = None):
        self._client = client
        self.model = model
        self.limit = limit if limit is not None else get_settings().drill_query_limit
        self.dimension = ""
        self.metric = ""
        self.filters: list[QueryFilter] = []
        self.data: SQLResult | None = None
        self.error: SQLError | None = None

    def dimension_names(self) -> list[str]:
        return [c.name for c in self.model.dimensions()]

    def metric_names(self) -> list[str]:
        return [c.name for c in self.model.measures()]

    @property
    def is_ready(self) -> bool:
        return bool(self.dimension and self.metric)

    def select_dimension(self, name: str) -> SQLResult | None:
        self.dimension = name
        return self.refresh()

    def select_metric(self, name: str) -> SQLResult | None:
        self.metric = name
        return self.refresh()

    def build_query(self) -> Query:
        return Query(
            columns=[self.dimension, self.metric],
            filters=[f.model_copy() for f in self.filters],
            limit=self.limit,
            sort_by=SortClause(name=self.metric, direction=SortDirection.DESC),
        )

    def refresh(self) -> SQLResult | None:
        if not self.is_ready:
            return None
        try:
            self.data = self._client.execute_query(self.build_query(), self.model)
        except SQLError as exc:
            logger.warning("Drill query failed: %s", exc.message)
            self.data = None
            self.error = exc
            return None
        self.error = None
        return self.data

    def drill_down(self, value: Any, new_dimension: str) -> SQLResult | None:
        """Pin *value* of the current dimension and regroup by *new_dimension*."""
        self.filters.append(QueryFilter(column=self.dimension, operator="=", value=value))
        self.dimension = new_dimension
        return self.refresh()

    def drill_down_at(self, index: int, new_dimension: str) -> SQLResult | None:
        """Drill into the bar at *index* of the current result."""
        if self.data is None or not 0 <= index < len(self.data.rows):
            raise IndexError(f"No bar at index {index}")
        value = self.data.rows[index].get(self.dimension)
        return self.drill_down(value, new_dimension)

    def series(self) -> ChartSeries:
        title = f"{self.metric} by {self.dimension}"
        if self.data is None:
            return ChartSeries(title=title)
        return ChartSeries(
            title=title,
            labels=[row.get(self.dimension) for row in self.data.rows],
            values=[row.get(self.metric) for row in self.data.rows],
        )
