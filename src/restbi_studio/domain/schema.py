"""
Data shapes shared by the query builder, the reconciler and the service client.

Attributes are snake_case; the wire (and the model JSON users edit) uses the
camelCase names of the RestBI SDK -- ``dbName``, ``dataType``, ``sortBy`` and
so on.  ``to_wire()`` dumps with aliases and drops ``None`` fields, which is
how an unset value looks to the service.
"""
from __future__ import annotations

import datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


# ── Enumerations ────────────────────────────────────────

class ColumnDataType(str, Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    DATE = "DATE"
    BOOLEAN = "BOOLEAN"


class ColumnType(str, Enum):
    DIMENSION = "DIMENSION"
    MEASURE = "MEASURE"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class WireModel(BaseModel):
    """Base for every shape that crosses the service boundary."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Model definition ────────────────────────────────────

class Column(WireModel):
    id: str
    db_name: str = Field(..., alias="dbName", description="Physical column name")
    name: str = Field(..., description="Display name used in queries and filters")
    data_type: ColumnDataType = Field(..., alias="dataType")
    type: ColumnType | None = None
    validated: bool | None = None


class Table(WireModel):
    id: str
    db_name: str = Field(..., alias="dbName")
    schema_name: str = Field("", alias="schema")
    name: str
    columns: list[Column] = Field(default_factory=list)
    validated: bool | None = None


class JoinClause(WireModel):
    column1: str
    column2: str
    operator: str = "="


class Join(WireModel):
    id: str
    table1: str
    table2: str
    clauses: list[JoinClause] = Field(default_factory=list)


class Formula(WireModel):
    id: str
    name: str
    expression: str


class Connection(WireModel):
    """Database connection settings; opaque to this package."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="allow")

    id: str = ""
    name: str = ""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    type: str | None = None


FilterValue = Union[bool, float, datetime.datetime, str, list[str], None]


class QueryFilter(WireModel):
    column: str = Field(..., description="Display name of the filtered column")
    operator: str = "="
    value: FilterValue = None


class Model(WireModel):
    id: str
    name: str
    display_name: str = Field("", alias="displayName")
    connection: Connection | None = None
    tables: list[Table] = Field(default_factory=list)
    joins: list[Join] = Field(default_factory=list)
    formulas: list[Formula] = Field(default_factory=list)
    filters: list[QueryFilter] = Field(default_factory=list)

    def all_columns(self) -> list[Column]:
        return [c for t in self.tables for c in t.columns]

    def find_column(self, name: str) -> Column | None:
        """First column whose display name is *name*."""
        for column in self.all_columns():
            if column.name == name:
                return column
        return None

    def find_table(self, db_name: str) -> Table | None:
        """Case-insensitive lookup by physical table name."""
        wanted = db_name.lower()
        for table in self.tables:
            if table.db_name.lower() == wanted:
                return table
        return None

    def dimensions(self) -> list[Column]:
        return [c for c in self.all_columns() if infer_column_type(c) is ColumnType.DIMENSION]

    def measures(self) -> list[Column]:
        return [c for c in self.all_columns() if infer_column_type(c) is ColumnType.MEASURE]


# ── Queries and results ─────────────────────────────────

class SortClause(WireModel):
    name: str
    direction: SortDirection = SortDirection.ASC


class Query(WireModel):
    """What the execution service is asked to run."""

    columns: list[str] = Field(default_factory=list, description="Selected display names, in selection order")
    filters: list[QueryFilter] = Field(default_factory=list)
    limit: Union[int, float] = Field(100, description="Row limit; NaN when the user typed garbage")
    sort_by: SortClause | None = Field(None, alias="sortBy")


class SQLResult(WireModel):
    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)


class ValidationResult(WireModel):
    model: Model
    db_tables: list[Table] = Field(default_factory=list, alias="dbTables")


def infer_column_type(column: Column) -> ColumnType:
    """Explicit ``type`` wins; otherwise numbers are measures, the rest dimensions."""
    if column.type is not None:
        return column.type
    if column.data_type is ColumnDataType.NUMBER:
        return ColumnType.MEASURE
    return ColumnType.DIMENSION
