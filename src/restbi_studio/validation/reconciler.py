"""
Reconciles a validated candidate model with live database metadata.

Checks performed for every table, in declaration order:
  1. Table flagged invalid by the service  -> "Invalid Table: <name>"
  2. Each column flagged invalid           -> "Invalid Column: <col> in Table: <name>"

Each issue carries the source line of the offending entity so the editor
can highlight it.  A column is searched for only from its table's line
onward.  Issues keep declaration order; nothing is sorted or deduplicated.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from restbi_studio.core.logging import get_logger
from restbi_studio.domain.schema import Column, Model, Table
from restbi_studio.validation.line_locator import LineLocator, SubstringLineLocator

logger = get_logger(__name__)


# ── Results ─────────────────────────────────────────────

@dataclass(frozen=True)
class ValidationIssue:
    """One invalid table or column, located in the source text."""
    message: str
    line: int  # 0-indexed, -1 when not found
    table_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "line": self.line, "tableName": self.table_name}


@dataclass
class ReconciliationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    problematic_tables: set[str] = field(default_factory=set)  # table dbNames

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class MetadataColumnView:
    name: str
    db_name: str
    in_model: bool


@dataclass
class MetadataTableView:
    name: str
    db_name: str
    problematic: bool
    columns: list[MetadataColumnView] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "db_name": self.db_name,
            "problematic": self.problematic,
            "columns": [
                {"name": c.name, "db_name": c.db_name, "in_model": c.in_model}
                for c in self.columns
            ],
        }


# ── Reconciliation ──────────────────────────────────────

def reconcile(
    model: Model,
    source_text: str,
    locator_factory: Callable[[str], LineLocator] = SubstringLineLocator,
) -> ReconciliationResult:
    """Build the issue list and the set of problematic table dbNames.

    Parameters
    ----------
    model : Model
        Candidate model with ``validated`` flags set by the service.
    source_text : str
        The JSON text shown in the editor; line numbers refer to it.
    locator_factory : callable
        Builds the ``LineLocator`` over *source_text*.
    """
    locator = locator_factory(source_text)
    result = ReconciliationResult()

    for table in model.tables:
        table_line = locator.locate(table.name)
        if not table.validated:
            result.errors.append(
                ValidationIssue(f"Invalid Table: {table.name}", table_line, table.name)
            )
            result.problematic_tables.add(table.db_name)

        for column in table.columns:
            column_line = locator.locate(column.name, table_line)
            if not column.validated:
                result.errors.append(
                    ValidationIssue(
                        f"Invalid Column: {column.name} in Table: {table.name}",
                        column_line,
                        table.name,
                    )
                )
                result.problematic_tables.add(table.db_name)

    logger.info(
        "Reconciled model=%s  issues=%d  problematic_tables=%d",
        model.name, len(result.errors), len(result.problematic_tables),
    )
    return result


def merge_column(model: Model, table_db_name: str, column: Column) -> Model:
    """Copy of *model* with *column* appended to table *table_db_name*.

    Table and column matching is by case-insensitive dbName.  Returns *model*
    itself when the table is missing or already has the column.
    """
    table = model.find_table(table_db_name)
    if table is None:
        logger.debug("merge_column: no table %s in model %s", table_db_name, model.name)
        return model
    if _has_column(table, column.db_name):
        return model

    merged = model.model_copy(deep=True)
    target = merged.find_table(table_db_name)
    target.columns.append(column.model_copy(deep=True))
    logger.info("Merged column %s into table %s", column.db_name, target.db_name)
    return merged


def rank_metadata_tables(metadata: list[Table], model: Model) -> list[Table]:
    """Metadata tables, those with the most columns already in *model* first.

    Stable: equal counts keep their metadata order.
    """
    def _adopted(table: Table) -> int:
        model_table = model.find_table(table.db_name)
        return len(model_table.columns) if model_table is not None else 0

    return sorted(metadata, key=_adopted, reverse=True)


def build_metadata_view(
    metadata: list[Table],
    model: Model,
    problematic_tables: set[str] | None = None,
) -> list[MetadataTableView]:
    """Ranked metadata with highlight flags for the side panel."""
    problematic_tables = problematic_tables or set()
    views: list[MetadataTableView] = []
    for table in rank_metadata_tables(metadata, model):
        model_table = model.find_table(table.db_name)
        views.append(
            MetadataTableView(
                name=table.name,
                db_name=table.db_name,
                problematic=table.db_name in problematic_tables,
                columns=[
                    MetadataColumnView(
                        name=c.name,
                        db_name=c.db_name,
                        in_model=model_table is not None and _has_column(model_table, c.db_name),
                    )
                    for c in table.columns
                ],
            )
        )
    return views


def _has_column(table: Table, db_name: str) -> bool:
    wanted = db_name.lower()
    return any(c.db_name.lower() == wanted for c in table.columns)
