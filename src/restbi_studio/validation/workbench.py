"""
Model workbench -- state behind the model-editing page.

The user edits model JSON; every edit is re-parsed (bad JSON leaves no
model, and validation refuses to run).  Validation sends the model to the
service, adopts the annotated model it returns, re-renders the text and
reconciles against that text so issue line numbers match the editor.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.errors import ModelValidationError
from restbi_studio.core.logging import get_logger
from restbi_studio.core.utils import RequestSequencer
from restbi_studio.domain.schema import Column, Model, Table, ValidationResult
from restbi_studio.validation.model_loader import model_to_text, parse_model_text
from restbi_studio.validation.reconciler import (
    MetadataTableView,
    ValidationIssue,
    build_metadata_view,
    merge_column,
    reconcile,
)

logger = get_logger(__name__)

_VALIDATE_OP = "validate"


@dataclass
class ValidationOutcome:
    """What a validation attempt produced.

    ``ok`` is False when the model was not ready, the service failed, or the
    response was superseded by a newer request (``stale``).
    """
    ok: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    problematic_tables: set[str] = field(default_factory=set)
    error: str | None = None
    stale: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "issues": [i.to_dict() for i in self.issues],
            "problematic_tables": sorted(self.problematic_tables),
            "error": self.error,
            "stale": self.stale,
        }


class ModelWorkbench:
    """Editable model text plus the latest validation state.

    Parameters
    ----------
    client : RestBIClient
        Validates models against the live database.
    text : str
        Initial editor text.
    """

    def __init__(self, client: RestBIClient, text: str = ""):
        self._client = client
        self._sequencer = RequestSequencer()
        self.source_text = ""
        self.model: Model | None = None
        self.metadata: list[Table] | None = None
        self.issues: list[ValidationIssue] = []
        self.problematic_tables: set[str] = set()
        self.edit(text)

    @classmethod
    def from_model(cls, client: RestBIClient, model: Model) -> "ModelWorkbench":
        return cls(client, model_to_text(model))

    @property
    def is_ready(self) -> bool:
        return self.model is not None

    def edit(self, text: str) -> None:
        self.source_text = text
        self.model = parse_model_text(text) if text.strip() else None

    # ── Validation ──────────────────────────────────────

    def validate(self) -> ValidationOutcome:
        if self.model is None:
            logger.warning("Cannot validate: model is invalid or not set")
            return ValidationOutcome(ok=False, error="Model is invalid or not set.")

        ticket = self.begin_validation()
        try:
            result = self._client.validate_model(self.model)
        except ModelValidationError as exc:
            logger.warning("Validation error: %s", exc.message)
            return ValidationOutcome(ok=False, error=exc.message)
        return self.apply_validation(ticket, result)

    def begin_validation(self) -> int:
        """Start a validation round: clears previous results and issues a ticket."""
        self.issues = []
        self.problematic_tables = set()
        return self._sequencer.issue(_VALIDATE_OP)

    def apply_validation(self, ticket: int, result: ValidationResult) -> ValidationOutcome:
        if not self._sequencer.is_latest(_VALIDATE_OP, ticket):
            logger.debug("Discarding stale validation result (ticket %d)", ticket)
            return ValidationOutcome(ok=False, error="Superseded by a newer validation.", stale=True)

        self.metadata = result.db_tables
        self.model = result.model
        self.source_text = model_to_text(result.model)
        self._relocate_issues()
        return ValidationOutcome(
            ok=True,
            issues=list(self.issues),
            problematic_tables=set(self.problematic_tables),
        )

    def _relocate_issues(self) -> None:
        """Re-run reconciliation so issue lines match the current text."""
        reconciled = reconcile(self.model, self.source_text)
        self.issues = reconciled.errors
        self.problematic_tables = reconciled.problematic_tables

    # ── Metadata panel ──────────────────────────────────

    def merge_column(self, table_db_name: str, column: Column) -> bool:
        """Adopt a metadata column into the model; False if nothing changed."""
        if self.model is None:
            return False
        if self.metadata is not None:
            # the column was read from the live database
            column = column.model_copy(update={"validated": True})
        merged = merge_column(self.model, table_db_name, column)
        if merged is self.model:
            return False
        self.model = merged
        self.source_text = model_to_text(merged)
        if self.metadata is not None:
            self._relocate_issues()
        return True

    def metadata_view(self) -> list[MetadataTableView]:
        if self.metadata is None or self.model is None:
            return []
        return build_metadata_view(self.metadata, self.model, self.problematic_tables)
