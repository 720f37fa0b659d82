"""
Shared fixtures: sample models and an in-memory stand-in for the RestBI service.
"""
from __future__ import annotations

from typing import Callable

import pytest

from restbi_studio.domain.schema import Model, Query, SQLResult, ValidationResult
from restbi_studio.validation.model_loader import load_sample_model


class FakeRestBIClient:
    """Records every call; answers with canned results or raises canned errors."""

    def __init__(
        self,
        result: SQLResult | Callable[[Query], SQLResult] | None = None,
        error: Exception | None = None,
        validation: ValidationResult | None = None,
        validation_error: Exception | None = None,
    ):
        self.result = result if result is not None else SQLResult(columns=[], rows=[])
        self.error = error
        self.validation = validation
        self.validation_error = validation_error
        self.executed: list[tuple[Query, Model]] = []
        self.validated: list[Model] = []

    def execute_query(self, query: Query, model: Model) -> SQLResult:
        self.executed.append((query, model))
        if self.error is not None:
            raise self.error
        if callable(self.result):
            return self.result(query)
        return self.result

    def validate_model(self, model: Model) -> ValidationResult:
        self.validated.append(model)
        if self.validation_error is not None:
            raise self.validation_error
        if self.validation is None:
            return ValidationResult(model=model, dbTables=[])
        return self.validation

    def close(self) -> None:
        pass


@pytest.fixture
def chinook() -> Model:
    return load_sample_model("chinook")


@pytest.fixture
def fake_client() -> FakeRestBIClient:
    return FakeRestBIClient()
