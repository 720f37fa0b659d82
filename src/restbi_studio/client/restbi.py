"""
HTTP client for the RestBI query-execution and model-validation service.

Two calls, both JSON over POST:
  /query     {query, model}  -> {columns, rows}
  /validate  model           -> {model, dbTables}

The client is constructed by whoever owns the session and passed in; there
is no module-level instance.
"""
from __future__ import annotations

from typing import Any

import httpx

from restbi_studio.core.config import get_settings
from restbi_studio.core.errors import ModelValidationError, SQLError
from restbi_studio.core.logging import get_logger
from restbi_studio.core.utils import timer
from restbi_studio.domain.schema import Model, Query, SQLResult, ValidationResult

logger = get_logger(__name__)


class RestBIClient:
    """Thin synchronous wrapper over ``httpx.Client``.

    Parameters
    ----------
    base_url : str, optional
        Service root.  Defaults to ``settings.restbi_api_url``.
    timeout : float, optional
        Per-request timeout in seconds.  Defaults to ``settings.restbi_timeout``.
    transport : httpx.BaseTransport, optional
        Injected transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.restbi_api_url).rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.restbi_timeout,
            transport=transport,
        )

    def __enter__(self) -> "RestBIClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ── Public API ──────────────────────────────────────

    def execute_query(self, query: Query, model: Model) -> SQLResult:
        """Run *query* against *model*.

        Raises
        ------
        SQLError
            For any failure: a rejected query (with the generated SQL when
            the service reports it), a non-2xx status, or an unreachable
            service.
        """
        payload = {"query": query.to_wire(), "model": model.to_wire()}
        logger.info("Executing query  model=%s  columns=%s", model.name, query.columns)
        try:
            with timer() as t:
                response = self._http.post("/query", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Query service unreachable: %s", exc)
            raise SQLError(f"Query service unreachable: {exc}") from exc

        if response.is_error:
            error = SQLError.from_response(response)
            logger.warning("Query rejected (%d): %s", response.status_code, error.message)
            raise error

        try:
            result = SQLResult.model_validate(response.json())
        except ValueError as exc:
            raise SQLError(f"Malformed query response: {exc}") from exc
        logger.info("Query returned %d rows in %d ms", len(result.rows), t["elapsed_ms"])
        return result

    def validate_model(self, model: Model) -> ValidationResult:
        """Ask the service to check *model* against the live database.

        Raises
        ------
        ModelValidationError
            If the service cannot be reached or rejects the request.
        """
        logger.info("Validating model=%s  tables=%d", model.name, len(model.tables))
        try:
            with timer() as t:
                response = self._http.post("/validate", json=model.to_wire())
        except httpx.HTTPError as exc:
            logger.warning("Validation service unreachable: %s", exc)
            raise ModelValidationError(f"Validation service unreachable: {exc}") from exc

        if response.is_error:
            raise ModelValidationError.from_response(response)

        try:
            result = ValidationResult.model_validate(response.json())
        except ValueError as exc:
            raise ModelValidationError(f"Malformed validation response: {exc}") from exc
        logger.info("Validation returned %d db tables in %d ms", len(result.db_tables), t["elapsed_ms"])
        return result
