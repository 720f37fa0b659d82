"""
Errors raised at the boundary with the RestBI query service.
"""
from __future__ import annotations

from typing import Any

import httpx


class RestBIError(Exception):
    """Failure talking to the query-execution / validation service."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SQLError(RestBIError):
    """Query execution was rejected.

    ``query`` carries the SQL the service generated (empty when the request
    never reached it) so the UI can show what was attempted.
    """

    def __init__(self, message: str, query: str = "", status_code: int | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.query = query

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "query": self.query}

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SQLError":
        body = _json_body(response)
        message = body.get("message") or body.get("error") or response.text or response.reason_phrase
        return cls(str(message), query=str(body.get("query") or ""), status_code=response.status_code)


class ModelValidationError(RestBIError):
    """The service could not validate a model."""

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ModelValidationError":
        body = _json_body(response)
        message = body.get("message") or body.get("error") or response.text or response.reason_phrase
        return cls(str(message), status_code=response.status_code)


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
