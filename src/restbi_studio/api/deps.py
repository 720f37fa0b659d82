"""
FastAPI dependencies.
"""
from __future__ import annotations

from typing import Generator

from restbi_studio.client.restbi import RestBIClient


def get_client() -> Generator[RestBIClient, None, None]:
    """One service client per request, closed afterwards."""
    client = RestBIClient()
    try:
        yield client
    finally:
        client.close()
