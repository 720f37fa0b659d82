"""
FastAPI application entry-point.

Serves the report builder (/query) and the model editor (/models).  Query
execution and model validation are forwarded to the RestBI service at
``settings.restbi_api_url``.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restbi_studio.api.routers import models, query
from restbi_studio.core.config import get_settings
from restbi_studio.validation.model_loader import list_sample_models

app = FastAPI(
    title="RestBI Studio",
    version="0.1.0",
    description="Report building and model validation backend for RestBI",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(models.router, prefix="/models", tags=["Models"])
app.include_router(query.router, prefix="/query", tags=["Query"])


@app.get("/health")
def health() -> dict:
    """Liveness plus where queries are sent; the service itself is not probed."""
    return {
        "status": "ok",
        "restbi_api_url": get_settings().restbi_api_url,
        "sample_models": len(list_sample_models()),
    }
