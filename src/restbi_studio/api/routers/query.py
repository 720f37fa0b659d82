"""
POST /query/execute, /query/options, /query/preview -- report building.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from restbi_studio.api.deps import get_client
from restbi_studio.builder.filter_editor import FilterEditor
from restbi_studio.builder.report import ReportSession
from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.logging import get_logger
from restbi_studio.core.utils import compact_json
from restbi_studio.domain.schema import Model, Query

logger = get_logger(__name__)
router = APIRouter()



class ExecuteRequest(BaseModel):
    query: Query
    model: Model


class OptionsRequest(BaseModel):
    column: str
    model: Model


class OptionsResponse(BaseModel):
    column: str
    options: list[str]


class PreviewRequest(BaseModel):
    query: Query


class PreviewResponse(BaseModel):
    text: str



@router.post("/execute")
def execute_query(req: ExecuteRequest, client: RestBIClient = Depends(get_client)) -> dict:
    """Run a query; a rejected query comes back as 400 with the generated SQL."""
    session = ReportSession(client, req.model)
    session.builder.load(req.query)
    data = session.execute()
    if session.error is not None:
        raise HTTPException(status_code=400, detail=session.error.to_dict())
    if data is None:
        raise HTTPException(status_code=422, detail="Query is not ready to run")
    return data.to_wire()


@router.post("/options", response_model=OptionsResponse)
def column_options(req: OptionsRequest, client: RestBIClient = Depends(get_client)):
    """Sampled values for a STRING column filter."""
    session = ReportSession(client, req.model)
    editor = FilterEditor(session.column(req.column), client=client, model=req.model)
    if not editor.needs_options:
        return OptionsResponse(column=req.column, options=[])
    editor.refresh_options()
    return OptionsResponse(column=req.column, options=editor.options)


@router.post("/preview", response_model=PreviewResponse)
def preview_query(req: PreviewRequest):
    """The query as displayed in the read-only query panel."""
    return PreviewResponse(text=compact_json(req.query.to_wire()))
