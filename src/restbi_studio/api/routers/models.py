"""
Sample models, model validation and column merging.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from restbi_studio.api.deps import get_client
from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.logging import get_logger
from restbi_studio.domain.schema import Column
from restbi_studio.validation.model_loader import list_sample_models, load_sample_model
from restbi_studio.validation.workbench import ModelWorkbench

logger = get_logger(__name__)
router = APIRouter()



class ValidateRequest(BaseModel):
    text: str = Field(..., description="Model JSON exactly as shown in the editor")


class IssueItem(BaseModel):
    message: str
    line: int
    tableName: str


class MetadataColumnItem(BaseModel):
    name: str
    db_name: str
    in_model: bool


class MetadataTableItem(BaseModel):
    name: str
    db_name: str
    problematic: bool
    columns: list[MetadataColumnItem]


class ValidateResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_text: str
    issues: list[IssueItem]
    problematic_tables: list[str]
    metadata: list[MetadataTableItem]
    error_count: int


class MergeColumnRequest(BaseModel):
    text: str
    table_db_name: str
    column: Column


class MergeColumnResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_text: str
    merged: bool



@router.get("")
def list_models() -> dict:
    """Names of the bundled sample models."""
    return {"models": list_sample_models()}


@router.get("/{name}")
def get_model(name: str) -> dict:
    try:
        model = load_sample_model(name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]))
    return model.to_wire()


@router.post("/validate", response_model=ValidateResponse)
def validate_model(req: ValidateRequest, client: RestBIClient = Depends(get_client)):
    """Editor text -> service validation -> issues located in the re-rendered text."""
    workbench = ModelWorkbench(client, req.text)
    if not workbench.is_ready:
        raise HTTPException(status_code=422, detail="Model JSON is invalid")

    outcome = workbench.validate()
    if not outcome.ok:
        raise HTTPException(status_code=502, detail=outcome.error)

    return ValidateResponse(
        model_text=workbench.source_text,
        issues=[IssueItem(**i.to_dict()) for i in outcome.issues],
        problematic_tables=sorted(outcome.problematic_tables),
        metadata=[MetadataTableItem(**t.to_dict()) for t in workbench.metadata_view()],
        error_count=len(outcome.issues),
    )


@router.post("/merge-column", response_model=MergeColumnResponse)
def merge_column(req: MergeColumnRequest, client: RestBIClient = Depends(get_client)):
    """Append a metadata column to a table of the edited model."""
    workbench = ModelWorkbench(client, req.text)
    if not workbench.is_ready:
        raise HTTPException(status_code=422, detail="Model JSON is invalid")
    merged = workbench.merge_column(req.table_db_name, req.column)
    return MergeColumnResponse(model_text=workbench.source_text, merged=merged)
