"""
API tests -- FastAPI endpoints via TestClient (no live service needed).
"""
import pytest
from fastapi.testclient import TestClient

from restbi_studio.api.deps import get_client
from restbi_studio.api.main import app
from restbi_studio.core.config import get_settings
from restbi_studio.core.errors import ModelValidationError, SQLError
from restbi_studio.domain.schema import SQLResult, ValidationResult
from restbi_studio.validation.model_loader import model_to_text

from conftest import FakeRestBIClient

client = TestClient(app)


@pytest.fixture
def service():
    """Swap the per-request RestBI client for a fake."""
    fake = FakeRestBIClient()
    app.dependency_overrides[get_client] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["restbi_api_url"] == get_settings().restbi_api_url
    assert data["sample_models"] >= 2


# ── Models ──────────────────────────────────────────────

def test_models_list():
    resp = client.get("/models")
    assert resp.status_code == 200
    assert "chinook" in resp.json()["models"]


def test_model_detail_uses_wire_names():
    resp = client.get("/models/chinook")
    assert resp.status_code == 200
    data = resp.json()
    assert data["displayName"] == "Chinook Music Store Model"
    assert data["tables"][0]["dbName"] == "album"


def test_model_detail_unknown():
    resp = client.get("/models/northwind")
    assert resp.status_code == 404
    assert "Unknown sample model" in resp.json()["detail"]


def test_validate_rejects_bad_json(service):
    resp = client.post("/models/validate", json={"text": "{not json"})
    assert resp.status_code == 422
    assert service.validated == []


def test_validate_reports_issues(service, chinook):
    annotated = chinook.model_copy(deep=True)
    for table in annotated.tables:
        table.validated = table.db_name != "genre"
        for column in table.columns:
            column.validated = True
    service.validation = ValidationResult(model=annotated, dbTables=[chinook.tables[0]])

    resp = client.post("/models/validate", json={"text": model_to_text(chinook)})

    assert resp.status_code == 200
    data = resp.json()
    assert data["error_count"] == 1
    assert data["issues"][0]["message"] == "Invalid Table: Genre"
    assert data["issues"][0]["tableName"] == "Genre"
    assert data["problematic_tables"] == ["genre"]
    lines = data["model_text"].split("\n")
    assert '"name": "Genre"' in lines[data["issues"][0]["line"]]
    assert data["metadata"][0]["db_name"] == "album"


def test_validate_service_failure(service, chinook):
    service.validation_error = ModelValidationError("connection refused")
    resp = client.post("/models/validate", json={"text": model_to_text(chinook)})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "connection refused"


def test_merge_column(service, chinook):
    payload = {
        "text": model_to_text(chinook),
        "table_db_name": "genre",
        "column": {"id": "3", "dbName": "Mood", "name": "Mood", "dataType": "STRING"},
    }
    resp = client.post("/models/merge-column", json=payload)
    assert resp.status_code == 200
    assert resp.json()["merged"] is True
    assert '"name": "Mood"' in resp.json()["model_text"]


# ── Query ───────────────────────────────────────────────

def test_execute(service, chinook):
    service.result = SQLResult(columns=["Name"], rows=[{"Name": "AC/DC"}])
    query = {"columns": ["Name", "Name"], "filters": [], "limit": 5}
    resp = client.post("/query/execute", json={"query": query, "model": chinook.to_wire()})
    assert resp.status_code == 200
    assert resp.json() == {"columns": ["Name"], "rows": [{"Name": "AC/DC"}]}
    sent, _ = service.executed[0]
    assert sent.columns == ["Name"]
    assert sent.limit == 5


def test_execute_sql_error(service, chinook):
    service.error = SQLError("column does not exist", query="SELECT nope")
    query = {"columns": ["Name"], "filters": [], "limit": 5}
    resp = client.post("/query/execute", json={"query": query, "model": chinook.to_wire()})
    assert resp.status_code == 400
    assert resp.json()["detail"] == {"message": "column does not exist", "query": "SELECT nope"}


def test_options(service, chinook):
    service.result = SQLResult(columns=["Name"], rows=[{"Name": "Rock"}, {"Name": None}, {"Name": "Jazz"}])
    resp = client.post("/query/options", json={"column": "Name", "model": chinook.to_wire()})
    assert resp.status_code == 200
    assert resp.json() == {"column": "Name", "options": ["Rock", "Jazz"]}
    sent, _ = service.executed[0]
    assert sent.columns == ["Name"]


def test_preview():
    query = {"columns": ["Name", "Total"], "filters": [], "limit": 10}
    resp = client.post("/query/preview", json={"query": query})
    assert resp.status_code == 200
    text = resp.json()["text"]
    assert '"columns": ["Name", "Total"]' in text
    assert '"limit": 10' in text


def test_options_skip_sampling_for_number_columns(service, chinook):
    resp = client.post("/query/options", json={"column": "Total", "model": chinook.to_wire()})
    assert resp.status_code == 200
    assert resp.json() == {"column": "Total", "options": []}
    assert service.executed == []
