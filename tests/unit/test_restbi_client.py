"""
Unit tests -- RestBIClient over httpx.MockTransport.
"""
import json

import httpx
import pytest

from restbi_studio.client.restbi import RestBIClient
from restbi_studio.core.errors import ModelValidationError, SQLError
from restbi_studio.domain.schema import Query, QueryFilter


def _client(handler) -> RestBIClient:
    return RestBIClient(base_url="http://restbi.test", transport=httpx.MockTransport(handler))


def test_execute_posts_query_and_model(chinook):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"columns": ["Name"], "rows": [{"Name": "Rock"}]})

    query = Query(columns=["Name"], filters=[QueryFilter(column="Name", operator="IN", value=["Rock"])], limit=10)
    with _client(handler) as restbi:
        result = restbi.execute_query(query, chinook)

    assert seen["path"] == "/query"
    assert set(seen["body"]) == {"query", "model"}
    assert seen["body"]["query"]["filters"][0] == {"column": "Name", "operator": "IN", "value": ["Rock"]}
    assert seen["body"]["model"]["displayName"] == "Chinook Music Store Model"
    assert result.rows == [{"Name": "Rock"}]


def test_execute_error_carries_generated_sql(chinook):
    def handler(request):
        return httpx.Response(500, json={"message": "relation missing", "query": "SELECT 1 FROM x"})

    with pytest.raises(SQLError) as info:
        _client(handler).execute_query(Query(columns=["Name"]), chinook)
    assert info.value.message == "relation missing"
    assert info.value.query == "SELECT 1 FROM x"
    assert info.value.status_code == 500


def test_execute_error_with_plain_text_body(chinook):
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(SQLError) as info:
        _client(handler).execute_query(Query(columns=["Name"]), chinook)
    assert info.value.message == "Bad Gateway"
    assert info.value.query == ""


def test_execute_unreachable(chinook):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SQLError, match="unreachable"):
        _client(handler).execute_query(Query(columns=["Name"]), chinook)


def test_execute_malformed_response(chinook):
    def handler(request):
        return httpx.Response(200, text="<html>")

    with pytest.raises(SQLError, match="Malformed"):
        _client(handler).execute_query(Query(columns=["Name"]), chinook)


def test_validate_posts_model(chinook):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        body = json.loads(request.content)
        seen["body"] = body
        return httpx.Response(200, json={"model": body, "dbTables": body["tables"][:1]})

    result = _client(handler).validate_model(chinook)
    assert seen["path"] == "/validate"
    assert seen["body"]["name"] == chinook.name
    assert result.model == chinook
    assert result.db_tables[0].db_name == "album"


def test_validate_failure():
    def handler(request):
        return httpx.Response(500, json={"error": "cannot connect to database"})

    from restbi_studio.validation.model_loader import load_sample_model

    with pytest.raises(ModelValidationError, match="cannot connect"):
        _client(handler).validate_model(load_sample_model("chinook"))
