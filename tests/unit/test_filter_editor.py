"""
Unit tests -- FilterEditor: operator/value transitions and option sampling.
"""
import math

import pytest

from restbi_studio.builder.filter_editor import FilterEditor
from restbi_studio.builder.operators import OPERATORS_BY_DATA_TYPE
from restbi_studio.core.errors import SQLError
from restbi_studio.domain.schema import Column, ColumnDataType, QueryFilter, SQLResult

from conftest import FakeRestBIClient


def _col(data_type: str, name: str = "Title") -> Column:
    return Column(id="1", dbName=name, name=name, dataType=data_type)


_ALL_OPERATORS = sorted({op for ops in OPERATORS_BY_DATA_TYPE.values() for op in ops})


# ── Operator transitions ────────────────────────────────

@pytest.mark.parametrize("operator", _ALL_OPERATORS)
@pytest.mark.parametrize("data_type", ["STRING", "NUMBER", "DATE", "BOOLEAN"])
def test_value_shape_after_operator_change(data_type, operator):
    editor = FilterEditor(_col(data_type), QueryFilter(column="Title", operator="=", value="old"))
    f = editor.change_operator(operator)
    expected = [] if operator in ("IN", "NOT IN") else ""
    assert f.value == expected
    assert editor.value == expected


def test_change_operator_returns_full_filter():
    editor = FilterEditor(_col("STRING"))
    f = editor.change_operator("LIKE")
    assert f == QueryFilter(column="Title", operator="LIKE", value="")


def test_starts_from_existing_filter():
    editor = FilterEditor(_col("NUMBER"), QueryFilter(column="Title", operator=">", value=5.0))
    assert editor.operator == ">"
    assert editor.value == 5.0


def test_unset_value_starts_as_empty_string():
    editor = FilterEditor(_col("STRING"), QueryFilter(column="Title"))
    assert editor.value == ""


# ── Values ──────────────────────────────────────────────

def test_number_value_coerced():
    editor = FilterEditor(_col("NUMBER"))
    assert editor.change_value("42").value == 42.0
    assert math.isnan(editor.change_value("x").value)


def test_boolean_value_passes_through():
    editor = FilterEditor(_col("BOOLEAN"))
    assert editor.change_value("true").value == "true"


def test_multi_selection():
    editor = FilterEditor(_col("STRING"))
    editor.change_operator("IN")
    assert editor.change_selection(["Rock", "Jazz"]).value == ["Rock", "Jazz"]
    assert editor.change_selection("Blues").value == ["Blues"]


def test_single_selection():
    editor = FilterEditor(_col("STRING"))
    assert editor.change_selection("Rock").value == "Rock"
    assert editor.change_selection(["Jazz", "Pop"]).value == "Jazz"


# ── Option sampling ─────────────────────────────────────

def test_operator_change_into_cached_set_fetches_options(chinook):
    client = FakeRestBIClient(result=SQLResult(columns=["Title"], rows=[{"Title": "A"}, {"Title": "B"}]))
    editor = FilterEditor(_col("STRING"), client=client, model=chinook, option_limit=100)
    editor.change_operator("IN")
    query, model = client.executed[-1]
    assert query.to_wire() == {"columns": ["Title"], "filters": [], "limit": 100}
    assert model is chinook
    assert editor.options == ["A", "B"]


def test_no_fetch_for_free_text_operator(chinook):
    client = FakeRestBIClient()
    editor = FilterEditor(_col("STRING"), client=client, model=chinook)
    editor.change_operator("LIKE")
    assert client.executed == []


def test_no_fetch_for_number_columns(chinook):
    client = FakeRestBIClient()
    editor = FilterEditor(_col("NUMBER"), client=client, model=chinook)
    editor.change_operator("=")
    assert client.executed == []


def test_options_use_first_value_and_skip_nulls():
    editor = FilterEditor(_col("STRING"))
    ticket, _ = editor.begin_options_fetch()
    rows = [{"Composer": "AC/DC"}, {"Composer": None}, {"Composer": 7}]
    assert editor.apply_options(ticket, SQLResult(columns=["Composer"], rows=rows))
    assert editor.options == ["AC/DC", "7"]


def test_stale_options_are_discarded():
    editor = FilterEditor(_col("STRING"))
    old_ticket, _ = editor.begin_options_fetch()
    new_ticket, _ = editor.begin_options_fetch()
    assert editor.apply_options(new_ticket, SQLResult(columns=["Title"], rows=[{"Title": "new"}]))
    assert not editor.apply_options(old_ticket, SQLResult(columns=["Title"], rows=[{"Title": "old"}]))
    assert editor.options == ["new"]


def test_fetch_failure_keeps_previous_options(chinook):
    client = FakeRestBIClient(result=SQLResult(columns=["Title"], rows=[{"Title": "A"}]))
    editor = FilterEditor(_col("STRING"), client=client, model=chinook)
    assert editor.refresh_options()
    client.error = SQLError("boom")
    assert not editor.refresh_options()
    assert editor.options == ["A"]


def test_refresh_without_client_is_noop():
    editor = FilterEditor(_col("STRING"))
    assert not editor.refresh_options()
    assert editor.options == []
