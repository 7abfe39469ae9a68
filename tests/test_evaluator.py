"""
Unit tests for identity decoding and row evaluation.
"""

import math

import pandas as pd
import pytest

from rls_identity.encoder import encode_identity, validate_parameters
from rls_identity.evaluator import decode_identity, evaluate_row, filter_frame, filter_rows
from rls_identity.schema import parse_schema


# ── Helpers ──────────────────────────────────────────────────────────

def sales_schema():
    return parse_schema("sales-overview", {
        "version": 1,
        "dataset_table": "sales",
        "parameters": [
            {"name": "Region", "type": "string", "allowed": ["West", "East", "North", "South"]},
            {"name": "Department", "type": "string", "allowed": ["Sales", "Marketing"]},
            {"name": "Year", "type": "integer", "minimum": 2015, "maximum": 2030},
        ],
    })


def trend_schema():
    return parse_schema("regional-trend", {
        "version": 2,
        "dataset_table": "sales",
        "parameters": [
            {"name": "Area", "type": "string", "column": "Country", "operator": "in",
             "groups": {"EMEA": ["UK", "DE"], "AMER": ["US", "CA"]}},
            {"name": "FromYear", "type": "integer", "column": "Year", "operator": "ge"},
            {"name": "Account", "type": "string", "column": "AccountName", "free_text": True},
        ],
    })


ROW = {"Region": "West", "Department": "Sales", "Year": 2024, "Amount": 10}


# ── Tests: decode ────────────────────────────────────────────────────

@pytest.mark.parametrize("params", [
    {"Region": "West", "Department": "Sales", "Year": 2024},
    {"Region": "South", "Department": "Marketing", "Year": "2015"},
])
def test_decode_round_trip(params):
    schema = sales_schema()
    identity = encode_identity(params, schema)
    assert decode_identity(identity, schema) == validate_parameters(params, schema)


@pytest.mark.parametrize("account", ["Acme|Ltd", "100%", "%7C", "%25|%", "a||b"])
def test_decode_round_trip_free_text(account):
    schema = trend_schema()
    params = {"Area": "EMEA", "FromYear": 2020, "Account": account}
    decoded = decode_identity(encode_identity(params, schema), schema)
    assert decoded.as_dict()["Account"] == account


@pytest.mark.parametrize("identity", [
    "West|Sales",
    "West|Sales|2024|extra",
    "",
    "|||",
    "West||2024",
    "West|Sales|20x4",
    "W" * 300 + "|Sales|2024",
    None,
    2024,
    b"West|Sales|2024",
])
def test_decode_fails_closed(identity):
    assert decode_identity(identity, sales_schema()) is None


# ── Tests: evaluate_row ──────────────────────────────────────────────

def test_concrete_scenario():
    schema = sales_schema()
    identity = encode_identity({"Region": "West", "Department": "Sales", "Year": 2024}, schema)
    assert identity == "West|Sales|2024"
    assert evaluate_row(ROW, identity, schema) is True
    assert evaluate_row(dict(ROW, Region="East"), identity, schema) is False
    assert evaluate_row(ROW, "West|Sales", schema) is False


@pytest.mark.parametrize("row", [
    ROW,
    dict(ROW, Region="East"),
    {"Region": "", "Department": "", "Year": None},
    {},
    {"Region": "West|Sales", "Department": "2024", "Year": 2024},
])
def test_wrong_field_count_denies_every_row(row):
    schema = sales_schema()
    for identity in ("West|Sales", "West", "West|Sales|2024|2025", ""):
        assert evaluate_row(row, identity, schema) is False


@pytest.mark.parametrize("column,other", [
    ("Region", "East"),
    ("Department", "Marketing"),
    ("Year", 2023),
])
def test_single_mismatch_hides_row(column, other):
    schema = sales_schema()
    assert evaluate_row(dict(ROW, **{column: other}), "West|Sales|2024", schema) is False


def test_row_missing_column_is_hidden():
    row = {"Region": "West", "Year": 2024}
    assert evaluate_row(row, "West|Sales|2024", sales_schema()) is False


@pytest.mark.parametrize("year,visible", [
    (2024, True),
    ("2024", True),
    (2024.0, True),
    (2024.5, False),
    (math.nan, False),
    (None, False),
    ("twenty", False),
])
def test_integer_column_coercion(year, visible):
    row = dict(ROW, Year=year)
    assert evaluate_row(row, "West|Sales|2024", sales_schema()) is visible


def test_string_comparison_is_exact():
    assert evaluate_row(dict(ROW, Region="west"), "West|Sales|2024", sales_schema()) is False


def search_schema():
    return parse_schema("notes", {
        "dataset_table": "notes",
        "parameters": [{"name": "Search", "type": "string", "free_text": True}],
    })


@pytest.mark.parametrize("cell", [math.nan, None, 7, 7.0])
def test_string_parameter_never_matches_non_text_cell(cell):
    identity = encode_identity({"Search": str(cell)}, search_schema())
    assert evaluate_row({"Search": cell}, identity, search_schema()) is False


def test_string_parameter_skips_missing_cells_in_frame():
    df = pd.DataFrame({"Search": ["nan", math.nan, None, "None"]})
    assert list(filter_frame(df, "nan", search_schema()).index) == [0]
    assert list(filter_frame(df, "None", search_schema()).index) == [3]


def test_ge_and_group_membership():
    schema = trend_schema()
    identity = "EMEA|2020|Acme%7CLtd"
    row = {"Country": "UK", "Year": 2021, "AccountName": "Acme|Ltd"}
    assert evaluate_row(row, identity, schema) is True
    assert evaluate_row(dict(row, Year=2020), identity, schema) is True
    assert evaluate_row(dict(row, Year=2019), identity, schema) is False
    assert evaluate_row(dict(row, Country="US"), identity, schema) is False
    assert evaluate_row(dict(row, AccountName="Acme"), identity, schema) is False


def test_unknown_group_hides_row():
    row = {"Country": "UK", "Year": 2021, "AccountName": "Acme"}
    assert evaluate_row(row, "APAC|2020|Acme", trend_schema()) is False


def test_evaluation_is_pure():
    schema = sales_schema()
    row = dict(ROW)
    first = evaluate_row(row, "West|Sales|2024", schema)
    second = evaluate_row(row, "West|Sales|2024", schema)
    assert first is second is True
    assert row == ROW


# ── Tests: filter_rows / filter_frame ────────────────────────────────

ROWS = [
    ROW,
    dict(ROW, Region="East"),
    dict(ROW, Year=2023),
    dict(ROW, Amount=99),
]


def test_filter_rows():
    visible = filter_rows(ROWS, "West|Sales|2024", sales_schema())
    assert visible == [ROW, dict(ROW, Amount=99)]


def test_filter_rows_fail_closed():
    assert filter_rows(ROWS, "West|Sales", sales_schema()) == []


def test_filter_frame():
    df = pd.DataFrame(ROWS)
    out = filter_frame(df, "West|Sales|2024", sales_schema())
    assert list(out["Amount"]) == [10, 99]
    assert list(out.index) == [0, 3]


def test_filter_frame_fail_closed_keeps_columns():
    df = pd.DataFrame(ROWS)
    out = filter_frame(df, None, sales_schema())
    assert out.empty
    assert list(out.columns) == list(df.columns)


def test_filter_frame_empty_input():
    df = pd.DataFrame(columns=["Region", "Department", "Year"])
    assert filter_frame(df, "West|Sales|2024", sales_schema()).empty
