"""
Unit tests for the DAX role filter rendering.
"""

from rls_identity.dax import build_role_filter, dax_column, dax_string
from rls_identity.schema import parse_schema


def test_dax_string_escapes_quotes():
    assert dax_string('say "hi"') == '"say ""hi"""'


def test_dax_column_quotes_table():
    assert dax_column("o'neil", "Region") == "'o''neil'[Region]"


def test_filter_for_equality_schema():
    schema = parse_schema("sales-overview", {
        "dataset_table": "sales",
        "parameters": [
            {"name": "Region", "allowed": ["West"]},
            {"name": "Department", "allowed": ["Sales"]},
            {"name": "Year", "type": "integer"},
        ],
    })
    assert build_role_filter(schema) == (
        "IF(PATHLENGTH(USERPRINCIPALNAME()) = 3, "
        "EXACT('sales'[Region], PATHITEM(USERPRINCIPALNAME(), 1)) && "
        "EXACT('sales'[Department], PATHITEM(USERPRINCIPALNAME(), 2)) && "
        "'sales'[Year] = PATHITEM(USERPRINCIPALNAME(), 3, INTEGER), "
        "FALSE())"
    )


def test_filter_for_groups_ranges_and_free_text():
    schema = parse_schema("regional-trend", {
        "dataset_table": "sales",
        "parameters": [
            {"name": "Area", "column": "Country", "operator": "in",
             "groups": {"EMEA": ["UK", "DE"], "AMER": ["US"]}},
            {"name": "FromYear", "type": "integer", "column": "Year", "operator": "ge"},
            {"name": "Account", "column": "AccountName", "free_text": True},
        ],
    })
    dax = build_role_filter(schema)
    assert dax.startswith("IF(PATHLENGTH(USERPRINCIPALNAME()) = 3, ")
    assert (
        "SWITCH(TRUE(), "
        "EXACT(PATHITEM(USERPRINCIPALNAME(), 1), \"AMER\"), EXACT('sales'[Country], \"US\"), "
        "EXACT(PATHITEM(USERPRINCIPALNAME(), 1), \"EMEA\"), "
        "EXACT('sales'[Country], \"UK\") || EXACT('sales'[Country], \"DE\"), FALSE())"
    ) in dax
    assert "'sales'[Year] >= PATHITEM(USERPRINCIPALNAME(), 2, INTEGER)" in dax
    assert (
        "EXACT('sales'[AccountName], SUBSTITUTE(SUBSTITUTE(PATHITEM(USERPRINCIPALNAME(), 3), "
        '"%7C", "|"), "%25", "%"))'
    ) in dax
    assert dax.endswith(", FALSE())")
