"""
DAX rendering of the row filter, for the report's RLS role.

The embed token carries the EncodedIdentity as the effective identity
username, so USERPRINCIPALNAME() returns it inside the dataset and
PATHITEM/PATHLENGTH read it with "|" as the path delimiter.
"""

from typing import List

from rls_identity.config import SEPARATOR
from rls_identity.errors import SchemaError
from rls_identity.models import ParameterSchema, ParameterSpec
from rls_identity.wire import ESCAPED_PERCENT, ESCAPED_SEPARATOR

IDENTITY = "USERPRINCIPALNAME()"

DAX_OPERATORS = {"eq": "=", "lt": "<", "le": "<=", "gt": ">", "ge": ">="}


def dax_string(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def dax_column(table: str, column: str) -> str:
    return "'" + table.replace("'", "''") + "'[" + column + "]"


def _item(position: int, spec: ParameterSpec) -> str:
    if spec.type == "integer":
        return f"PATHITEM({IDENTITY}, {position}, INTEGER)"
    item = f"PATHITEM({IDENTITY}, {position})"
    if spec.free_text:
        item = (
            f"SUBSTITUTE(SUBSTITUTE({item}, {dax_string(ESCAPED_SEPARATOR)}, {dax_string(SEPARATOR)}), "
            f"{dax_string(ESCAPED_PERCENT)}, {dax_string('%')})"
        )
    return item


def _predicate(position: int, spec: ParameterSpec, table: str) -> str:
    column = dax_column(table, spec.column)
    item = _item(position, spec)

    # DAX "=", IN and SWITCH on text ignore case; EXACT keeps it.
    if spec.operator == "in":
        branches: List[str] = []
        for group, members in sorted((spec.groups or {}).items()):
            member_test = " || ".join(f"EXACT({column}, {dax_string(m)})" for m in members)
            branches.append(f"EXACT({item}, {dax_string(group)}), {member_test}")
        return f"SWITCH(TRUE(), {', '.join(branches)}, FALSE())"

    if spec.type == "string":
        return f"EXACT({column}, {item})"
    return f"{column} {DAX_OPERATORS[spec.operator]} {item}"


def build_role_filter(schema: ParameterSchema) -> str:
    """DAX table filter expression for *schema*'s dataset table.

    A wrong field count evaluates to FALSE() so a malformed identity sees
    no rows.
    """
    if SEPARATOR != "|":
        raise SchemaError("DAX path functions only support '|' as the separator.")

    predicates = [
        _predicate(i, spec, schema.dataset_table)
        for i, spec in enumerate(schema.parameters, start=1)
    ]
    return (
        f"IF(PATHLENGTH({IDENTITY}) = {len(schema)}, "
        + " && ".join(predicates)
        + ", FALSE())"
    )
