"""
Report registry – loading ParameterSchema declarations from JSON.
"""

import json
import re
from typing import Any, Dict, Mapping

from rls_identity.errors import SchemaError
from rls_identity.models import ParameterSchema, ParameterSpec, PowerBITarget

VALID_TYPES = {"string", "integer"}
VALID_OPERATORS = {"eq", "lt", "le", "gt", "ge", "in"}
NUMERIC_OPERATORS = {"lt", "le", "gt", "ge"}
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_parameter(raw: Mapping[str, Any]) -> ParameterSpec:
    """Build a ParameterSpec from a JSON declaration, checking consistency."""
    name = raw.get("name")
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise SchemaError(f"Invalid parameter name: {name!r}")

    ptype = raw.get("type", "string")
    if ptype not in VALID_TYPES:
        raise SchemaError(f"Parameter '{name}' has unsupported type '{ptype}'.")

    operator = raw.get("operator", "eq")
    if operator not in VALID_OPERATORS:
        raise SchemaError(f"Parameter '{name}' has unsupported operator '{operator}'.")
    if operator in NUMERIC_OPERATORS and ptype != "integer":
        raise SchemaError(f"Parameter '{name}': operator '{operator}' requires type integer.")

    column = raw.get("column", name)
    if not isinstance(column, str) or not IDENTIFIER_RE.match(column):
        raise SchemaError(f"Parameter '{name}' has invalid column {column!r}.")

    groups = raw.get("groups")
    if operator == "in":
        if ptype != "string" or not isinstance(groups, dict) or not groups:
            raise SchemaError(f"Parameter '{name}': operator 'in' requires a non-empty groups mapping.")
        groups = {str(k): tuple(str(m) for m in v) for k, v in groups.items()}
    elif groups is not None:
        raise SchemaError(f"Parameter '{name}': groups are only valid with operator 'in'.")

    free_text = bool(raw.get("free_text", False))
    if free_text and ptype != "string":
        raise SchemaError(f"Parameter '{name}': free_text is only valid for strings.")

    pattern = raw.get("pattern")
    if pattern is not None:
        if ptype != "string":
            raise SchemaError(f"Parameter '{name}': pattern is only valid for strings.")
        try:
            re.compile(pattern)
        except re.error as e:
            raise SchemaError(f"Parameter '{name}' has invalid pattern: {e}") from e

    allowed = raw.get("allowed")
    if allowed is not None:
        allowed = tuple(allowed)
        if not allowed:
            raise SchemaError(f"Parameter '{name}' declares an empty allow-list.")
        expected = int if ptype == "integer" else str
        if any(type(v) is not expected for v in allowed):
            raise SchemaError(f"Parameter '{name}' allow-list values must all be {ptype}s.")

    minimum, maximum = raw.get("minimum"), raw.get("maximum")
    if (minimum is not None or maximum is not None) and ptype != "integer":
        raise SchemaError(f"Parameter '{name}': minimum/maximum require type integer.")
    if any(b is not None and type(b) is not int for b in (minimum, maximum)):
        raise SchemaError(f"Parameter '{name}': minimum/maximum must be integers.")

    # A string parameter with nothing constraining it would pass any value
    # straight through, so one of these must be declared.
    if ptype == "string" and allowed is None and pattern is None and groups is None and not free_text:
        raise SchemaError(
            f"Parameter '{name}' needs an allow-list: set allowed, pattern, groups or free_text."
        )

    return ParameterSpec(
        name=name,
        type=ptype,
        column=column,
        operator=operator,
        allowed=allowed,
        minimum=minimum,
        maximum=maximum,
        pattern=pattern,
        groups=groups,
        free_text=free_text,
    )


def parse_schema(report_id: str, raw: Mapping[str, Any]) -> ParameterSchema:
    """Build the ParameterSchema for one report entry."""
    params = [parse_parameter(p) for p in raw.get("parameters", [])]
    if not params:
        raise SchemaError(f"Report '{report_id}' declares no parameters.")

    names = [p.name for p in params]
    if len(set(names)) != len(names):
        raise SchemaError(f"Report '{report_id}' declares duplicate parameter names.")

    table = raw.get("dataset_table")
    if not isinstance(table, str) or not IDENTIFIER_RE.match(table):
        raise SchemaError(f"Report '{report_id}' has invalid dataset_table {table!r}.")

    pbi = raw.get("powerbi")
    target = None
    if pbi:
        try:
            target = PowerBITarget(
                workspace_id=str(pbi["workspace_id"]),
                report_id=str(pbi["report_id"]),
                dataset_id=str(pbi["dataset_id"]),
            )
        except KeyError as e:
            raise SchemaError(f"Report '{report_id}' powerbi block is missing {e}.") from e

    return ParameterSchema(
        report_id=report_id,
        version=int(raw.get("version", 1)),
        parameters=tuple(params),
        dataset_table=table,
        rls_role=raw.get("rls_role", "ParameterViewer"),
        powerbi=target,
    )


def parse_registry(raw: Mapping[str, Any]) -> Dict[str, ParameterSchema]:
    reports = raw.get("reports")
    if not isinstance(reports, dict) or not reports:
        raise SchemaError("Registry must contain a non-empty 'reports' object.")
    return {rid: parse_schema(rid, entry) for rid, entry in reports.items()}


def load_registry(path: str) -> Dict[str, ParameterSchema]:
    """Read the report registry JSON file at *path*."""
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    return parse_registry(raw)
