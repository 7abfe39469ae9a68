"""
Policy evaluator – decodes an EncodedIdentity and decides row visibility.

Everything here is a pure function of (row, identity, schema). Any
problem reading the identity denies every row; it is never treated as
"no filter".
"""

from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from rls_identity.models import ParameterSchema, ParameterSet, ParameterSpec, ParameterValue
from rls_identity.wire import INTEGER_RE, unpack


def decode_identity(identity: object, schema: ParameterSchema) -> Optional[ParameterSet]:
    """Return the positional ParameterSet, or None if *identity* is unusable."""
    parts = unpack(identity, schema)
    if parts is None:
        return None

    items = []
    for spec, part in zip(schema.parameters, parts):
        if spec.type == "integer":
            if not INTEGER_RE.fullmatch(part):
                return None
            items.append((spec.name, int(part)))
        else:
            items.append((spec.name, part))
    return ParameterSet(tuple(items))


def _compare(spec: ParameterSpec, row_value: Any, expected: ParameterValue) -> bool:
    if row_value is None:
        return False

    if spec.type == "integer":
        try:
            actual = int(row_value)
        except (TypeError, ValueError, OverflowError):
            return False
        if actual != row_value and not isinstance(row_value, str):
            # 2024.5 is not 2024
            return False
        if spec.operator == "eq":
            return actual == expected
        if spec.operator == "lt":
            return actual < expected
        if spec.operator == "le":
            return actual <= expected
        if spec.operator == "gt":
            return actual > expected
        if spec.operator == "ge":
            return actual >= expected
        return False

    # Only real text matches a string parameter; NULL/NaN cells never do.
    if not isinstance(row_value, str):
        return False
    if spec.operator == "in":
        members = (spec.groups or {}).get(expected)
        return members is not None and row_value in members
    if spec.operator == "eq":
        return row_value == expected
    return False


def _row_matches(row: Mapping[str, Any], decoded: ParameterSet, schema: ParameterSchema) -> bool:
    for spec, expected in zip(schema.parameters, decoded.values()):
        if spec.column not in row:
            return False
        if not _compare(spec, row[spec.column], expected):
            return False
    return True


def evaluate_row(row: Mapping[str, Any], identity: object, schema: ParameterSchema) -> bool:
    """AccessDecision for a single row."""
    decoded = decode_identity(identity, schema)
    if decoded is None:
        return False
    return _row_matches(row, decoded, schema)


def filter_rows(rows: Iterable[Mapping[str, Any]], identity: object, schema: ParameterSchema) -> List[Mapping[str, Any]]:
    decoded = decode_identity(identity, schema)
    if decoded is None:
        return []
    return [r for r in rows if _row_matches(r, decoded, schema)]


def filter_frame(df: pd.DataFrame, identity: object, schema: ParameterSchema) -> pd.DataFrame:
    """Rows of *df* visible to *identity*; an empty frame with the same columns otherwise."""
    decoded = decode_identity(identity, schema)
    if decoded is None or df.empty:
        return df.iloc[0:0]
    mask = [_row_matches(rec, decoded, schema) for rec in df.to_dict(orient="records")]
    return df[pd.Series(mask, index=df.index, dtype=bool)]
