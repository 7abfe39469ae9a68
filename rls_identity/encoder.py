"""
Identity encoder – validates user-supplied report parameters and packs
them into an EncodedIdentity.

Nothing here trusts the client: every value is checked against the
report's ParameterSchema before any string is built.
"""

import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from rls_identity.audit import emit_audit
from rls_identity.config import MAX_IDENTITY_LENGTH, SEPARATOR
from rls_identity.errors import InvalidParameterError, ParameterNotAllowedError
from rls_identity.models import (
    AuditRecord,
    ParameterSchema,
    ParameterSet,
    ParameterSpec,
    ParameterValue,
)
from rls_identity.wire import INTEGER_RE, pack


RawParameters = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], ParameterSet]


# ── Helper functions ─────────────────────────────────────────────────

def _as_pairs(params: RawParameters) -> List[Tuple[str, Any]]:
    pairs = _raw_pairs(params)
    if any(not isinstance(name, str) for name, _ in pairs):
        raise InvalidParameterError(None, "malformed", "Parameter names must be strings.")
    return pairs


def _raw_pairs(params: RawParameters) -> List[Tuple[str, Any]]:
    if isinstance(params, ParameterSet):
        return list(params.items)
    if isinstance(params, Mapping):
        return list(params.items())
    if isinstance(params, (str, bytes)):
        raise InvalidParameterError(None, "malformed", "Parameters must be a mapping of name to value.")
    try:
        pairs = [tuple(p) for p in params]
    except TypeError:
        raise InvalidParameterError(None, "malformed", "Parameters must be a mapping of name to value.")
    if any(len(p) != 2 for p in pairs):
        raise InvalidParameterError(None, "malformed", "Parameters must be (name, value) pairs.")
    return pairs


def _check_wellformed(spec: ParameterSpec, value: Any) -> None:
    """Reject values that would corrupt positional decoding."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidParameterError(spec.name, "empty", f"Parameter '{spec.name}' must not be empty.")
    if isinstance(value, str) and SEPARATOR in value and not spec.free_text:
        raise InvalidParameterError(
            spec.name, "separator",
            f"Parameter '{spec.name}' contains the reserved separator character.",
        )


def _coerce(spec: ParameterSpec, value: Any) -> ParameterValue:
    if spec.type == "integer":
        if isinstance(value, bool):
            pass
        elif isinstance(value, int):
            if abs(value) < 10 ** MAX_IDENTITY_LENGTH:
                return value
        elif isinstance(value, str) and len(value) <= MAX_IDENTITY_LENGTH and INTEGER_RE.fullmatch(value):
            return int(value)
        raise ParameterNotAllowedError(spec.name, "type", f"Parameter '{spec.name}' must be an integer.")

    if not isinstance(value, str):
        raise ParameterNotAllowedError(spec.name, "type", f"Parameter '{spec.name}' must be a string.")
    return value


def _check_allowed(spec: ParameterSpec, value: Any) -> ParameterValue:
    """Apply the type constraint and allow-list; return the canonical value."""
    v = _coerce(spec, value)

    if spec.allowed is not None and v not in spec.allowed:
        raise ParameterNotAllowedError(spec.name, "not_allowed", f"Parameter '{spec.name}' is not an allowed value.")
    if spec.minimum is not None and v < spec.minimum:
        raise ParameterNotAllowedError(spec.name, "out_of_range", f"Parameter '{spec.name}' is below the allowed range.")
    if spec.maximum is not None and v > spec.maximum:
        raise ParameterNotAllowedError(spec.name, "out_of_range", f"Parameter '{spec.name}' is above the allowed range.")
    if spec.pattern is not None and not re.fullmatch(spec.pattern, v):
        raise ParameterNotAllowedError(spec.name, "pattern", f"Parameter '{spec.name}' does not match the allowed format.")
    if spec.groups is not None and v not in spec.groups:
        raise ParameterNotAllowedError(spec.name, "not_allowed", f"Parameter '{spec.name}' is not an allowed group.")
    return v


# ── Main functions ───────────────────────────────────────────────────

def validate_parameters(params: RawParameters, schema: ParameterSchema) -> ParameterSet:
    """Check *params* against *schema* and return them in schema order."""
    declared = set(schema.names)
    seen = {}
    for name, value in _as_pairs(params):
        if name not in declared:
            raise InvalidParameterError(None, "unknown", "Unknown parameter name supplied.")
        if name in seen:
            raise InvalidParameterError(name, "duplicate", f"Parameter '{name}' supplied more than once.")
        seen[name] = value

    for spec in schema:
        if spec.name not in seen:
            raise InvalidParameterError(spec.name, "missing", f"Parameter '{spec.name}' is required.")

    for spec in schema:
        _check_wellformed(spec, seen[spec.name])

    return ParameterSet(tuple((spec.name, _check_allowed(spec, seen[spec.name])) for spec in schema))


def encode_identity(
    params: RawParameters,
    schema: ParameterSchema,
    audit=None,
    subject: Optional[str] = None,
) -> str:
    """Validate *params* and return the EncodedIdentity for *schema*.

    When an *audit* sink is given the accepted set is recorded; a sink
    failure is reported but does not block the request.
    """
    pset = validate_parameters(params, schema)
    identity = pack(pset.values(), schema)

    if audit is not None:
        emit_audit(audit, AuditRecord(
            report_id=schema.report_id,
            schema_version=schema.version,
            subject=subject,
            parameters=pset.as_dict(),
        ))
    return identity
