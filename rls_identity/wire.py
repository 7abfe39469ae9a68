"""
EncodedIdentity wire format: schema-ordered values joined by SEPARATOR.

Free-text positions are percent-escaped (``%`` -> ``%25``, then the
separator -> ``%7C``) so they can never split. Changing any of this is
a wire change and must bump the report schema version.
"""

import re
from typing import List, Optional, Sequence

from rls_identity.config import MAX_IDENTITY_LENGTH, SEPARATOR
from rls_identity.errors import IdentityTooLongError
from rls_identity.models import ParameterSchema, ParameterValue

INTEGER_RE = re.compile(r"-?[0-9]+")

ESCAPED_PERCENT = "%25"
ESCAPED_SEPARATOR = "%7C"


def escape(value: str) -> str:
    return value.replace("%", ESCAPED_PERCENT).replace(SEPARATOR, ESCAPED_SEPARATOR)


def unescape(value: str) -> str:
    # Reverse order of escape(); every literal "%" on the wire starts an
    # escape sequence, so "%7C" cannot straddle an escaped "%25".
    return value.replace(ESCAPED_SEPARATOR, SEPARATOR).replace(ESCAPED_PERCENT, "%")


def pack(values: Sequence[ParameterValue], schema: ParameterSchema) -> str:
    """Join already-validated values into an EncodedIdentity."""
    parts = []
    for spec, value in zip(schema.parameters, values):
        text = str(value)
        parts.append(escape(text) if spec.free_text else text)
    identity = SEPARATOR.join(parts)
    if len(identity) > MAX_IDENTITY_LENGTH:
        raise IdentityTooLongError(
            None, "too_long",
            f"Encoded identity exceeds {MAX_IDENTITY_LENGTH} characters.",
        )
    return identity


def unpack(identity: object, schema: ParameterSchema) -> Optional[List[str]]:
    """Split an EncodedIdentity into raw positional strings.

    Returns None whenever the string cannot be read unambiguously.
    """
    if not isinstance(identity, str) or len(identity) > MAX_IDENTITY_LENGTH:
        return None
    parts = identity.split(SEPARATOR)
    if len(parts) != len(schema):
        return None
    if any(p == "" for p in parts):
        return None
    return [
        unescape(p) if spec.free_text else p
        for spec, p in zip(schema.parameters, parts)
    ]
