"""
Rejections raised while validating a ParameterSet.

Messages name the parameter and the rule that failed, never the
submitted value.
"""

from typing import Optional


class InvalidParameterError(ValueError):
    """Parameter set cannot be encoded unambiguously (missing, unknown,
    duplicated, empty or separator-bearing values)."""

    def __init__(self, parameter: Optional[str], reason: str, message: str):
        super().__init__(message)
        self.parameter = parameter
        self.reason = reason


class IdentityTooLongError(InvalidParameterError):
    """Joined identity exceeds MAX_IDENTITY_LENGTH."""


class ParameterNotAllowedError(ValueError):
    """Value is well-formed but fails the parameter's type or allow-list."""

    def __init__(self, parameter: str, reason: str, message: str):
        super().__init__(message)
        self.parameter = parameter
        self.reason = reason


class SchemaError(ValueError):
    """Report parameter declaration is inconsistent."""
