"""Exception types raised by request-validation-lib."""

from typing import Any, Optional


class ValidationLibError(Exception):
    """Base class for every error raised by the library."""


class UnknownRule(ValidationLibError):
    """A rule name did not resolve in the registry."""

    def __init__(self, name: str, kind: str = "validation"):
        self.name = name
        self.kind = kind
        super().__init__(f"Unknown {kind} rule: {name!r}")


class UnknownFormatter(UnknownRule):
    """A formatter name did not resolve in the registry."""

    def __init__(self, name: str):
        super().__init__(name, kind="formatter")


class MalformedRuleSpec(ValidationLibError, ValueError):
    """A rule spec could not be tokenized."""

    def __init__(self, message: str, spec: Any = None):
        self.spec = spec
        super().__init__(message)


class ValidationFailure(ValidationLibError):
    """
    Raised by a rule implementation to signal that a field failed.

    This is the only exception the validation engine treats as recoverable:
    it is recorded against the field and never reaches the caller.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Unauthorized(ValidationLibError):
    """Raised by an ``authorize`` hook to decline the request."""

    def __init__(self, message: str = "Unauthorized"):
        self.message = message
        super().__init__(message)


class SanitizationError(ValidationLibError):
    """A sanitizer raised while transforming a field."""

    def __init__(self, field: str, sanitizer: str, cause: Optional[BaseException] = None):
        self.field = field
        self.sanitizer = sanitizer
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Sanitizer {sanitizer!r} failed on field {field!r}{detail}")


class ConfigError(ValidationLibError):
    """Configuration or validator definition document is invalid."""


class StoreError(ValidationLibError):
    """The record store collaborator could not answer a lookup."""
