"""
Error formatters - shape the error payload returned to callers.

A formatter collects errors one at a time through ``add_error`` and renders
them with ``to_json``. Formatter classes are registered by name in the rule
registry; a fresh instance is created for every validation pass.
"""

from typing import Any, Dict, List, Optional, Tuple


class Formatter:
    """Base formatter contract."""

    def add_error(self, message: str, field: str, rule: str, args: Tuple[Any, ...]) -> None:
        raise NotImplementedError

    def to_json(self) -> Optional[Any]:
        """Return the formatted errors, or None when nothing was added."""
        raise NotImplementedError


class VanillaFormatter(Formatter):
    """``[{"message": ..., "field": ..., "validation": ...}, ...]``"""

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    def add_error(self, message, field, rule, args):
        self.errors.append({"message": message, "field": field, "validation": rule})

    def to_json(self):
        return self.errors if self.errors else None


class JsonApiFormatter(Formatter):
    """Errors as a JSON:API error document."""

    def __init__(self):
        self.errors: List[Dict[str, Any]] = []

    def add_error(self, message, field, rule, args):
        self.errors.append(
            {
                "title": rule,
                "detail": message,
                "source": {"pointer": "/" + field.replace(".", "/")},
            }
        )

    def to_json(self):
        return {"errors": self.errors} if self.errors else None


class GroupedFormatter(Formatter):
    """``{field: [message, ...]}`` in the order fields failed."""

    def __init__(self):
        self.errors: Dict[str, List[str]] = {}

    def add_error(self, message, field, rule, args):
        self.errors.setdefault(field, []).append(message)

    def to_json(self):
        return self.errors if self.errors else None


BUILTIN_FORMATTERS = {
    "vanilla": VanillaFormatter,
    "jsonapi": JsonApiFormatter,
    "grouped": GroupedFormatter,
}
