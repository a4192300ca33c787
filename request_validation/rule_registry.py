"""
Rule Registry - name-keyed store of validations, sanitizers and formatters.

The registry is built once at startup and handed explicitly to the
validation and sanitization engines. Registration is additive and the last
registration for a name wins; an overwrite is logged as a warning so that
accidental shadowing of a built-in shows up in the logs.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import UnknownFormatter, UnknownRule

logger = logging.getLogger(__name__)

RuleImpl = Callable[..., Any]
SanitizerImpl = Callable[[Any, tuple], Any]


class RuleRegistry:
    """Holds the three independent rule namespaces."""

    def __init__(self):
        self._validations: Dict[str, RuleImpl] = {}
        self._sanitizations: Dict[str, SanitizerImpl] = {}
        self._formatters: Dict[str, type] = {}

    @classmethod
    def with_defaults(cls) -> "RuleRegistry":
        """Create a registry populated with the built-in rules and formatters."""
        from . import formatters, sanitizations, validations

        registry = cls()
        for name, impl in validations.BUILTIN_VALIDATIONS.items():
            registry.extend(name, impl)
        for name, impl in sanitizations.BUILTIN_SANITIZERS.items():
            registry.extend_sanitizer(name, impl)
        for name, formatter_cls in formatters.BUILTIN_FORMATTERS.items():
            registry.extend_formatter(name, formatter_cls)
        return registry

    @staticmethod
    def _register(namespace: Dict[str, Any], kind: str, name: str, impl: Any) -> Optional[Any]:
        if not isinstance(name, str) or not name:
            raise ValueError(f"{kind} name must be a non-empty string")
        if not callable(impl):
            raise TypeError(f"{kind} {name!r} must be callable, got {type(impl).__name__}")
        previous = namespace.get(name)
        if previous is not None and previous is not impl:
            logger.warning(
                f"Overwriting {kind} rule {name!r}",
                extra={"rule": name, "kind": kind},
            )
        namespace[name] = impl
        return previous

    def extend(self, name: str, impl: RuleImpl) -> Optional[RuleImpl]:
        """
        Register a validation rule.

        Args:
            name: Name used in rule specs
            impl: ``impl(data, field, message, args, get)``; sync or async.
                Raise ``ValidationFailure`` (or return ``False``) to fail.

        Returns:
            The implementation previously registered under ``name``, if any
        """
        return self._register(self._validations, "validation", name, impl)

    def extend_sanitizer(self, name: str, impl: SanitizerImpl) -> Optional[SanitizerImpl]:
        """Register a sanitizer ``impl(value, args) -> new_value``."""
        return self._register(self._sanitizations, "sanitization", name, impl)

    def extend_formatter(self, name: str, formatter_cls: type) -> Optional[type]:
        """Register a formatter class (see ``formatters.Formatter``)."""
        return self._register(self._formatters, "formatter", name, formatter_cls)

    def resolve(self, name: str) -> RuleImpl:
        try:
            return self._validations[name]
        except KeyError:
            raise UnknownRule(name, "validation") from None

    def resolve_sanitizer(self, name: str) -> SanitizerImpl:
        try:
            return self._sanitizations[name]
        except KeyError:
            raise UnknownRule(name, "sanitization") from None

    def resolve_formatter(self, name: str) -> type:
        try:
            return self._formatters[name]
        except KeyError:
            raise UnknownFormatter(name) from None

    @property
    def validations(self) -> Mapping[str, RuleImpl]:
        return MappingProxyType(self._validations)

    @property
    def sanitizations(self) -> Mapping[str, SanitizerImpl]:
        return MappingProxyType(self._sanitizations)

    @property
    def formatters(self) -> Mapping[str, type]:
        return MappingProxyType(self._formatters)
