import copy
import logging
from typing import Any, Dict, Mapping

from .data_path import MISSING, expand_path, get_value, set_value
from .errors import SanitizationError
from .rule_parser import parse
from .rule_registry import RuleRegistry

logger = logging.getLogger(__name__)


class SanitizationEngine:
    """Applies sanitizers to a copy of the data, leaving the input untouched"""

    def __init__(self, registry: RuleRegistry):
        self.registry = registry

    def sanitize(self, data: Mapping[str, Any], rules: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Sanitize data according to per-field sanitizer specs.

        Args:
            data: Input data; never mutated
            rules: Mapping of field (dotted, may contain ``*``) to sanitizer
                spec, e.g. ``{"email": "trim|normalize_email"}``

        Returns:
            A new data object with sanitized values. Fields without rules and
            fields absent from the data are carried over unchanged.

        Raises:
            UnknownRule: If a sanitizer name is not registered
            SanitizationError: If a sanitizer raises
        """
        # Resolve everything first so a typo fails before any work is done.
        plan = []
        for pattern, spec in rules.items():
            steps = []
            for descriptor in parse(spec):
                steps.append((descriptor, self.registry.resolve_sanitizer(descriptor.name)))
            plan.append((pattern, steps))

        sanitized = copy.deepcopy(dict(data))
        for pattern, steps in plan:
            for field in expand_path(sanitized, pattern):
                value = get_value(sanitized, field)
                if value is MISSING:
                    continue
                descriptor = None
                try:
                    for descriptor, impl in steps:
                        value = impl(value, descriptor.args)
                    set_value(sanitized, field, value)
                except Exception as e:
                    raise SanitizationError(field, descriptor.name if descriptor else "", e) from e

        logger.debug(
            "Sanitization pass complete",
            extra={"fields": [pattern for pattern, _ in plan]},
        )
        return sanitized
