"""
Public API for request-validation-lib

This is the "front door" - the main entry point for validation, sanitization
and rule registration.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from .config_loader import ConfigLoader
from .definition_loader import load_definitions
from .rule_registry import RuleRegistry
from .sanitization_engine import SanitizationEngine
from .store import HttpRecordStore, RecordStore, exists_rule, unique_rule
from .validation_engine import ValidationEngine, ValidationResult
from .validator_binding import ValidatorBinding, ValidatorDefinition

logger = logging.getLogger(__name__)


class ValidationService:
    """
    Main validation service class.

    Wires a rule registry, the validation and sanitization engines and the
    loaded configuration together. Build one at startup and share it; the
    registry is the only shared state and should be extended before requests
    are served.

    Example:
        from request_validation import ValidationService

        service = ValidationService()
        result = await service.validate_all(
            {"email": "not-an-email", "password": ""},
            {"email": "required|email", "password": "required"},
        )
        if not result:
            print(dict(result.messages))
            # {'email': ('email is not a valid email',),
            #  'password': ('password is required',)}
    """

    def __init__(
        self,
        registry: Optional[RuleRegistry] = None,
        config_loader: Optional[ConfigLoader] = None,
    ):
        """
        Initialize validation service.

        Args:
            registry: Rule registry; defaults to one with the built-in rules
            config_loader: Configuration; defaults to the bundled config
                (plus REQUEST_VALIDATION_CONFIG when set)

        Raises:
            ConfigError: If configuration cannot be loaded
        """
        self.config_loader = config_loader or ConfigLoader()
        self.registry = registry or RuleRegistry.with_defaults()

        self.engine = ValidationEngine(
            self.registry,
            messages=self.config_loader.get_messages(),
            default_formatter=self.config_loader.get_default_formatter(),
        )
        self.sanitizer = SanitizationEngine(self.registry)

        # Configured store is optional; callers can also use_store() their own.
        store_config = self.config_loader.get_store_config()
        if store_config.get("base_url"):
            self.use_store(
                HttpRecordStore(store_config["base_url"], store_config.get("timeout_ms", 5000))
            )

    async def validate(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, Any]] = None,
        formatter: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate data, stopping at the first failure.

        Args:
            data: Data object (e.g. request input)
            rules: Mapping of field -> rule spec, e.g. ``{"email": "required|email"}``
            messages: Custom messages keyed ``"field.rule"`` or ``"rule"``
            formatter: Formatter name for ``result.errors``

        Returns:
            ValidationResult with at most one error

        Raises:
            UnknownRule: If a rule spec names an unregistered rule
            MalformedRuleSpec: If a rule spec cannot be parsed
        """
        return await self.engine.validate(data, rules, messages, formatter)

    async def validate_all(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, Any]] = None,
        formatter: Optional[str] = None,
    ) -> ValidationResult:
        """Validate data, reporting the first failure of every failing field."""
        return await self.engine.validate_all(data, rules, messages, formatter)

    def sanitize(self, data: Mapping[str, Any], rules: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a sanitized copy of ``data``; the input is not modified."""
        return self.sanitizer.sanitize(data, rules)

    def extend(self, name, impl):
        """
        Register a custom validation rule.

        The rule is available to every later validation, no restart needed.
        Registering an existing name replaces it (a warning is logged).

        Example:
            def even(data, field, message, args, get):
                value = get(data, field)
                if value is not MISSING and int(value) % 2:
                    raise ValidationFailure(message)

            service.extend("even", even)
        """
        return self.registry.extend(name, impl)

    def extend_sanitizer(self, name, impl):
        return self.registry.extend_sanitizer(name, impl)

    def extend_formatter(self, name, formatter_cls):
        return self.registry.extend_formatter(name, formatter_cls)

    def use_store(self, store: RecordStore) -> None:
        """Register the ``unique`` and ``exists`` rules against ``store``."""
        self.registry.extend("unique", unique_rule(store))
        self.registry.extend("exists", exists_rule(store))
        logger.info("Record store rules registered", extra={"store": type(store).__name__})

    @property
    def validations(self):
        return self.registry.validations

    @property
    def sanitizations(self):
        return self.registry.sanitizations

    @property
    def formatters(self):
        return self.registry.formatters

    def discover_rules(self) -> Dict[str, list]:
        """Names of every registered validation, sanitizer and formatter."""
        return {
            "validations": sorted(self.validations),
            "sanitizations": sorted(self.sanitizations),
            "formatters": sorted(self.formatters),
        }

    def load_definitions(self, uri: str) -> Dict[str, ValidatorDefinition]:
        """Load named validator definitions from a YAML path or URI."""
        return load_definitions(uri)

    def binding(self, definitions: Optional[Mapping[str, ValidatorDefinition]] = None) -> ValidatorBinding:
        """Create a ValidatorBinding that uses this service's engines and config."""
        return ValidatorBinding(
            self.engine, self.sanitizer, self.config_loader, definitions=definitions
        )
