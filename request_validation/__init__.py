"""
request-validation-lib: Rule-based request validation and sanitization

This library provides:
- Rule specs such as ``"required|email|unique:users,email"``
- Stop-on-first-error and collect-all validation modes
- Sanitization into a new data object
- Custom rules, sanitizers and error formatters
- Route validators with authorize/fails/data hooks

Example:
    from request_validation import ValidationService

    service = ValidationService()
    result = await service.validate(request_data, {"email": "required|email"})
"""

from .api import ValidationService
from .data_path import MISSING
from .errors import (
    ConfigError,
    MalformedRuleSpec,
    SanitizationError,
    StoreError,
    Unauthorized,
    UnknownFormatter,
    UnknownRule,
    ValidationFailure,
    ValidationLibError,
)
from .rule_parser import RuleDescriptor, parse, rule
from .rule_registry import RuleRegistry
from .store import HttpRecordStore, RecordStore
from .validation_engine import Mode, ValidationResult
from .validator_binding import (
    BindingOutcome,
    Outcome,
    RequestContext,
    ValidatorBinding,
    ValidatorDefinition,
)

__version__ = "0.1.0"
__all__ = [
    "ValidationService",
    "MISSING",
    "ConfigError",
    "MalformedRuleSpec",
    "SanitizationError",
    "StoreError",
    "Unauthorized",
    "UnknownFormatter",
    "UnknownRule",
    "ValidationFailure",
    "ValidationLibError",
    "RuleDescriptor",
    "parse",
    "rule",
    "RuleRegistry",
    "HttpRecordStore",
    "RecordStore",
    "Mode",
    "ValidationResult",
    "BindingOutcome",
    "Outcome",
    "RequestContext",
    "ValidatorBinding",
    "ValidatorDefinition",
]
