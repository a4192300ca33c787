import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .data_path import expand_path, get_value
from .errors import ValidationFailure
from .rule_parser import Message, RuleDescriptor, parse_schema
from .rule_registry import RuleImpl, RuleRegistry

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "{rule} validation failed on {field}"

# (field, descriptor, message) for the first failing rule of a field
Failure = Tuple[str, RuleDescriptor, str]
ResolvedSchema = List[Tuple[str, List[Tuple[RuleDescriptor, RuleImpl]]]]


class Mode(Enum):
    STOP_ON_FIRST_ERROR = "stop_on_first_error"
    COLLECT_ALL = "collect_all"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of one validation pass.

    Attributes:
        passed: True when no rule failed
        messages: Read-only mapping of field -> tuple of messages, in
            rule-spec field order
        errors: The formatter's rendering of the failures (None when passed)
        data: The data object that was validated
    """

    passed: bool
    messages: Mapping[str, Tuple[str, ...]] = dataclass_field(
        default_factory=lambda: MappingProxyType({})
    )
    errors: Optional[Any] = None
    data: Optional[Mapping[str, Any]] = None

    def __bool__(self) -> bool:
        return self.passed


def render_message(template: Message, field: str, rule: str, args: Tuple[Any, ...]) -> str:
    """Render a message template (or call a message function) for a failure."""
    if callable(template):
        return str(template(field, rule, args))
    try:
        return template.format(
            field=field, rule=rule, args=args, argument=args[0] if args else ""
        )
    except (KeyError, IndexError, ValueError):
        # Template references an argument the rule was not given.
        return template


class ValidationEngine:
    """Evaluates data against a rule schema using a rule registry"""

    def __init__(
        self,
        registry: RuleRegistry,
        messages: Optional[Mapping[str, str]] = None,
        default_formatter: str = "vanilla",
    ):
        """
        Initialize validation engine.

        Args:
            registry: Rule registry to resolve rule names against
            messages: Default message templates keyed by rule name
            default_formatter: Formatter used when a pass does not name one
        """
        self.registry = registry
        self.messages = dict(messages or {})
        self.default_formatter = default_formatter

    async def validate(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, Any],
        messages: Optional[Mapping[str, Message]] = None,
        formatter: Optional[str] = None,
        mode: Mode = Mode.STOP_ON_FIRST_ERROR,
    ) -> ValidationResult:
        """
        Validate data against rules.

        Args:
            data: Data object to validate; read-only to the engine
            rules: Mapping of field -> rule spec
            messages: Custom messages keyed ``"field.rule"`` or ``"rule"``
            formatter: Registered formatter name for ``result.errors``
            mode: STOP_ON_FIRST_ERROR ends at the first failure;
                COLLECT_ALL reports the first failure of every field

        Returns:
            ValidationResult

        Raises:
            UnknownRule: If a rule or formatter name is not registered
            MalformedRuleSpec: If a rule spec cannot be parsed
        """
        start = time.time()
        schema = self._resolve_schema(parse_schema(rules, messages))
        formatter_cls = self.registry.resolve_formatter(formatter or self.default_formatter)

        targets = [
            (field, steps)
            for pattern, steps in schema
            for field in expand_path(data, pattern)
        ]

        if mode is Mode.STOP_ON_FIRST_ERROR:
            failures: List[Failure] = []
            for field, steps in targets:
                failure = await self._validate_field(data, field, steps)
                if failure is not None:
                    failures.append(failure)
                    break
        else:
            # Fields run concurrently; gather keeps results in target order.
            tasks = [
                asyncio.ensure_future(self._validate_field(data, field, steps))
                for field, steps in targets
            ]
            try:
                outcomes = await asyncio.gather(*tasks)
            except BaseException:
                # An engine error in one field ends the pass for every field.
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
            failures = [f for f in outcomes if f is not None]

        result = self._build_result(data, failures, formatter_cls)
        logger.debug(
            "Validation pass complete",
            extra={
                "mode": mode.value,
                "fields": len(targets),
                "failures": len(failures),
                "execution_time_ms": round((time.time() - start) * 1000, 2),
            },
        )
        return result

    async def validate_all(self, data, rules, messages=None, formatter=None) -> ValidationResult:
        return await self.validate(data, rules, messages, formatter, mode=Mode.COLLECT_ALL)

    def _resolve_schema(self, schema: Dict[str, List[RuleDescriptor]]) -> ResolvedSchema:
        """Look up every rule before any runs, so unknown names fail the whole pass."""
        return [
            (pattern, [(d, self.registry.resolve(d.name)) for d in descriptors])
            for pattern, descriptors in schema.items()
        ]

    async def _validate_field(
        self, data: Mapping[str, Any], field: str, steps: List[Tuple[RuleDescriptor, RuleImpl]]
    ) -> Optional[Failure]:
        """Run a field's rules in order, stopping at its first failure."""
        for descriptor, impl in steps:
            message = self._message_for(field, descriptor)
            try:
                outcome = impl(data, field, message, descriptor.args, get_value)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except ValidationFailure as failure:
                return (field, descriptor, failure.message or message)
            if outcome is False:
                return (field, descriptor, message)
        return None

    def _message_for(self, field: str, descriptor: RuleDescriptor) -> str:
        template = descriptor.message
        if template is None:
            template = self.messages.get(descriptor.name, GENERIC_MESSAGE)
        return render_message(template, field, descriptor.name, descriptor.args)

    def _build_result(
        self, data: Mapping[str, Any], failures: List[Failure], formatter_cls: Callable[[], Any]
    ) -> ValidationResult:
        if not failures:
            return ValidationResult(passed=True, data=data)

        formatter = formatter_cls()
        grouped: Dict[str, List[str]] = {}
        for field, descriptor, message in failures:
            formatter.add_error(message, field, descriptor.name, descriptor.args)
            grouped.setdefault(field, []).append(message)

        return ValidationResult(
            passed=False,
            messages=MappingProxyType({f: tuple(m) for f, m in grouped.items()}),
            errors=formatter.to_json(),
            data=data,
        )
