"""
Validator Binding - runs a route validator against a host request context.

A route validator couples rules, sanitization rules, messages and a
formatter with optional hooks. For each request the binding runs:

1. ``authorize(ctx)`` - a falsy return (or raising ``Unauthorized``) stops
   the pipeline before any input is read
2. data resolution - ``ctx.all()`` merged with ``data(ctx)`` (override wins)
3. sanitization, after which the host input is replaced with the result
4. validation (collect-all when ``validate_all`` is set)
5. on failure ``fails(ctx, errors)`` decides the response; without it the
   errors are returned as structured data to callers that accept it, and
   flashed with a redirect back for everyone else
6. on success the host's next handler is awaited

Example::

    class StoreUser(ValidatorDefinition):
        rules = {"email": "required|email|unique:users,email", "password": "required"}
        sanitization_rules = {"email": "trim|normalize_email"}
        validate_all = True

        def authorize(self, ctx):
            return ctx.header("x-api-key") == "secret"

    outcome = await binding.handle(StoreUser(), ctx, next_handler=store_user_action)
"""

import copy
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Union

from .data_path import delete_value, expand_path
from .errors import ConfigError, Unauthorized
from .sanitization_engine import SanitizationEngine
from .validation_engine import Mode, ValidationEngine

logger = logging.getLogger(__name__)

DEFAULT_FLASH_EXCEPT = ["password", "password_confirmation"]


class RequestContext(ABC):
    """What the binding needs from the host framework's request context."""

    @abstractmethod
    def all(self) -> Dict[str, Any]:
        """Every submitted input field as a mapping."""

    @abstractmethod
    def header(self, name: str, default: Any = None) -> Any:
        """A single request header."""

    @abstractmethod
    def params(self) -> Dict[str, Any]:
        """Route/path parameters."""

    @abstractmethod
    def accepts_structured(self) -> bool:
        """True when the caller wants machine-readable errors (e.g. Accept: application/json)."""

    @abstractmethod
    def flash_errors(self, errors: Any, input_data: Dict[str, Any]) -> None:
        """Persist errors and the (filtered) input for the next request."""

    @abstractmethod
    def redirect_back(self) -> Any:
        """Issue a redirect to the originating location."""

    def replace_input(self, data: Dict[str, Any]) -> None:
        """Swap the request input for its sanitized version. No-op by default."""


class ValidatorDefinition:
    """
    Declarative route validator.

    Subclass and set the class attributes, or pass them as keyword
    arguments. ``fails`` and ``data`` are optional hooks: leave them as None
    to get the default behavior. Hooks may be plain or async callables.
    """

    rules: Mapping[str, Any] = MappingProxyType({})
    sanitization_rules: Mapping[str, Any] = MappingProxyType({})
    messages: Mapping[str, Any] = MappingProxyType({})
    formatter: Optional[str] = None
    validate_all: bool = False
    flash_except: Sequence[str] = ()

    fails: Optional[Callable[..., Any]] = None
    data: Optional[Callable[..., Any]] = None

    def __init__(self, name: Optional[str] = None, **attributes: Any):
        self.name = name or type(self).__name__
        for key, value in attributes.items():
            if key not in (
                "rules", "sanitization_rules", "messages", "formatter",
                "validate_all", "flash_except", "authorize", "fails", "data",
            ):
                raise TypeError(f"Unknown validator attribute: {key!r}")
            setattr(self, key, value)
        # Read-only per-instance copies of the rule and message mappings.
        for key in ("rules", "sanitization_rules", "messages"):
            setattr(self, key, MappingProxyType(dict(getattr(self, key))))
        self.flash_except = tuple(self.flash_except)

    def authorize(self, ctx: RequestContext) -> Union[bool, Awaitable[bool]]:
        return True

    def __repr__(self) -> str:
        return f"<ValidatorDefinition {self.name}>"


class Outcome(Enum):
    PASSED = "passed"
    UNAUTHORIZED = "unauthorized"
    FAILED = "failed"


@dataclass
class BindingOutcome:
    """
    Result of running a validator against a request.

    Attributes:
        status: PASSED, UNAUTHORIZED or FAILED
        errors: Formatted validation errors (FAILED only)
        body: Structured response body for the host to send, if any
        status_code: HTTP status the host should use with ``body``
        data: Sanitized data the action should use (PASSED only)
        response: Whatever the next handler, ``fails`` hook or redirect returned
    """

    status: Outcome
    errors: Optional[Any] = None
    body: Optional[Any] = None
    status_code: Optional[int] = None
    data: Optional[Dict[str, Any]] = None
    response: Optional[Any] = None

    @property
    def passed(self) -> bool:
        return self.status is Outcome.PASSED


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ValidatorBinding:
    """Runs validator definitions against request contexts"""

    def __init__(
        self,
        engine: ValidationEngine,
        sanitizer: SanitizationEngine,
        config_loader=None,
        definitions: Optional[Mapping[str, ValidatorDefinition]] = None,
    ):
        """
        Initialize binding.

        Args:
            engine: Validation engine
            sanitizer: Sanitization engine
            config_loader: ConfigLoader for status codes and flash_except
                (built-in defaults are used when omitted)
            definitions: Named definitions ``handle`` can look up by name
        """
        self.engine = engine
        self.sanitizer = sanitizer
        self.definitions = dict(definitions or {})
        if config_loader is not None:
            self.flash_except = config_loader.get_flash_except()
            self.failure_status_code = config_loader.get_failure_status_code()
            self.unauthorized_status_code = config_loader.get_unauthorized_status_code()
        else:
            self.flash_except = list(DEFAULT_FLASH_EXCEPT)
            self.failure_status_code = 400
            self.unauthorized_status_code = 401

    def register(self, definition: ValidatorDefinition) -> None:
        """Make a definition available to ``handle`` under its name."""
        self.definitions[definition.name] = definition

    def get_definition(self, name: str) -> ValidatorDefinition:
        try:
            return self.definitions[name]
        except KeyError:
            raise ConfigError(f"Unknown validator: {name!r}") from None

    async def handle(
        self,
        definition: Union[ValidatorDefinition, str],
        ctx: RequestContext,
        next_handler: Optional[Callable[[RequestContext], Any]] = None,
    ) -> BindingOutcome:
        """
        Run one validator against one request.

        Args:
            definition: Definition instance, or the name of a registered one
            ctx: Host request context
            next_handler: Called with ``ctx`` when validation passes

        Returns:
            BindingOutcome

        Raises:
            UnknownRule, MalformedRuleSpec, SanitizationError: Misconfigured
                validators; these are developer errors and are not converted
                into user-facing messages
        """
        if isinstance(definition, str):
            definition = self.get_definition(definition)

        denied = await self._authorize(definition, ctx)
        if denied is not None:
            logger.info("Validator authorization declined", extra={"validator": definition.name})
            return BindingOutcome(
                status=Outcome.UNAUTHORIZED,
                body={"message": denied},
                status_code=self.unauthorized_status_code,
            )

        data = await self._resolve_data(definition, ctx)

        if definition.sanitization_rules:
            data = self.sanitizer.sanitize(data, definition.sanitization_rules)
            ctx.replace_input(data)

        mode = Mode.COLLECT_ALL if definition.validate_all else Mode.STOP_ON_FIRST_ERROR
        result = await self.engine.validate(
            data, definition.rules, definition.messages, definition.formatter, mode=mode
        )

        if not result.passed:
            logger.debug(
                "Validator failed",
                extra={"validator": definition.name, "fields": list(result.messages)},
            )
            return await self._handle_failure(definition, ctx, data, result.errors)

        response = None
        if next_handler is not None:
            response = await _maybe_await(next_handler(ctx))
        return BindingOutcome(status=Outcome.PASSED, data=data, response=response)

    async def _authorize(self, definition: ValidatorDefinition, ctx: RequestContext) -> Optional[str]:
        """Return None when authorized, else the denial message."""
        try:
            allowed = await _maybe_await(definition.authorize(ctx))
        except Unauthorized as e:
            return e.message
        return None if allowed else "Unauthorized"

    async def _resolve_data(self, definition: ValidatorDefinition, ctx: RequestContext) -> Dict[str, Any]:
        data = dict(ctx.all() or {})
        if definition.data is not None:
            override = await _maybe_await(definition.data(ctx))
            data.update(override or {})
        return data

    async def _handle_failure(
        self, definition: ValidatorDefinition, ctx: RequestContext, data: Dict[str, Any], errors: Any
    ) -> BindingOutcome:
        if definition.fails is not None:
            response = await _maybe_await(definition.fails(ctx, errors))
            return BindingOutcome(status=Outcome.FAILED, errors=errors, response=response)

        if ctx.accepts_structured():
            return BindingOutcome(
                status=Outcome.FAILED,
                errors=errors,
                body=errors,
                status_code=self.failure_status_code,
            )

        ctx.flash_errors(errors, self._flashable_input(definition, data))
        response = await _maybe_await(ctx.redirect_back())
        return BindingOutcome(status=Outcome.FAILED, errors=errors, response=response)

    def _flashable_input(self, definition: ValidatorDefinition, data: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of ``data`` without the ``flash_except`` paths (dotted, ``*`` allowed)."""
        flashable = copy.deepcopy(data)
        for pattern in (*self.flash_except, *definition.flash_except):
            # Highest indices first; deleting from a list shifts the ones after it.
            for path in reversed(expand_path(flashable, pattern)):
                delete_value(flashable, path)
        return flashable
