"""
Rule Parser - turns rule-spec strings into ordered rule descriptors.

Grammar::

    "ruleName[:arg1,arg2,...]|ruleName[:...]|..."

Example::

    parse("required|email|unique:users,email")
    # [RuleDescriptor("required"), RuleDescriptor("email"),
    #  RuleDescriptor("unique", ("users", "email"))]

Arguments stay raw strings; rule implementations coerce them. When an
argument itself contains ``,`` or ``|`` (regex patterns), build the
descriptor with ``rule("regex", pattern)`` instead.
"""

from dataclasses import dataclass, field as dataclass_field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import MalformedRuleSpec

RULE_SEPARATOR = "|"
ARGS_SEPARATOR = ":"
ARG_SEPARATOR = ","

# A custom message is either a str.format template or a callable
# (field, rule, args) -> str.
Message = Union[str, Callable[[str, str, Tuple[Any, ...]], str]]


@dataclass(frozen=True)
class RuleDescriptor:
    """One rule invocation: name, positional args, optional custom message."""

    name: str
    args: Tuple[Any, ...] = dataclass_field(default_factory=tuple)
    message: Optional[Message] = None


def rule(name: str, *args: Any) -> RuleDescriptor:
    """Build a descriptor with arguments that are not split on separators."""
    if not isinstance(name, str) or not name.strip():
        raise MalformedRuleSpec("Rule name must be a non-empty string", name)
    return RuleDescriptor(name.strip(), tuple(args))


def _parse_token(token: str, spec: Any) -> RuleDescriptor:
    name, sep, raw_args = token.partition(ARGS_SEPARATOR)
    name = name.strip()
    if not name:
        raise MalformedRuleSpec(f"Empty rule name in token {token!r}", spec)
    args: Tuple[str, ...] = ()
    if sep:
        args = tuple(a.strip() for a in raw_args.split(ARG_SEPARATOR))
    return RuleDescriptor(name, args)


def parse(rule_spec: Union[str, List[Any], Tuple[Any, ...]]) -> List[RuleDescriptor]:
    """
    Parse a rule spec into an ordered list of descriptors.

    Args:
        rule_spec: Pipe-separated string, or a list mixing token strings and
            descriptors built with ``rule()``

    Returns:
        Descriptors in declaration order

    Raises:
        MalformedRuleSpec: If a token has no name or the spec has the wrong type
    """
    if isinstance(rule_spec, str):
        tokens = [t for t in rule_spec.split(RULE_SEPARATOR) if t.strip()]
        return [_parse_token(t.strip(), rule_spec) for t in tokens]

    if isinstance(rule_spec, (list, tuple)):
        descriptors = []
        for item in rule_spec:
            if isinstance(item, RuleDescriptor):
                descriptors.append(item)
            elif isinstance(item, str):
                descriptors.extend(parse(item))
            else:
                raise MalformedRuleSpec(
                    f"Unsupported rule item {item!r} of type {type(item).__name__}",
                    rule_spec,
                )
        return descriptors

    raise MalformedRuleSpec(
        f"Rule spec must be a string or list, got {type(rule_spec).__name__}",
        rule_spec,
    )


def lookup_message(
    messages: Optional[Mapping[str, Message]], field: str, rule_name: str
) -> Optional[Message]:
    """Find a custom message for ``field.rule``, falling back to ``rule``."""
    if not messages:
        return None
    for key in (f"{field}.{rule_name}", rule_name):
        if key in messages:
            return messages[key]
    return None


def parse_schema(
    rules: Mapping[str, Any], messages: Optional[Mapping[str, Message]] = None
) -> Dict[str, List[RuleDescriptor]]:
    """
    Parse a field -> rule spec mapping, attaching custom messages.

    Field order of the input mapping is preserved.
    """
    if not isinstance(rules, Mapping):
        raise MalformedRuleSpec(
            f"Rules must be a mapping of field to rule spec, got {type(rules).__name__}",
            rules,
        )
    schema = {}
    for field_name, spec in rules.items():
        descriptors = []
        for descriptor in parse(spec):
            message = lookup_message(messages, field_name, descriptor.name)
            if message is not None:
                descriptor = replace(descriptor, message=message)
            descriptors.append(descriptor)
        schema[field_name] = descriptors
    return schema
