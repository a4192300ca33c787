"""
Definition Loader - named validator definitions from YAML.

Document format::

    validators:
      StoreUser:
        rules:
          email: "required|email|unique:users,email"
          password: "required|min:8"
        sanitize:
          email: "trim|normalize_email"
        messages:
          email.required: "Email is required"
        formatter: jsonapi
        validate_all: true
        flash_except: [secret_answer]

Hooks (``authorize``, ``fails``, ``data``) cannot be declared in YAML;
attach them in code to the loaded definitions if needed.
"""

import logging
from typing import Any, Dict, Optional

from .config_loader import check_schema, load_yaml_document
from .validator_binding import ValidatorDefinition

logger = logging.getLogger(__name__)

_RULE_SPEC = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}},
    ]
}

DEFINITIONS_SCHEMA = {
    "type": "object",
    "required": ["validators"],
    "properties": {
        "validators": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["rules"],
                "properties": {
                    "rules": {"type": "object", "additionalProperties": _RULE_SPEC},
                    "sanitize": {"type": "object", "additionalProperties": _RULE_SPEC},
                    "messages": {"type": "object", "additionalProperties": {"type": "string"}},
                    "formatter": {"type": "string", "minLength": 1},
                    "validate_all": {"type": "boolean"},
                    "flash_except": {"type": "array", "items": {"type": "string"}},
                },
                "additionalProperties": False,
            },
        }
    },
}


def build_definitions(document: Dict[str, Any], source: str = "<document>") -> Dict[str, ValidatorDefinition]:
    """
    Build definitions from an already-parsed document.

    Raises:
        ConfigError: If the document does not match DEFINITIONS_SCHEMA
    """
    check_schema(document, DEFINITIONS_SCHEMA, source)

    definitions = {}
    for name, spec in document["validators"].items():
        definitions[name] = ValidatorDefinition(
            name=name,
            rules=spec["rules"],
            sanitization_rules=spec.get("sanitize", {}),
            messages=spec.get("messages", {}),
            formatter=spec.get("formatter"),
            validate_all=spec.get("validate_all", False),
            flash_except=spec.get("flash_except", []),
        )
    return definitions


def load_definitions(uri: str, base_dir: Optional[str] = None) -> Dict[str, ValidatorDefinition]:
    """
    Load validator definitions from a path, file:// or http(s):// URI.

    Returns:
        Dict mapping validator name to ValidatorDefinition

    Raises:
        ConfigError: If the document cannot be read or is invalid
    """
    definitions = build_definitions(load_yaml_document(uri, base_dir), uri)
    logger.info(
        "Loaded validator definitions",
        extra={"source": uri, "validators": sorted(definitions)},
    )
    return definitions
