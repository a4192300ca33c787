"""Configuration loading: bundled defaults plus an optional override document."""

import copy
import logging
import os
import urllib.parse
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import requests
import yaml
from jsonschema import Draft7Validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "REQUEST_VALIDATION_CONFIG"
BUNDLED_CONFIG = "validation-config.yaml"
FETCH_TIMEOUT_SECONDS = 10

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "default_formatter": {"type": "string", "minLength": 1},
        "failure_status_code": {"type": "integer", "minimum": 100, "maximum": 599},
        "unauthorized_status_code": {"type": "integer", "minimum": 100, "maximum": 599},
        "flash_except": {"type": "array", "items": {"type": "string"}},
        "store": {
            "type": "object",
            "properties": {
                "base_url": {"type": ["string", "null"]},
                "timeout_ms": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": False,
        },
        "messages": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
    },
    "additionalProperties": False,
}


def fetch_text(uri: str, base_dir: Optional[str] = None) -> str:
    """
    Read a text document from a path or URI.

    Supports:
    - Plain paths (relative paths resolve against ``base_dir`` or the cwd)
    - file:// - Local filesystem
    - http:// and https:// - Remote, fetched with requests

    Raises:
        ConfigError: If the document cannot be read
    """
    parsed = urllib.parse.urlparse(uri)

    if parsed.scheme in ("http", "https"):
        try:
            response = requests.get(uri, timeout=FETCH_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ConfigError(f"Failed to fetch {uri}: {e}") from e
        return response.text

    if parsed.scheme == "file":
        path = Path(urllib.parse.unquote(parsed.path))
    elif not parsed.scheme or len(parsed.scheme) == 1:
        # No scheme, or a Windows drive letter
        path = Path(uri)
        if not path.is_absolute() and base_dir:
            path = Path(base_dir) / path
    else:
        raise ConfigError(f"Unsupported URI scheme: {parsed.scheme} in {uri}")

    try:
        return path.read_text()
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e


def load_yaml_document(uri: str, base_dir: Optional[str] = None) -> Dict[str, Any]:
    """Fetch and parse a YAML mapping from a path or URI."""
    try:
        document = yaml.safe_load(fetch_text(uri, base_dir))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {uri}: {e}") from e
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"{uri} must contain a mapping, got {type(document).__name__}")
    return document


def check_schema(document: Mapping[str, Any], schema: Mapping[str, Any], source: str) -> None:
    """Raise ConfigError listing every jsonschema violation in ``document``."""
    errors = sorted(Draft7Validator(schema).iter_errors(document), key=lambda e: list(e.path))
    if errors:
        details = "; ".join(
            f"{'/'.join(str(p) for p in e.path) or '<root>'}: {e.message}" for e in errors
        )
        raise ConfigError(f"Invalid configuration in {source}: {details}")


class ConfigLoader:
    """Handles bundled defaults + optional override configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Load bundled validation-config.yaml and merge an override over it.

        Args:
            config_path: Path or URI of an override document. Defaults to the
                REQUEST_VALIDATION_CONFIG environment variable, if set.

        Raises:
            ConfigError: If a document cannot be read or fails the schema
        """
        config_file = files("request_validation").joinpath(BUNDLED_CONFIG)
        with config_file.open("r") as f:
            self.config = yaml.safe_load(f)

        self.config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        if self.config_path:
            override = load_yaml_document(self.config_path)
            check_schema(override, CONFIG_SCHEMA, self.config_path)
            self.config = self._merge(self.config, override)
            logger.info("Loaded validation config override", extra={"source": self.config_path})

        check_schema(self.config, CONFIG_SCHEMA, self.config_path or BUNDLED_CONFIG)

    @staticmethod
    def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if key in ("messages", "store") and isinstance(value, dict):
                merged.setdefault(key, {}).update(value)
            else:
                merged[key] = value
        return merged

    def get_config(self) -> Dict[str, Any]:
        return self.config

    def get_messages(self) -> Dict[str, str]:
        """Default message templates keyed by rule name."""
        return dict(self.config.get("messages", {}))

    def get_default_formatter(self) -> str:
        return self.config.get("default_formatter", "vanilla")

    def get_flash_except(self) -> List[str]:
        return list(self.config.get("flash_except", []))

    def get_failure_status_code(self) -> int:
        return self.config.get("failure_status_code", 400)

    def get_unauthorized_status_code(self) -> int:
        return self.config.get("unauthorized_status_code", 401)

    def get_store_config(self) -> Dict[str, Any]:
        return dict(self.config.get("store", {}))
