"""
Record store collaborator for database-backed rules.

The validation engine itself never talks to a store. ``unique`` and
``exists`` are ordinary async rules built around a ``RecordStore``:

    unique:users,email              -> fails if a users row has this email
    unique:users,email,id,42        -> same, ignoring the row where id = 42
    exists:countries,code           -> fails if no countries row has this code

When the column argument is omitted the field name is used.

HttpRecordStore answers lookups over a JSON endpoint:

    GET {base_url}/exists?table=users&column=email&value=a@b.com
    -> {"exists": true}
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

import requests

from .data_path import MISSING
from .errors import StoreError, ValidationFailure

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Lookup interface required by the unique/exists rules."""

    @abstractmethod
    async def exists(
        self, table: str, column: str, value: Any, ignore: Optional[Tuple[str, Any]] = None
    ) -> bool:
        """
        Return True when a row in ``table`` has ``column == value``.

        Args:
            ignore: Optional (column, value) pair; a row matching it is not counted
        """


class HttpRecordStore(RecordStore):
    """RecordStore backed by an HTTP lookup endpoint."""

    def __init__(self, base_url: str, timeout_ms: int = 5000):
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        logger.info(
            "HTTP record store initialized",
            extra={"base_url": self.base_url, "timeout_ms": self.timeout_ms},
        )

    async def exists(self, table, column, value, ignore=None) -> bool:
        # requests blocks; keep it off the event loop so other fields proceed.
        return await asyncio.to_thread(self._lookup, table, column, value, ignore)

    def _lookup(self, table, column, value, ignore) -> bool:
        params = {"table": table, "column": column, "value": value}
        if ignore is not None:
            params["ignore_column"], params["ignore_value"] = ignore

        try:
            response = requests.get(
                f"{self.base_url}/exists", params=params, timeout=self.timeout_ms / 1000.0
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            logger.error("Record store timeout", extra={"timeout_ms": self.timeout_ms})
            raise StoreError(f"Record store lookup timed out after {self.timeout_ms}ms") from e
        except requests.exceptions.RequestException as e:
            logger.error("Record store error", extra={"error": str(e)})
            raise StoreError(f"Record store lookup failed: {e}") from e
        except ValueError as e:
            raise StoreError(f"Record store returned invalid JSON: {e}") from e

        if not isinstance(payload, dict) or "exists" not in payload:
            raise StoreError(f"Record store response missing 'exists': {payload!r}")
        return bool(payload["exists"])


def _lookup_target(field: str, args: Tuple[Any, ...], rule_name: str) -> Tuple[str, str]:
    if not args:
        raise ValueError(f"{rule_name} rule needs a table argument")
    column = args[1] if len(args) > 1 and args[1] else field.rsplit(".", 1)[-1]
    return args[0], column


def unique_rule(store: RecordStore):
    """Build the ``unique:table[,column[,ignore_column,ignore_value]]`` rule."""

    async def unique(data, field, message, args, get):
        value = get(data, field)
        if value is MISSING or value is None:
            return
        table, column = _lookup_target(field, args, "unique")
        ignore = (args[2], args[3]) if len(args) >= 4 else None
        if await store.exists(table, column, value, ignore):
            raise ValidationFailure(message)

    return unique


def exists_rule(store: RecordStore):
    """Build the ``exists:table[,column]`` rule."""

    async def exists(data, field, message, args, get):
        value = get(data, field)
        if value is MISSING or value is None:
            return
        table, column = _lookup_target(field, args, "exists")
        if not await store.exists(table, column, value):
            raise ValidationFailure(message)

    return exists
