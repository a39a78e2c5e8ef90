"""
Key-value repository (persistence).

Durable key-value storage used for three kinds of entries:
- device data cache entries, keyed `{imei}_{service}`
- payment records, keyed by payment code
- usage records, keyed `used_{code}`

The repository only stores and fetches JSON values; it enforces no business
rules beyond the atomic insert-if-absent used for first-write-wins.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.time import utc_now
from repositories.client import is_unique_violation


class KeyValueStore:
    """Interface for durable key-value storage."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def put(self, key: str, value: Any) -> None:
        """Insert or overwrite `key`."""
        raise NotImplementedError

    def put_if_absent(self, key: str, value: Any) -> bool:
        """Insert `key` only if it does not exist. Returns False if it already did."""
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}
        self._mutex = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)

    def put(self, key: str, value: Any) -> None:
        with self._mutex:
            self._values[key] = value

    def put_if_absent(self, key: str, value: Any) -> bool:
        with self._mutex:
            if key in self._values:
                return False
            self._values[key] = value
            return True

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)


class SupabaseKeyValueStore(KeyValueStore):
    """
    Key-value entries in a Supabase table.

    Expected schema (see scripts/schema.sql):
        key text primary key, value jsonb not null, updated_at_utc timestamptz
    """

    def __init__(self, client: Client, table: str = "kv_store") -> None:
        self._client = client
        self._table = table

    def _row(self, key: str, value: Any) -> dict[str, Any]:
        return {"key": key, "value": value, "updated_at_utc": utc_now().isoformat()}

    def get(self, key: str) -> Optional[Any]:
        response = (
            self._client.table(self._table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to read key {key!r}: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return rows[0].get("value")

    def put(self, key: str, value: Any) -> None:
        response = (
            self._client.table(self._table)
            .upsert(self._row(key, value), on_conflict="key")
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to write key {key!r}: {error}")

    def put_if_absent(self, key: str, value: Any) -> bool:
        try:
            response = self._client.table(self._table).insert(self._row(key, value)).execute()
        except APIError as e:
            if is_unique_violation(e):
                return False
            raise

        error = getattr(response, "error", None)
        if error:
            if is_unique_violation(error):
                return False
            raise RuntimeError(f"Failed to insert key {key!r}: {error}")
        return True


__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SupabaseKeyValueStore",
]
