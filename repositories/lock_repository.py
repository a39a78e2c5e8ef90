"""
Lock repository (persistence).

Rows in `payment_locks` mark in-flight redemptions. The table's primary key on
`transfer_code` is the only cross-process mutual exclusion in the system: an
insert either creates the row or fails with a unique violation.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.lock import LockEntry
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.client import is_unique_violation


class LockStore:
    """Interface for a store with an atomic insert-if-absent on transfer_code."""

    def insert_if_absent(self, entry: LockEntry) -> bool:
        raise NotImplementedError

    def delete(self, transfer_code: str) -> None:
        raise NotImplementedError

    def get(self, transfer_code: str) -> Optional[LockEntry]:
        raise NotImplementedError


class InMemoryLockStore(LockStore):
    """Process-local stand-in for the lock table; the mutex plays the unique index."""

    def __init__(self) -> None:
        self._entries: Dict[str, LockEntry] = {}
        self._mutex = threading.Lock()

    def insert_if_absent(self, entry: LockEntry) -> bool:
        with self._mutex:
            if entry.transfer_code in self._entries:
                return False
            self._entries[entry.transfer_code] = entry
            return True

    def delete(self, transfer_code: str) -> None:
        with self._mutex:
            self._entries.pop(transfer_code, None)

    def get(self, transfer_code: str) -> Optional[LockEntry]:
        return self._entries.get(transfer_code)


def _row_to_lock(row: Mapping[str, Any]) -> LockEntry:
    return LockEntry(
        transfer_code=str(row["transfer_code"]),
        created_at=parse_utc_datetime(row["created_at_utc"]),
    )


class SupabaseLockStore(LockStore):
    """
    Locks in a Supabase table.

    Expected schema (see scripts/schema.sql):
        transfer_code text primary key, created_at_utc timestamptz not null
    """

    def __init__(self, client: Client, table: str = "payment_locks") -> None:
        self._client = client
        self._table = table

    def insert_if_absent(self, entry: LockEntry) -> bool:
        payload: dict[str, Any] = {
            "transfer_code": entry.transfer_code,
            "created_at_utc": to_iso_utc(entry.created_at, name="created_at"),
        }
        try:
            response = self._client.table(self._table).insert(payload).execute()
        except APIError as e:
            if is_unique_violation(e):
                return False
            raise

        error = getattr(response, "error", None)
        if error:
            if is_unique_violation(error):
                return False
            raise RuntimeError(f"Failed to acquire lock: {error}")
        return True

    def delete(self, transfer_code: str) -> None:
        response = (
            self._client.table(self._table)
            .delete()
            .eq("transfer_code", transfer_code)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to release lock: {error}")

    def get(self, transfer_code: str) -> Optional[LockEntry]:
        response = (
            self._client.table(self._table)
            .select("*")
            .eq("transfer_code", transfer_code)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to read lock: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_lock(rows[0])


__all__ = [
    "InMemoryLockStore",
    "LockStore",
    "SupabaseLockStore",
]
