"""
Consumption lock for payment codes.

Serializes redemption attempts for the same payment code across every process
instance. Correctness rests entirely on the lock store's atomic
insert-if-absent; there is no in-process synchronization, no waiting and no
expiry. A losing caller is told to retry later.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from domain.lock import LockEntry
from domain.time import utc_now
from repositories.lock_repository import LockStore

logger = logging.getLogger(__name__)


class ConsumptionLock:
    def __init__(self, store: LockStore, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock

    def acquire(self, transfer_code: str) -> bool:
        """
        Try to take the lock for `transfer_code`.

        Returns False immediately if another attempt holds it. Storage errors
        propagate: lock integrity is never guessed at.
        """

        acquired = self._store.insert_if_absent(
            LockEntry(transfer_code=transfer_code, created_at=self._clock())
        )
        if acquired:
            logger.info("Lock acquired for: %s", transfer_code)
        else:
            logger.info("Lock already held for: %s", transfer_code)
        return acquired

    def release(self, transfer_code: str) -> None:
        """Delete the lock so a failed attempt can be retried. Storage errors are logged."""

        try:
            self._store.delete(transfer_code)
        except Exception:
            logger.exception("Failed to release lock for: %s", transfer_code)
            return
        logger.info("Lock released for retry: %s", transfer_code)

    def holder(self, transfer_code: str) -> Optional[LockEntry]:
        return self._store.get(transfer_code)


__all__ = ["ConsumptionLock"]
