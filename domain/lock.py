"""
Domain: In-flight redemption locks.

A LockEntry marks exclusive ownership of a payment code while a redemption is
running. Uniqueness per code is enforced by the backing store, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class LockEntry:
    transfer_code: str
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
