"""
Domain: Device data results and where they came from.

Device data is treated as a permanent fact about (imei, service): once cached
it is never re-fetched, so there is no TTL or invalidation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CacheSource(str, Enum):
    """Tier that satisfied a device data lookup."""

    LOCAL = "local"
    DURABLE = "durable"
    UPSTREAM = "upstream"


def cache_key(imei: str, service_id: int) -> str:
    return f"{imei}_{service_id}"


@dataclass(frozen=True, slots=True)
class ResolvedDeviceData:
    data: Any
    source: CacheSource
