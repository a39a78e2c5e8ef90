"""
Domain: Service tiers (priced verification products).

A service tier is identified by the integer id the upstream verification API
uses. Tier 0 is the free check; every other tier requires a payment code whose
transfer amount covers the tier price.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class ServiceTier:
    """Immutable price table entry for a single verification product."""

    service_id: int
    name: str
    price: Decimal

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError("price must be >= 0")

    @property
    def is_free(self) -> bool:
        return self.price == 0


FREE_SERVICE_ID: int = 0

SERVICES: Mapping[int, ServiceTier] = {
    FREE_SERVICE_ID: ServiceTier(service_id=FREE_SERVICE_ID, name="Free Check", price=Decimal("0")),
    281: ServiceTier(service_id=281, name="All-in-one (iFreeCheck Ultimate)", price=Decimal("25000")),
}


def get_service_tier(service_id: int) -> Optional[ServiceTier]:
    """Look up a tier in the static price table; None for unknown ids."""

    return SERVICES.get(service_id)


__all__ = [
    "FREE_SERVICE_ID",
    "SERVICES",
    "ServiceTier",
    "get_service_tier",
]
