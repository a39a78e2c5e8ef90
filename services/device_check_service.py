"""
Device check entry point.

Validates an inbound device check and routes it to the free-tier path or to
the paid redemption flow based on the tier's price.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.check_result import CheckResult, ErrorKind
from domain.service_tier import FREE_SERVICE_ID, get_service_tier
from services.free_tier_service import FreeTierService
from services.redemption_service import RedemptionService


@dataclass(frozen=True, slots=True)
class DeviceCheckRequest:
    """
    Request to check a device.

    transfer_code is required only when the tier has a non-zero price.
    """
    imei: Optional[str]
    service: Optional[int] = FREE_SERVICE_ID
    transfer_code: Optional[str] = None


class DeviceCheckService:
    def __init__(self, free_tier: FreeTierService, redemption: RedemptionService) -> None:
        self._free_tier = free_tier
        self._redemption = redemption

    def check(self, request: DeviceCheckRequest) -> CheckResult:
        """
        Run a device check.

        Validation order: IMEI present, tier known, transfer code present for
        paid tiers. Unexpected storage errors propagate to the caller.
        """

        imei = (request.imei or "").strip()
        if not imei:
            return CheckResult.failure(ErrorKind.VALIDATION_FAILURE, "IMEI is required")

        tier = get_service_tier(request.service) if request.service is not None else None
        if tier is None:
            return CheckResult.failure(ErrorKind.VALIDATION_FAILURE, "Service not supported")

        if tier.is_free:
            return self._free_tier.fulfill(imei, tier)

        transfer_code = (request.transfer_code or "").strip()
        if not transfer_code:
            return CheckResult.failure(
                ErrorKind.VALIDATION_FAILURE, "Transfer code is required for paid services"
            )

        return self._redemption.redeem(imei, tier, transfer_code)


__all__ = ["DeviceCheckRequest", "DeviceCheckService"]
