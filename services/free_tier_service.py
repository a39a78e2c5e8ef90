"""
Free-tier device checks.

No payment, lock or usage interaction: the request goes straight to the
device data resolver.
"""

from __future__ import annotations

import logging

from domain.check_result import CheckResult
from domain.service_tier import ServiceTier
from services.device_data_service import DeviceDataResolver, failure_from_verification_error
from services.verification_client import VerificationAPIError

logger = logging.getLogger(__name__)


class FreeTierService:
    def __init__(self, resolver: DeviceDataResolver) -> None:
        self._resolver = resolver

    def fulfill(self, imei: str, tier: ServiceTier) -> CheckResult:
        if not tier.is_free:
            raise ValueError(f"Service {tier.service_id} is not free (price {tier.price})")

        logger.info("Free service request - IMEI: %s, Service: %s", imei, tier.service_id)
        try:
            resolved = self._resolver.resolve(imei, tier.service_id)
        except VerificationAPIError as e:
            return failure_from_verification_error(e)
        return CheckResult.ok(resolved.data, resolved.source)


__all__ = ["FreeTierService"]
