"""
Redemption service for paid device checks.

Consumes a payment code for exactly one successful device check:

1. Validate payment (exists, amount covers the tier price)
2. Acquire the consumption lock (lose -> retry later, or already used
   if the holder was a completed redemption)
3. Check usage (already redeemed -> terminal)
4. Fetch device data through the cache tiers
5. Mark the code used (only after data was obtained)
6. Return the data

Every non-success exit after step 2, including an unexpected exception,
releases the lock so the holder of a valid code can retry. A successful
redemption keeps its lock row as a second guard behind the usage record.
"""

from __future__ import annotations

import logging

from domain.check_result import CheckResult, ErrorKind
from domain.service_tier import ServiceTier
from services.consumption_lock import ConsumptionLock
from services.device_data_service import DeviceDataResolver, failure_from_verification_error
from services.payment_ledger import PaymentLedger
from services.verification_client import VerificationAPIError

logger = logging.getLogger(__name__)


class RedemptionService:
    def __init__(
        self,
        ledger: PaymentLedger,
        lock: ConsumptionLock,
        resolver: DeviceDataResolver,
    ) -> None:
        self._ledger = ledger
        self._lock = lock
        self._resolver = resolver

    def redeem(self, imei: str, tier: ServiceTier, transfer_code: str) -> CheckResult:
        """
        Run one redemption attempt.

        Returns:
            CheckResult with device data, or the error kind of the stage that
            stopped the attempt

        Raises:
            Exception: storage failures while acquiring the lock or writing the
                usage record (the lock is released first in the latter case)
        """

        rejection = self._validate_payment(tier, transfer_code)
        if rejection is not None:
            return rejection

        if not self._lock.acquire(transfer_code):
            # Completed redemptions keep their lock row, so a lost acquire is
            # either a live race or a code that was already spent.
            if self._ledger.is_used(transfer_code):
                return CheckResult.failure(ErrorKind.ALREADY_USED, "Transfer code already used")
            return CheckResult.failure(
                ErrorKind.CONCURRENT_REDEMPTION_IN_PROGRESS,
                "Transfer code is being processed by another request",
            )

        try:
            result = self._redeem_locked(imei, tier, transfer_code)
        except Exception:
            self._lock.release(transfer_code)
            raise

        if not result.success:
            self._lock.release(transfer_code)
        return result

    def _validate_payment(self, tier: ServiceTier, transfer_code: str) -> CheckResult | None:
        payment = self._ledger.lookup(transfer_code)
        if payment is None:
            return CheckResult.failure(
                ErrorKind.INVALID_OR_INSUFFICIENT_PAYMENT,
                "Invalid transfer code or payment not found",
            )
        if not payment.covers(tier.price):
            return CheckResult.failure(
                ErrorKind.INVALID_OR_INSUFFICIENT_PAYMENT,
                "Payment amount insufficient for this service",
            )
        return None

    def _redeem_locked(self, imei: str, tier: ServiceTier, transfer_code: str) -> CheckResult:
        if self._ledger.is_used(transfer_code):
            return CheckResult.failure(ErrorKind.ALREADY_USED, "Transfer code already used")

        try:
            resolved = self._resolver.resolve(imei, tier.service_id)
        except VerificationAPIError as e:
            logger.warning("Device lookup failed for transfer code %s: %s", transfer_code, e)
            return failure_from_verification_error(e)

        self._ledger.mark_used(transfer_code, imei, tier.service_id)

        logger.info(
            "IMEI: %s, Service: %s, Source: %s, Transfer Code: %s",
            imei,
            tier.service_id,
            resolved.source.value,
            transfer_code,
        )
        return CheckResult.ok(resolved.data, resolved.source)


__all__ = ["RedemptionService"]
