"""
Payment ledger service.

Handles:
- Authentication of payment webhook deliveries (static shared secret)
- Validation of payment codes (pattern + supported service family)
- Idempotent, first-write-wins ingestion of payment notifications
- Payment lookup and usage (redemption) records for the redemption flow

Once authenticated, every business outcome is acknowledged: the payment
provider retries on anything but success, and neither a malformed code, a
duplicate delivery nor a transient storage failure should cause redelivery.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Collection, Mapping, Optional

from domain.payment import (
    PaymentRecord,
    UsageRecord,
    is_valid_payment_code,
    payment_code_family,
    usage_key,
)
from domain.time import utc_now
from repositories.kv_repository import KeyValueStore

logger = logging.getLogger(__name__)

API_KEY_SCHEME: str = "Apikey"


class IngestStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DUPLICATE = "duplicate"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True, slots=True)
class IngestResult:
    """
    Outcome of a single webhook delivery.

    acknowledged is True for everything except UNAUTHORIZED; it decides
    whether the transport replies with success.
    """
    status: IngestStatus
    code: Optional[str] = None
    reason: Optional[str] = None

    @property
    def acknowledged(self) -> bool:
        return self.status is not IngestStatus.UNAUTHORIZED


def parse_api_key_header(header: Optional[str]) -> Optional[str]:
    """Extract the key from an `Apikey <value>` Authorization header."""

    prefix = f"{API_KEY_SCHEME} "
    if not header or not header.startswith(prefix):
        return None
    return header[len(prefix):]


class PaymentLedger:
    """Owner of PaymentRecord and UsageRecord entries in the key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        webhook_api_key: str,
        supported_families: Collection[str] = ("MDM",),
    ) -> None:
        self._store = store
        self._webhook_api_key = webhook_api_key
        self._supported_families = frozenset(f.upper() for f in supported_families)

    def authenticate(self, authorization: Optional[str]) -> bool:
        provided = parse_api_key_header(authorization)
        # An unconfigured secret must never match an empty key.
        if provided is None or not self._webhook_api_key:
            return False
        return hmac.compare_digest(provided.encode(), self._webhook_api_key.encode())

    def ingest(self, notification: Any, authorization: Optional[str]) -> IngestResult:
        """
        Ingest one payment notification.

        Args:
            notification: decoded webhook body (expected to be a JSON object)
            authorization: raw Authorization header value

        Returns:
            IngestResult (UNAUTHORIZED is the only unacknowledged outcome)
        """

        if not self.authenticate(authorization):
            logger.warning("Payment webhook rejected: invalid API key")
            return IngestResult(status=IngestStatus.UNAUTHORIZED)

        if not isinstance(notification, Mapping):
            logger.warning("Payment webhook body is not an object: %r", notification)
            return IngestResult(status=IngestStatus.REJECTED, reason="Notification must be a JSON object")

        code = notification.get("code")
        family = payment_code_family(code)
        if family is None:
            logger.warning("Invalid payment code pattern: %r", code)
            return IngestResult(status=IngestStatus.REJECTED, reason="Invalid payment code pattern")
        if family not in self._supported_families:
            logger.warning("Unsupported service family %s for payment code %s", family, code)
            return IngestResult(
                status=IngestStatus.REJECTED, code=code, reason=f"Unsupported service family: {family}"
            )

        try:
            PaymentRecord.from_payload(notification)
        except ValueError as e:
            logger.warning("Malformed payment notification %s: %s", code, e)
            return IngestResult(status=IngestStatus.REJECTED, code=code, reason=str(e))

        try:
            inserted = self._store.put_if_absent(code, dict(notification))
        except Exception as e:
            logger.exception("Failed to save payment %s", code)
            return IngestResult(status=IngestStatus.REJECTED, code=code, reason=f"Failed to save payment: {e}")

        if not inserted:
            logger.warning("Duplicate payment: %s", code)
            return IngestResult(status=IngestStatus.DUPLICATE, code=code)

        logger.info("Payment saved successfully: %s", code)
        return IngestResult(status=IngestStatus.ACCEPTED, code=code)

    def lookup(self, code: str) -> Optional[PaymentRecord]:
        """
        Fetch the PaymentRecord for `code`.

        Malformed codes and codes of an unsupported family never reach the
        store, so a caller-supplied code can not address cache or usage
        entries that share the key space.
        """

        if not is_valid_payment_code(code, self._supported_families):
            return None

        payload = self._store.get(code)
        if not isinstance(payload, Mapping) or payload.get("code") != code:
            return None
        try:
            return PaymentRecord.from_payload(payload)
        except ValueError:
            logger.warning("Stored payment %s is unreadable", code)
            return None

    def get_usage(self, code: str) -> Optional[UsageRecord]:
        payload = self._store.get(usage_key(code))
        if payload is None:
            return None
        return UsageRecord.from_payload(payload)

    def is_used(self, code: str) -> bool:
        return self._store.get(usage_key(code)) is not None

    def mark_used(
        self,
        code: str,
        imei: str,
        service_id: int,
        used_at: Optional[datetime] = None,
    ) -> UsageRecord:
        """Write the UsageRecord for `code`. Storage errors propagate."""

        record = UsageRecord(
            code=code,
            imei=imei,
            service_id=service_id,
            used_at=used_at or utc_now(),
        )
        self._store.put(record.key, record.to_payload())
        return record


__all__ = [
    "API_KEY_SCHEME",
    "IngestResult",
    "IngestStatus",
    "PaymentLedger",
    "parse_api_key_header",
]
