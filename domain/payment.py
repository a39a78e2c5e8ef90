"""
Domain: Payment records and usage (redemption) records.

Contract excerpts implemented here:
- A payment code has the shape AAA########XXXX: three letters naming the
  service family, eight digits, four alphanumerics.
- At most one PaymentRecord exists per code (first write wins); records are
  never mutated or deleted.
- A UsageRecord exists for a code iff that code has been redeemed exactly
  once. Its existence is the sole authority for "already used".

This module contains only pure domain entities/value objects: no I/O, no database, no frameworks.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Collection, Mapping, Optional

from .time import parse_utc_datetime, require_utc_timestamp, to_iso_utc

PAYMENT_CODE_PATTERN = re.compile(r"^([A-Za-z]{3})([0-9]{8})([A-Za-z0-9]{4})$")

USAGE_KEY_PREFIX: str = "used_"

# Notification field carrying the paid amount.
AMOUNT_FIELD: str = "transferAmount"


def payment_code_family(code: Any) -> Optional[str]:
    """Return the upper-cased service family prefix, or None if the code is malformed."""

    if not isinstance(code, str):
        return None
    match = PAYMENT_CODE_PATTERN.match(code)
    if match is None:
        return None
    return match.group(1).upper()


def is_valid_payment_code(code: Any, supported_families: Collection[str]) -> bool:
    family = payment_code_family(code)
    return family is not None and family in supported_families


def usage_key(code: str) -> str:
    """Key under which the UsageRecord for `code` is stored."""

    return f"{USAGE_KEY_PREFIX}{code}"


def parse_transfer_amount(value: Any) -> Optional[Decimal]:
    """
    Coerce a notification amount into a Decimal.

    Returns None for anything that is not a finite number (including bools,
    which are ints in Python but never a valid amount).
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not amount.is_finite():
        return None
    return amount


@dataclass(frozen=True, slots=True)
class PaymentRecord:
    """
    Immutable ingested payment notification.

    `payload` is the raw notification exactly as delivered; it is what gets
    persisted so the ledger doubles as an audit log.
    """

    code: str
    transfer_amount: Decimal
    payload: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PaymentRecord":
        """
        Build a record from a raw notification.

        Raises:
            ValueError: if the code is missing or the amount is not numeric
        """

        code = payload.get("code")
        if not isinstance(code, str) or not code:
            raise ValueError("Payment notification is missing a code")
        amount = parse_transfer_amount(payload.get(AMOUNT_FIELD))
        if amount is None:
            raise ValueError(f"Payment notification has no numeric {AMOUNT_FIELD}")
        return cls(code=code, transfer_amount=amount, payload=dict(payload))

    def covers(self, price: Decimal) -> bool:
        return self.transfer_amount >= price


@dataclass(frozen=True, slots=True)
class UsageRecord:
    """Immutable record of a payment code having been redeemed."""

    code: str
    imei: str
    service_id: int
    used_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("used_at", self.used_at)

    @property
    def key(self) -> str:
        return usage_key(self.code)

    def to_payload(self) -> dict[str, Any]:
        return {
            "used_at": to_iso_utc(self.used_at, name="used_at"),
            "used_for_imei": self.imei,
            "used_for_service": self.service_id,
            "original_payment_key": self.code,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UsageRecord":
        return cls(
            code=str(payload["original_payment_key"]),
            imei=str(payload["used_for_imei"]),
            service_id=int(payload["used_for_service"]),
            used_at=parse_utc_datetime(payload["used_at"]),
        )


__all__ = [
    "AMOUNT_FIELD",
    "PAYMENT_CODE_PATTERN",
    "PaymentRecord",
    "UsageRecord",
    "is_valid_payment_code",
    "parse_transfer_amount",
    "payment_code_family",
    "usage_key",
]
