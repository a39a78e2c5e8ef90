"""
Tests for the pure domain modules.

Covers contract rules:
- Payment codes are AAA########XXXX with a case-insensitive family prefix.
- Notification amounts must be finite numbers.
- Records are immutable and timestamps must be UTC.
- Error kinds carry their HTTP status and retryability.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.check_result import CheckResult, ErrorKind
from domain.device_data import CacheSource, cache_key
from domain.lock import LockEntry
from domain.payment import (
    PaymentRecord,
    UsageRecord,
    is_valid_payment_code,
    parse_transfer_amount,
    payment_code_family,
    usage_key,
)
from domain.service_tier import SERVICES, get_service_tier
from domain.time import parse_utc_datetime


@pytest.mark.parametrize(
    "code, family",
    [
        ("MDM00000001ABCD", "MDM"),
        ("mdm12345678a1b2", "MDM"),
        ("XYZ00000001ABCD", "XYZ"),
        ("12", None),
        ("MD00000001ABCD", None),
        ("MDM0000001ABCD", None),
        ("MDM00000001ABC", None),
        ("MDM00000001ABCDE", None),
        ("MDM0000000AABCD", None),
        ("MDM00000001AB-D", None),
        ("", None),
        (None, None),
        (12345, None),
    ],
)
def test_payment_code_family(code, family) -> None:
    """Verify the code pattern and upper-cased family extraction."""

    assert payment_code_family(code) == family


def test_payment_code_rejects_non_ascii_digits() -> None:
    """Only ASCII digits are allowed in the numeric section."""

    assert payment_code_family("MDM٠٠٠٠٠٠٠١ABCD") is None


def test_is_valid_payment_code_requires_supported_family() -> None:
    assert is_valid_payment_code("MDM00000001ABCD", {"MDM"}) is True
    assert is_valid_payment_code("mdm00000001ABCD", {"MDM"}) is True
    assert is_valid_payment_code("XYZ00000001ABCD", {"MDM"}) is False


@pytest.mark.parametrize(
    "value, expected",
    [
        (25000, Decimal("25000")),
        (25000.5, Decimal("25000.5")),
        ("30000", Decimal("30000")),
        (" 100 ", Decimal("100")),
        (None, None),
        (True, None),
        ("abc", None),
        ("NaN", None),
        ("Infinity", None),
        ([1], None),
    ],
)
def test_parse_transfer_amount(value, expected) -> None:
    assert parse_transfer_amount(value) == expected


def test_payment_record_from_payload_keeps_raw_payload() -> None:
    payload = {"code": "MDM00000001ABCD", "transferAmount": 25000, "gateway": "MBBank"}

    record = PaymentRecord.from_payload(payload)

    assert record.code == "MDM00000001ABCD"
    assert record.transfer_amount == Decimal("25000")
    assert record.payload == payload
    assert record.covers(Decimal("25000")) is True
    assert record.covers(Decimal("25001")) is False


def test_payment_record_from_payload_requires_code_and_amount() -> None:
    with pytest.raises(ValueError):
        PaymentRecord.from_payload({"transferAmount": 1})
    with pytest.raises(ValueError):
        PaymentRecord.from_payload({"code": "MDM00000001ABCD"})


def test_usage_record_payload_uses_stored_field_names() -> None:
    """Usage records are stored with the field names existing rows already use."""

    used_at = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    record = UsageRecord(code="MDM00000001ABCD", imei="999", service_id=281, used_at=used_at)

    payload = record.to_payload()

    assert record.key == usage_key("MDM00000001ABCD") == "used_MDM00000001ABCD"
    assert payload == {
        "used_at": "2025-01-02T03:04:05+00:00",
        "used_for_imei": "999",
        "used_for_service": 281,
        "original_payment_key": "MDM00000001ABCD",
    }
    assert UsageRecord.from_payload({**payload, "used_at": "2025-01-02T03:04:05Z"}) == record


def test_records_require_utc_and_are_immutable() -> None:
    with pytest.raises(ValueError):
        UsageRecord(code="MDM00000001ABCD", imei="1", service_id=281, used_at=datetime(2025, 1, 1))
    with pytest.raises(ValueError):
        LockEntry(
            transfer_code="MDM00000001ABCD",
            created_at=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=7))),
        )

    entry = LockEntry(transfer_code="MDM00000001ABCD", created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
    with pytest.raises(FrozenInstanceError):
        entry.transfer_code = "other"  # type: ignore[misc]


def test_parse_utc_datetime_assumes_naive_is_utc() -> None:
    assert parse_utc_datetime("2025-01-01T00:00:00") == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert parse_utc_datetime("2025-01-01T07:00:00+07:00") == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_service_price_table() -> None:
    free = get_service_tier(0)
    paid = get_service_tier(281)

    assert free is not None and free.is_free
    assert paid is not None and not paid.is_free
    assert paid.price == Decimal("25000")
    assert get_service_tier(999) is None
    assert set(SERVICES) == {0, 281}


def test_cache_key_format() -> None:
    assert cache_key("123", 0) == "123_0"


def test_error_kind_status_codes() -> None:
    """The lock conflict has its own status so clients can tell "retry later" apart."""

    assert ErrorKind.VALIDATION_FAILURE.status_code == 400
    assert ErrorKind.UNAUTHORIZED.status_code == 401
    assert ErrorKind.CONCURRENT_REDEMPTION_IN_PROGRESS.status_code == 409
    assert ErrorKind.NETWORK_FAILURE.status_code == 502
    assert ErrorKind.CONCURRENT_REDEMPTION_IN_PROGRESS.retryable is True
    assert ErrorKind.ALREADY_USED.retryable is False


def test_check_result_tagging() -> None:
    ok = CheckResult.ok({"a": 1}, CacheSource.UPSTREAM)
    failed = CheckResult.failure(ErrorKind.ALREADY_USED, "Transfer code already used")

    assert ok.status_code == 200
    assert failed.status_code == 400
    with pytest.raises(ValueError):
        CheckResult(success=False)
    with pytest.raises(ValueError):
        CheckResult(success=True, error_kind=ErrorKind.INTERNAL_ERROR)
