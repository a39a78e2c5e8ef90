#!/usr/bin/env python3
"""
Inspect (and optionally clear) the redemption state of a payment code.

A process crash between acquiring a lock and finishing a redemption leaves
the lock row behind forever, blocking retries of that code. This script shows
the payment, usage and lock state, and `--release` deletes a stranded lock.
A lock is only released when no usage record exists: the lock of a completed
redemption is kept.

Usage:
    python scripts/lock_status.py MDM00000001ABCD
    python scripts/lock_status.py MDM00000001ABCD --release
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import get_lock_store, get_payment_ledger
from services.consumption_lock import ConsumptionLock


def print_section(title: str) -> None:
    """Print a section header."""
    print()
    print("=" * 60)
    print(title)
    print("=" * 60)


def main() -> int:
    parser = argparse.ArgumentParser(description="Show redemption state for a payment code")
    parser.add_argument("transfer_code", help="Payment code, e.g. MDM00000001ABCD")
    parser.add_argument("--release", action="store_true", help="Delete a stranded lock")
    args = parser.parse_args()

    code = args.transfer_code.strip()
    ledger = get_payment_ledger()
    lock = ConsumptionLock(get_lock_store())

    print_section(f"Payment code {code}")

    payment = ledger.lookup(code)
    if payment is None:
        print("  Payment: not found")
    else:
        print(f"  Payment: {payment.transfer_amount}")

    usage = ledger.get_usage(code)
    if usage is None:
        print("  Usage:   unused")
    else:
        print(f"  Usage:   used at {usage.used_at.isoformat()} for IMEI {usage.imei}, service {usage.service_id}")

    entry = lock.holder(code)
    if entry is None:
        print("  Lock:    none")
    else:
        print(f"  Lock:    held since {entry.created_at.isoformat()}")

    if not args.release:
        return 0

    if entry is None:
        print("\n[OK] Nothing to release")
        return 0
    if usage is not None:
        print("\n[ERROR] Code was redeemed; its lock is kept")
        return 1

    lock.release(code)
    print("\n[OK] Lock released; the code can be retried")
    return 0


if __name__ == "__main__":
    sys.exit(main())
