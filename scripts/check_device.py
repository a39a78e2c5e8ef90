#!/usr/bin/env python3
"""
Run a device check from the command line.

Uses the same configuration, stores and upstream client as the API, so a paid
check really consumes the transfer code.

Usage:
    python scripts/check_device.py 356938035643809
    python scripts/check_device.py 356938035643809 --service 281 --transfer-code MDM00000001ABCD
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import get_device_check_service
from services.device_check_service import DeviceCheckRequest


def main() -> int:
    parser = argparse.ArgumentParser(description="Check a device against the verification API")
    parser.add_argument("imei", help="Device IMEI or serial number")
    parser.add_argument("--service", type=int, default=0, help="Service tier id (default: 0, free)")
    parser.add_argument("--transfer-code", default=None, help="Payment code for paid tiers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each resolution step")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    result = get_device_check_service().check(
        DeviceCheckRequest(imei=args.imei, service=args.service, transfer_code=args.transfer_code)
    )

    if not result.success:
        print(json.dumps({"error": result.error_message, "kind": result.error_kind.value}, indent=2))
        return 1

    print(json.dumps({"success": True, "source": result.source.value, "data": result.data}, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
