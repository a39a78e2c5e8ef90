"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and wires the services against in-memory
stores and a fake upstream so no test touches the network or Supabase.
"""

import sys
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.kv_repository import InMemoryKeyValueStore
from repositories.lock_repository import InMemoryLockStore
from services.consumption_lock import ConsumptionLock
from services.device_check_service import DeviceCheckService
from services.device_data_service import DeviceDataResolver
from services.free_tier_service import FreeTierService
from services.local_cache import LocalCache
from services.payment_ledger import PaymentLedger
from services.redemption_service import RedemptionService

WEBHOOK_KEY = "test-webhook-key"
AUTH_HEADER = f"Apikey {WEBHOOK_KEY}"
PAID_SERVICE_ID = 281
PAID_PRICE = Decimal("25000")


class FakeVerificationClient:
    """
    Stand-in for the upstream API.

    Records every lookup. Set `error` to make lookups raise; set `gate` to a
    threading.Event to hold lookups until the test releases them; set `no_data`
    to answer with an empty payload.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, int]] = []
        self.error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()
        self.no_data = False

    def lookup(self, imei: str, service_id: int) -> Any:
        self.calls.append((imei, service_id))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        if self.no_data:
            return None
        return {"imei": imei, "service": service_id, "fmi": "OFF", "mdm": "ON"}


def make_notification(code: str, amount: Any = 25000, **extra: Any) -> dict:
    payload = {"id": 92704, "gateway": "MBBank", "code": code, "transferAmount": amount}
    payload.update(extra)
    return payload


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def lock_store() -> InMemoryLockStore:
    return InMemoryLockStore()


@pytest.fixture
def local_cache() -> LocalCache:
    return LocalCache()


@pytest.fixture
def upstream() -> FakeVerificationClient:
    return FakeVerificationClient()


@pytest.fixture
def resolver(local_cache, kv_store, upstream) -> DeviceDataResolver:
    return DeviceDataResolver(local_cache=local_cache, durable_store=kv_store, verification_client=upstream)


@pytest.fixture
def ledger(kv_store) -> PaymentLedger:
    return PaymentLedger(store=kv_store, webhook_api_key=WEBHOOK_KEY, supported_families=("MDM",))


@pytest.fixture
def consumption_lock(lock_store) -> ConsumptionLock:
    return ConsumptionLock(lock_store)


@pytest.fixture
def redemption_service(ledger, consumption_lock, resolver) -> RedemptionService:
    return RedemptionService(ledger=ledger, lock=consumption_lock, resolver=resolver)


@pytest.fixture
def device_check_service(resolver, redemption_service) -> DeviceCheckService:
    return DeviceCheckService(free_tier=FreeTierService(resolver), redemption=redemption_service)
