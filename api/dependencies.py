"""
Collaborator wiring for the API.

Each provider builds its object once per process. The in-process device cache
therefore lives exactly as long as the worker process. Tests replace the
top-level providers through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

from supabase import Client  # type: ignore[import-not-found]

from config.settings import Settings, load_settings
from repositories.client import create_supabase_client
from repositories.kv_repository import KeyValueStore, SupabaseKeyValueStore
from repositories.lock_repository import LockStore, SupabaseLockStore
from services.consumption_lock import ConsumptionLock
from services.device_check_service import DeviceCheckService
from services.device_data_service import DeviceDataResolver
from services.free_tier_service import FreeTierService
from services.local_cache import LocalCache, build_local_cache
from services.payment_ledger import PaymentLedger
from services.redemption_service import RedemptionService
from services.verification_client import VerificationClient


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    return create_supabase_client(get_settings())


@lru_cache(maxsize=1)
def get_key_value_store() -> KeyValueStore:
    return SupabaseKeyValueStore(get_supabase(), table=get_settings().kv_table)


@lru_cache(maxsize=1)
def get_lock_store() -> LockStore:
    return SupabaseLockStore(get_supabase(), table=get_settings().lock_table)


@lru_cache(maxsize=1)
def get_local_cache() -> LocalCache:
    return build_local_cache(get_settings().local_cache_max_entries)


@lru_cache(maxsize=1)
def get_verification_client() -> VerificationClient:
    settings = get_settings()
    return VerificationClient(
        api_url=settings.verification_api_url,
        api_key=settings.verification_api_key,
        timeout=settings.verification_api_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_payment_ledger() -> PaymentLedger:
    settings = get_settings()
    return PaymentLedger(
        store=get_key_value_store(),
        webhook_api_key=settings.webhook_api_key,
        supported_families=settings.supported_service_codes,
    )


@lru_cache(maxsize=1)
def get_device_check_service() -> DeviceCheckService:
    resolver = DeviceDataResolver(
        local_cache=get_local_cache(),
        durable_store=get_key_value_store(),
        verification_client=get_verification_client(),
    )
    redemption = RedemptionService(
        ledger=get_payment_ledger(),
        lock=ConsumptionLock(get_lock_store()),
        resolver=resolver,
    )
    return DeviceCheckService(free_tier=FreeTierService(resolver), redemption=redemption)
