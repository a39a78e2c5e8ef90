"""
Tests for `services/device_data_service.py` and `services/local_cache.py`.

Covers contract rules:
- Lookup order is local cache, durable cache, upstream.
- Each miss writes through to the tiers above it.
- Upstream failures propagate and write nothing.
- Durable tier failures are logged and never fail the request.
"""

from __future__ import annotations

import logging

import pytest

from domain.check_result import ErrorKind
from domain.device_data import CacheSource
from repositories.kv_repository import InMemoryKeyValueStore
from services.device_data_service import DeviceDataResolver, failure_from_verification_error
from services.local_cache import BoundedLocalCache, LocalCache, build_local_cache
from services.verification_client import NetworkFailure, UpstreamRejected


class BrokenStore(InMemoryKeyValueStore):
    def __init__(self, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get(self, key):
        if self.fail_reads:
            raise RuntimeError("kv unavailable")
        return super().get(key)

    def put(self, key, value):
        if self.fail_writes:
            raise RuntimeError("kv unavailable")
        super().put(key, value)


def test_upstream_result_is_written_to_both_tiers(resolver, local_cache, kv_store, upstream) -> None:
    """Scenario: first request for a device goes upstream once and is cached."""

    resolved = resolver.resolve("123", 0)

    assert resolved.source is CacheSource.UPSTREAM
    assert upstream.calls == [("123", 0)]
    assert local_cache.get("123_0") == resolved.data
    assert kv_store.get("123_0") == resolved.data


def test_second_request_is_served_locally(resolver, upstream) -> None:
    first = resolver.resolve("123", 0)
    second = resolver.resolve("123", 0)

    assert second.source is CacheSource.LOCAL
    assert second.data == first.data
    assert len(upstream.calls) == 1


def test_durable_hit_survives_process_restart(kv_store, upstream) -> None:
    """A fresh local cache (new process) is refilled from the durable tier without an upstream call."""

    DeviceDataResolver(LocalCache(), kv_store, upstream).resolve("123", 0)

    restarted_cache = LocalCache()
    restarted = DeviceDataResolver(restarted_cache, kv_store, upstream)
    resolved = restarted.resolve("123", 0)

    assert resolved.source is CacheSource.DURABLE
    assert restarted_cache.get("123_0") == resolved.data
    assert len(upstream.calls) == 1

    assert restarted.resolve("123", 0).source is CacheSource.LOCAL


def test_tiers_are_keyed_by_imei_and_service(resolver, upstream) -> None:
    resolver.resolve("123", 0)
    resolver.resolve("123", 281)

    assert upstream.calls == [("123", 0), ("123", 281)]


@pytest.mark.parametrize("error", [NetworkFailure("Network connection failed"), UpstreamRejected("Invalid IMEI")])
def test_upstream_failure_writes_nothing(resolver, local_cache, kv_store, upstream, error) -> None:
    upstream.error = error

    with pytest.raises(type(error)):
        resolver.resolve("123", 0)

    assert local_cache.get("123_0") is None
    assert kv_store.get("123_0") is None


def test_durable_write_failure_is_swallowed(local_cache, upstream, caplog) -> None:
    store = BrokenStore(fail_writes=True)
    resolver = DeviceDataResolver(local_cache, store, upstream)

    with caplog.at_level(logging.WARNING, logger="services.device_data_service"):
        resolved = resolver.resolve("123", 0)

    assert resolved.source is CacheSource.UPSTREAM
    assert local_cache.get("123_0") == resolved.data
    assert "Durable cache write failed" in caplog.text


def test_durable_read_failure_falls_back_to_upstream(local_cache, upstream) -> None:
    resolver = DeviceDataResolver(local_cache, BrokenStore(fail_reads=True), upstream)

    resolved = resolver.resolve("123", 0)

    assert resolved.source is CacheSource.UPSTREAM
    assert len(upstream.calls) == 1


def test_failure_from_verification_error() -> None:
    assert failure_from_verification_error(NetworkFailure("down")).error_kind is ErrorKind.NETWORK_FAILURE
    rejected = failure_from_verification_error(UpstreamRejected("Invalid IMEI"))
    assert rejected.error_kind is ErrorKind.UPSTREAM_REJECTED
    assert rejected.error_message == "Invalid IMEI"


def test_local_cache_is_unbounded_by_default() -> None:
    cache = build_local_cache()

    for i in range(1000):
        cache.put(str(i), i)

    assert isinstance(cache, LocalCache)
    assert not isinstance(cache, BoundedLocalCache)
    assert len(cache) == 1000
    assert cache.get("0") == 0


def test_bounded_local_cache_evicts_least_recently_used() -> None:
    cache = build_local_cache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get("a") == 1

    cache.put("c", 3)

    assert isinstance(cache, BoundedLocalCache)
    assert len(cache) == 2
    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_bounded_local_cache_requires_positive_capacity() -> None:
    with pytest.raises(ValueError):
        BoundedLocalCache(0)
