"""
Device data resolution service.

Looks device data up through three tiers, cheapest first:
1. the in-process cache
2. the durable key-value cache
3. the upstream verification API (the only paid, rate-limited call)

Each miss populates the tiers above it (write-through). Upstream failures
propagate as VerificationAPIError and leave every cache untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from domain.check_result import CheckResult, ErrorKind
from domain.device_data import CacheSource, ResolvedDeviceData, cache_key
from repositories.kv_repository import KeyValueStore
from services.local_cache import LocalCache
from services.verification_client import (
    NetworkFailure,
    UpstreamRejected,
    VerificationAPIError,
    VerificationClient,
)

logger = logging.getLogger(__name__)


class DeviceDataResolver:
    """Single point of contact with the upstream verification API."""

    def __init__(
        self,
        local_cache: LocalCache,
        durable_store: KeyValueStore,
        verification_client: VerificationClient,
    ) -> None:
        self._local = local_cache
        self._durable = durable_store
        self._client = verification_client

    def resolve(self, imei: str, service_id: int) -> ResolvedDeviceData:
        """
        Return device data and the tier that produced it.

        Raises:
            NetworkFailure: upstream unreachable (nothing cached)
            UpstreamRejected: upstream refused the lookup (nothing cached)
        """

        key = cache_key(imei, service_id)

        data = self._local.get(key)
        if data is not None:
            logger.info("Device data %s served from local cache", key)
            return ResolvedDeviceData(data=data, source=CacheSource.LOCAL)

        data = self._read_durable(key)
        if data is not None:
            self._local.put(key, data)
            logger.info("Device data %s served from durable cache", key)
            return ResolvedDeviceData(data=data, source=CacheSource.DURABLE)

        data = self._client.lookup(imei, service_id)
        if data is None:
            raise UpstreamRejected("API service returned no device data")
        self._local.put(key, data)
        self._write_durable(key, data)
        logger.info("Device data %s fetched from upstream", key)
        return ResolvedDeviceData(data=data, source=CacheSource.UPSTREAM)

    def _read_durable(self, key: str) -> Optional[Any]:
        # A broken durable tier degrades to an upstream call rather than an error.
        try:
            return self._durable.get(key)
        except Exception:
            logger.warning("Durable cache read failed for %s", key, exc_info=True)
            return None

    def _write_durable(self, key: str, data: Any) -> None:
        try:
            self._durable.put(key, data)
        except Exception:
            logger.warning("Durable cache write failed for %s", key, exc_info=True)


def failure_from_verification_error(error: VerificationAPIError) -> CheckResult:
    """Map an upstream exception onto the caller-facing error kind."""

    if isinstance(error, UpstreamRejected):
        return CheckResult.failure(ErrorKind.UPSTREAM_REJECTED, str(error))
    if isinstance(error, NetworkFailure):
        return CheckResult.failure(ErrorKind.NETWORK_FAILURE, str(error))
    return CheckResult.failure(ErrorKind.NETWORK_FAILURE, str(error) or "Verification API error")


__all__ = ["DeviceDataResolver", "failure_from_verification_error"]
