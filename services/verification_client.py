"""
Upstream device verification API client.

The upstream is a paid, rate-limited lookup service. It takes a form-encoded
POST of {service, imei, key} and answers with JSON of the shape
{"success": bool, "object": <device data>, "error": <message>}.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class VerificationAPIError(Exception):
    """Base class for upstream lookup failures. No cache entry is written for these."""


class NetworkFailure(VerificationAPIError):
    """Transport error, timeout, non-success HTTP status or unreadable body."""


class UpstreamRejected(VerificationAPIError):
    """The upstream answered but flagged the request as failed (success=false)."""


class VerificationClient:
    """Thin synchronous wrapper around the verification endpoint."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(timeout))

    def lookup(self, imei: str, service_id: int) -> Any:
        """
        Fetch device data for (imei, service_id).

        Returns:
            The `object` member of a successful response

        Raises:
            NetworkFailure: upstream unreachable or answered with a non-2xx status
            UpstreamRejected: upstream reported success=false or sent no `object`
        """

        form = {"service": str(service_id), "imei": imei, "key": self._api_key}
        try:
            response = self._http.post(self._api_url, data=form)
        except httpx.HTTPError as e:
            logger.warning("Verification API request failed: %s", e)
            raise NetworkFailure("Network connection failed") from e

        if not response.is_success:
            raise NetworkFailure(f"HTTP {response.status_code}: API service unavailable")

        try:
            result = response.json()
        except ValueError as e:
            raise NetworkFailure("API service returned an unreadable response") from e

        if not isinstance(result, dict) or not result.get("success"):
            message = result.get("error") if isinstance(result, dict) else None
            raise UpstreamRejected(message or "Invalid request")

        data = result.get("object")
        if data is None:
            raise UpstreamRejected("API service returned no device data")
        return data

    def close(self) -> None:
        self._http.close()


__all__ = [
    "NetworkFailure",
    "UpstreamRejected",
    "VerificationAPIError",
    "VerificationClient",
]
