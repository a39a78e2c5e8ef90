"""
Application settings.

Settings are read from environment variables. A `.env` file in the project
root is loaded first so local development does not need exported variables.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: durable store credentials (server-side key only)
- VERIFICATION_API_URL / VERIFICATION_API_KEY: upstream device lookup endpoint
- VERIFICATION_API_TIMEOUT_SECONDS: upstream request timeout
- WEBHOOK_API_KEY: shared secret expected on the payment webhook
- SUPPORTED_SERVICE_CODES: comma separated payment code families (default MDM)
- KV_TABLE / LOCK_TABLE: Supabase table names
- LOCAL_CACHE_MAX_ENTRIES: 0 keeps the in-process cache unbounded
- LOG_LEVEL, CORS_ALLOW_ORIGINS
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

_ENV_PATH = Path(__file__).parent.parent / ".env"

DEFAULT_VERIFICATION_API_URL: str = "https://api.ifreeicloud.co.uk"


@dataclass(frozen=True, slots=True)
class Settings:
    """Validated process configuration."""

    supabase_url: Optional[str]
    supabase_key: Optional[str]
    verification_api_url: str
    verification_api_key: str
    verification_api_timeout_seconds: float
    webhook_api_key: str
    supported_service_codes: frozenset[str]
    kv_table: str = "kv_store"
    lock_table: str = "payment_locks"
    local_cache_max_entries: int = 0
    log_level: str = "INFO"
    cors_allow_origins: tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        if self.verification_api_timeout_seconds <= 0:
            raise ValueError("VERIFICATION_API_TIMEOUT_SECONDS must be > 0")
        if self.local_cache_max_entries < 0:
            raise ValueError("LOCAL_CACHE_MAX_ENTRIES must be >= 0")
        if not self.supported_service_codes:
            raise ValueError("SUPPORTED_SERVICE_CODES must name at least one family")

    def require_supabase_credentials(self) -> tuple[str, str]:
        if not self.supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not self.supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )
        return self.supabase_url, self.supabase_key


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_number(env: Mapping[str, str], name: str, default: str, cast):
    raw = env.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env: mapping to read instead of os.environ (the .env file is only
            loaded when reading the real environment)

    Raises:
        ValueError: if a numeric or list setting is invalid
    """

    if env is None:
        load_dotenv(dotenv_path=_ENV_PATH)
        env = os.environ

    families = _split_csv(env.get("SUPPORTED_SERVICE_CODES", "MDM"))

    return Settings(
        supabase_url=env.get("SUPABASE_URL") or None,
        supabase_key=env.get("SUPABASE_KEY") or None,
        verification_api_url=env.get("VERIFICATION_API_URL", DEFAULT_VERIFICATION_API_URL),
        verification_api_key=env.get("VERIFICATION_API_KEY", ""),
        verification_api_timeout_seconds=_parse_number(
            env, "VERIFICATION_API_TIMEOUT_SECONDS", "30", float
        ),
        webhook_api_key=env.get("WEBHOOK_API_KEY", ""),
        supported_service_codes=frozenset(family.upper() for family in families),
        kv_table=env.get("KV_TABLE", "kv_store"),
        lock_table=env.get("LOCK_TABLE", "payment_locks"),
        local_cache_max_entries=_parse_number(env, "LOCAL_CACHE_MAX_ENTRIES", "0", int),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        cors_allow_origins=tuple(_split_csv(env.get("CORS_ALLOW_ORIGINS", "*"))) or ("*",),
    )


__all__ = ["Settings", "load_settings"]
