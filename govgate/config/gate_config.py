"""Governance gate configuration.

All settings come from environment variables with typed defaults, read
once at startup into a frozen dataclass.

Environment Variables:
- ENVIRONMENT: development | production (default: development)
- LOG_LEVEL: log level name (default: INFO)
- DATABASE_URL: PostgreSQL ledger; unset means no persistent ledger
- GOVGATE_ALLOW_IN_MEMORY_LEDGER: permit the in-memory ledger
  (default: true outside production)
- GOVGATE_SIGNAL_SOURCE_URL: base URL of the readiness calculators
- GOVGATE_SIGNAL_TIMEOUT_SECONDS: calculator timeout (default: 5.0)
- GOVGATE_EXECUTION_TOKEN_SECRET: HMAC secret, at least 16 characters
- GOVGATE_EXECUTION_TOKEN_TTL_SECONDS: token lifetime (default: 300)
- GOVGATE_LEDGER_ED25519_PRIVATE_KEY: base64 Ed25519 key for attestations
- GOVGATE_RATE_LIMIT_PER_MINUTE: governed mutations per actor per minute
  (default: 30)
- GOVGATE_RATE_LIMIT_MAX_KEYS: rate limiter eviction bound (default: 10000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable with default.

    Accepts 1/true/yes/on and 0/false/no/off, case-insensitive. Anything
    else yields the default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def _get_str_env(key: str) -> str | None:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class GovernanceGateConfig:
    """Configuration for the governance gate service.

    Attributes:
        environment: Deployment environment name.
        log_level: Log level name.
        database_url: PostgreSQL URL for the ledger, if any.
        allow_in_memory_ledger: Whether the in-memory ledger may be used.
        signal_source_url: Base URL of the readiness calculators, if any.
        signal_timeout_seconds: Timeout for calculator requests.
        execution_token_secret: HMAC secret for execution tokens, if any.
        execution_token_ttl_seconds: Execution token lifetime.
        ledger_signing_key: Base64 Ed25519 key for attestations, if any.
        rate_limit_per_minute: Governed mutations per actor per minute.
        rate_limit_max_keys: Rate limiter eviction bound.
    """

    environment: str = "development"
    log_level: str = "INFO"
    database_url: str | None = None
    allow_in_memory_ledger: bool = True
    signal_source_url: str | None = None
    signal_timeout_seconds: float = 5.0
    execution_token_secret: str | None = None
    execution_token_ttl_seconds: int = 300
    ledger_signing_key: str | None = None
    rate_limit_per_minute: int = 30
    rate_limit_max_keys: int = 10_000

    def __post_init__(self) -> None:
        if self.signal_timeout_seconds <= 0:
            raise ValueError(
                f"signal_timeout_seconds must be positive, got {self.signal_timeout_seconds}"
            )
        if self.execution_token_ttl_seconds <= 0:
            raise ValueError(
                "execution_token_ttl_seconds must be positive, "
                f"got {self.execution_token_ttl_seconds}"
            )
        if self.rate_limit_per_minute < 0:
            raise ValueError(
                f"rate_limit_per_minute must be >= 0, got {self.rate_limit_per_minute}"
            )
        if self.rate_limit_max_keys < 1:
            raise ValueError(
                f"rate_limit_max_keys must be >= 1, got {self.rate_limit_max_keys}"
            )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def rate_limiting_enabled(self) -> bool:
        return self.rate_limit_per_minute > 0

    @classmethod
    def from_environment(cls) -> GovernanceGateConfig:
        """Create configuration from environment variables."""
        environment = os.environ.get("ENVIRONMENT", "development").strip() or "development"
        return cls(
            environment=environment,
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            database_url=_get_str_env("DATABASE_URL"),
            allow_in_memory_ledger=_get_bool_env(
                "GOVGATE_ALLOW_IN_MEMORY_LEDGER", environment != "production"
            ),
            signal_source_url=_get_str_env("GOVGATE_SIGNAL_SOURCE_URL"),
            signal_timeout_seconds=_get_float_env("GOVGATE_SIGNAL_TIMEOUT_SECONDS", 5.0),
            execution_token_secret=_get_str_env("GOVGATE_EXECUTION_TOKEN_SECRET"),
            execution_token_ttl_seconds=_get_int_env(
                "GOVGATE_EXECUTION_TOKEN_TTL_SECONDS", 300
            ),
            ledger_signing_key=_get_str_env("GOVGATE_LEDGER_ED25519_PRIVATE_KEY"),
            rate_limit_per_minute=_get_int_env("GOVGATE_RATE_LIMIT_PER_MINUTE", 30),
            rate_limit_max_keys=_get_int_env("GOVGATE_RATE_LIMIT_MAX_KEYS", 10_000),
        )
