"""Configuration module for ipstash.

Loads and validates environment variables once per run. The resulting Config
is treated as read-only for the lifetime of the run.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlparse

from redis.connection import parse_url

from ipstash.errors import ConfigInvalidError


MODE_PUBLISH = "publish"
MODE_HISTORY = "history"
VALID_MODES = (MODE_PUBLISH, MODE_HISTORY)

DEFAULT_FETCH_URL = "https://api.ipify.org"
DEFAULT_CHANNEL = "ipstash"
DEFAULT_HISTORY_KEY = "ipstash:history"
DEFAULT_HISTORY_MAX = 60
DEFAULT_REDIS_URL = "redis://localhost:6379/0"

REDIS_SCHEMES = ("redis", "rediss", "unix")


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables."""

    # Resolver Configuration
    ip_fetch_url: str
    fetch_timeout: int

    # Propagator Configuration
    mode: str
    channel: str
    history_key: str
    history_max: int

    # Broker Configuration
    redis_url: str
    redis_timeout: int

    # Operational Configuration
    dry_run: bool
    verbose: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ConfigInvalidError: If a variable is missing or invalid.

        Returns:
            Config: Validated configuration instance.
        """
        ip_fetch_url = os.getenv("IP_FETCH_URL") or DEFAULT_FETCH_URL
        if not ip_fetch_url.startswith(("http://", "https://")):
            raise ConfigInvalidError(
                "IP_FETCH_URL", "IP_FETCH_URL must be an HTTP or HTTPS URL"
            )

        fetch_timeout = cls._get_int_env("FETCH_TIMEOUT", 10, 1, 120)

        mode = (os.getenv("IPSTASH_MODE") or MODE_PUBLISH).lower()
        if mode not in VALID_MODES:
            raise ConfigInvalidError(
                "IPSTASH_MODE",
                f"IPSTASH_MODE must be one of {', '.join(VALID_MODES)}, got '{mode}'",
            )

        channel = os.getenv("IPSTASH_CHANNEL", DEFAULT_CHANNEL).strip()
        if not channel:
            raise ConfigInvalidError("IPSTASH_CHANNEL", "IPSTASH_CHANNEL cannot be empty")

        history_key = os.getenv("IPSTASH_HISTORY_KEY", DEFAULT_HISTORY_KEY).strip()
        if not history_key:
            raise ConfigInvalidError(
                "IPSTASH_HISTORY_KEY", "IPSTASH_HISTORY_KEY cannot be empty"
            )

        history_max = cls._get_int_env(
            "IPSTASH_HISTORY_MAX", DEFAULT_HISTORY_MAX, 1, 10000
        )

        # Broker Configuration: REDIS_URL wins over REDIS_ADDR
        redis_url = os.getenv("REDIS_URL")
        redis_addr = os.getenv("REDIS_ADDR")
        if redis_url:
            validate_redis_url(redis_url, "REDIS_URL")
        elif redis_addr:
            redis_url = redis_url_from_addr(redis_addr)
        else:
            redis_url = DEFAULT_REDIS_URL

        redis_timeout = cls._get_int_env("REDIS_TIMEOUT", 5, 1, 120)

        # Operational Configuration
        dry_run = cls._get_bool_env("DRY_RUN")
        verbose = cls._get_bool_env("VERBOSE")

        return cls(
            ip_fetch_url=ip_fetch_url,
            fetch_timeout=fetch_timeout,
            mode=mode,
            channel=channel,
            history_key=history_key,
            history_max=history_max,
            redis_url=redis_url,
            redis_timeout=redis_timeout,
            dry_run=dry_run,
            verbose=verbose,
        )

    @staticmethod
    def _get_int_env(key: str, default: int, minimum: int, maximum: int) -> int:
        """Get an integer environment variable within [minimum, maximum].

        Raises:
            ConfigInvalidError: If the value is not an integer or out of range.
        """
        raw = os.getenv(key)
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ConfigInvalidError(key, f"{key} must be an integer, got '{raw}'") from None
        if not minimum <= value <= maximum:
            raise ConfigInvalidError(
                key, f"{key} must be between {minimum} and {maximum}"
            )
        return value

    @staticmethod
    def _get_bool_env(key: str) -> bool:
        return os.getenv(key, "false").lower() in ("true", "1", "yes")

    def with_overrides(
        self, dry_run: Optional[bool] = None, mode: Optional[str] = None
    ) -> "Config":
        """Return a copy with CLI overrides applied.

        Args:
            dry_run: Force dry-run on when True; None keeps the loaded value.
            mode: Propagation mode; None keeps the loaded value.

        Raises:
            ConfigInvalidError: If mode is not a known propagation mode.
        """
        changes = {}
        if dry_run:
            changes["dry_run"] = True
        if mode is not None:
            if mode not in VALID_MODES:
                raise ConfigInvalidError("mode", f"Unknown propagation mode '{mode}'")
            changes["mode"] = mode
        return replace(self, **changes)

    def propagation_target(self) -> str:
        """Channel name in publish mode, sorted-set key in history mode."""
        return self.history_key if self.mode == MODE_HISTORY else self.channel


def validate_redis_url(url: str, setting: str) -> None:
    """Validate a Redis connection URL.

    Args:
        url: Connection URL (redis://, rediss:// or unix://).
        setting: Name of the setting the URL came from, for error messages.

    Raises:
        ConfigInvalidError: If the URL is malformed.
    """
    parsed = urlparse(url)
    if parsed.scheme not in REDIS_SCHEMES:
        raise ConfigInvalidError(
            setting,
            f"{setting} must use one of the schemes {', '.join(REDIS_SCHEMES)}",
        )

    if parsed.scheme == "unix":
        if not parsed.path:
            raise ConfigInvalidError(setting, f"{setting} must include a socket path")
    else:
        if not parsed.hostname:
            raise ConfigInvalidError(setting, f"{setting} must include a host")
        try:
            parsed.port
        except ValueError:
            raise ConfigInvalidError(setting, f"{setting} has an invalid port") from None

        db = parsed.path.lstrip("/")
        if db and not db.isdigit():
            raise ConfigInvalidError(
                setting, f"{setting} database must be a number, got '{db}'"
            )

    # Query options (socket_timeout, health_check_interval, ...) are only
    # checked by redis-py itself
    try:
        parse_url(url)
    except ValueError as e:
        raise ConfigInvalidError(setting, f"{setting} is not a valid Redis URL: {e}") from None


def redis_url_from_addr(addr: str) -> str:
    """Convert a host:port address into a Redis URL.

    Examples:
        >>> redis_url_from_addr("localhost:6379")
        'redis://localhost:6379/0'
        >>> redis_url_from_addr("[::1]:6380")
        'redis://[::1]:6380/0'

    Raises:
        ConfigInvalidError: If addr is not host:port.
    """
    host, sep, port = addr.strip().rpartition(":")
    if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigInvalidError(
            "REDIS_ADDR", f"REDIS_ADDR must be host:port, got '{addr}'"
        )
    url = f"redis://{host}:{port}/0"
    validate_redis_url(url, "REDIS_ADDR")
    return url
