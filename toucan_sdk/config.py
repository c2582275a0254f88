"""Client configuration.

A ``ToucanConfig`` is built once (directly or with ``ToucanConfig.from_env()``)
and passed by reference to the client. It is frozen after construction.
"""

import locale
import os
import platform
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from toucan_sdk.exceptions import ToucanConfigError
from toucan_sdk.operations import ENDPOINTS, OperationKind

DEFAULT_API_URL = "https://api.toucan.javocsoft.es"
DEFAULT_STORAGE_DIR = Path.home() / ".toucan"
DEFAULT_TIMEOUT_MS = 15000
DEFAULT_MAX_WORKERS = 4
DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_BACKOFF_BASE_SECONDS = 30.0
DEFAULT_BACKOFF_MAX_SECONDS = 3600.0

OS_TAG = "Python"


class ToucanConfig(BaseModel):
    """Immutable client configuration.

    Required fields:
        api_token: Notification server API token
        app_public_key: Application public key

    Optional fields:
        base_url: Endpoint base URL override (blank falls back to the default)
        ignore_ssl_errors: Skip TLS certificate validation. Never on by default.
        storage_dir: Directory for preferences and pending jobs
        timeout_ms: Transport connect/read timeout in milliseconds
        max_workers: Upper bound of concurrently running API calls
        max_attempts: Replay attempts before a pending job is dead-lettered
        backoff_base_seconds / backoff_max_seconds: Replay backoff window
        delivery_concurrency: Jobs replayed in parallel during a delivery pass
        queue_on_transport_error: Also queue online calls that failed with a
            retryable transport error
        debug: Enable debug logging to stderr
    """

    model_config = ConfigDict(frozen=True)

    api_token: str = Field(min_length=1)
    app_public_key: str = Field(min_length=1)
    base_url: str = DEFAULT_API_URL
    ignore_ssl_errors: bool = False
    storage_dir: Path = DEFAULT_STORAGE_DIR
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    backoff_base_seconds: float = Field(default=DEFAULT_BACKOFF_BASE_SECONDS, ge=0)
    backoff_max_seconds: float = Field(default=DEFAULT_BACKOFF_MAX_SECONDS, ge=0)
    delivery_concurrency: int = Field(default=1, ge=1)
    queue_on_transport_error: bool = False
    debug: bool = False

    @field_validator("base_url", mode="before")
    @classmethod
    def base_url_default(cls, v: str | None) -> str:
        if v is None or not str(v).strip():
            return DEFAULT_API_URL
        return str(v).rstrip("/")

    @classmethod
    def from_env(cls) -> "ToucanConfig":
        """Create a configuration from environment variables.

        Required environment variables:
            TOUCAN_API_TOKEN: The notification server API token.
            TOUCAN_APP_PUBLIC_KEY: The application public key.

        Optional environment variables:
            TOUCAN_API_URL: Endpoint base URL override.
            TOUCAN_IGNORE_SSL_ERRORS: Set to "1" to skip TLS validation.
            TOUCAN_STORAGE_DIR: Directory for preferences and pending jobs.
            TOUCAN_TIMEOUT_MS: Request timeout in milliseconds.
            TOUCAN_MAX_WORKERS: Maximum concurrent API calls.
            TOUCAN_MAX_ATTEMPTS: Replay attempts per pending job.
            TOUCAN_DEBUG: Set to "1" to enable debug logging.

        Raises:
            ToucanConfigError: If a required variable is missing.
            ValueError: If a numeric variable is not a valid integer.
        """
        api_token = os.environ.get("TOUCAN_API_TOKEN")
        app_public_key = os.environ.get("TOUCAN_APP_PUBLIC_KEY")
        missing = [
            name
            for name, value in (
                ("TOUCAN_API_TOKEN", api_token),
                ("TOUCAN_APP_PUBLIC_KEY", app_public_key),
            )
            if not value
        ]
        if missing:
            raise ToucanConfigError(f"Missing environment variables: {', '.join(missing)}")

        storage_dir = os.environ.get("TOUCAN_STORAGE_DIR")

        return cls(
            api_token=api_token,  # type: ignore[arg-type]
            app_public_key=app_public_key,  # type: ignore[arg-type]
            base_url=os.environ.get("TOUCAN_API_URL", DEFAULT_API_URL),
            ignore_ssl_errors=os.environ.get("TOUCAN_IGNORE_SSL_ERRORS", "") == "1",
            storage_dir=Path(storage_dir) if storage_dir else DEFAULT_STORAGE_DIR,
            timeout_ms=int(os.environ.get("TOUCAN_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))),
            max_workers=int(os.environ.get("TOUCAN_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))),
            max_attempts=int(os.environ.get("TOUCAN_MAX_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS))),
            debug=os.environ.get("TOUCAN_DEBUG", "") == "1",
        )

    @property
    def pending_dir(self) -> Path:
        return self.storage_dir / "pending"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def endpoint(self, kind: OperationKind) -> str:
        """Full URL (including query discriminator) for an operation."""
        path, discriminator, _ = ENDPOINTS[kind]
        return f"{self.base_url}{path}?{discriminator}"


class DeviceInfo(BaseModel):
    """Static description of the device the client runs on."""

    model_config = ConfigDict(frozen=True)

    app_version: int = 0
    os_info: str | None = None
    device_extra: str | None = None
    locale: str | None = None
    resolution_type: str | None = None

    @classmethod
    def detect(cls, *, app_version: int = 0) -> "DeviceInfo":
        """Describe the current host using the ``platform`` and ``locale`` modules."""
        system_locale = locale.getlocale()[0]
        return cls(
            app_version=app_version,
            os_info=f"{OS_TAG} {platform.python_version()} - ({platform.system()} {platform.release()})",
            device_extra=platform.machine() or None,
            locale=system_locale.split("_")[0] if system_locale else None,
        )
