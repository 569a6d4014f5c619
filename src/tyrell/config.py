"""Configuration: frozen Config resolved once at client construction."""

from __future__ import annotations

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from tyrell._http import ANTHROPIC_VERSION, DEFAULT_BASE_URL, MESSAGES_PATH
from tyrell.errors import ConfigurationError
from tyrell.retry import RetryPolicy

load_dotenv()

API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"


@dataclass(frozen=True)
class Config:
    """Immutable transport configuration.

    The API key is auto-resolved from ``ANTHROPIC_API_KEY`` when not passed.

    Example:
        config = Config()  # key from ANTHROPIC_API_KEY
        config = Config(api_key="sk-...", timeout_s=30.0)
    """

    #: Auto-resolved from ``ANTHROPIC_API_KEY`` when *None*.
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    anthropic_version: str = ANTHROPIC_VERSION
    timeout_s: float = 60.0
    #: Upper bound on in-flight calls for ``AsyncClient.create_many``.
    request_concurrency: int = 4
    #: Defaults to a single attempt; the core never retries on its own.
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        """Auto-resolve API key and validate configuration."""
        if self.request_concurrency < 1:
            raise ConfigurationError(
                f"request_concurrency must be ≥ 1, got {self.request_concurrency}",
                hint="This controls how many API calls run in parallel.",
            )
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This is the per-request HTTP timeout in seconds.",
            )
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"base_url must be an http(s) URL, got {self.base_url!r}",
                hint=f"The default is {DEFAULT_BASE_URL}.",
            )

        if self.api_key is None:
            object.__setattr__(self, "api_key", os.environ.get(API_KEY_ENV_VAR))

        if not self.api_key:
            raise ConfigurationError(
                "API key required for Anthropic",
                hint=f"Set {API_KEY_ENV_VAR} environment variable or pass api_key=...",
            )

    @property
    def messages_url(self) -> str:
        return self.base_url.rstrip("/") + MESSAGES_PATH

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"timeout_s={self.timeout_s}, request_concurrency={self.request_concurrency})"
        )

    __repr__ = __str__
