"""Policy configuration value objects for the resilient submission core.

Both configs are immutable. Callers replace them wholesale between
submissions (see ``with_overrides``); they are never mutated while a
submission is in flight.
"""

from dataclasses import dataclass, replace
from typing import Any

from issuerelay.core.exceptions import ConfigurationError

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60.0


@dataclass(frozen=True)
class RetryPolicyConfig:
    """Retry budget and exponential backoff parameters.

    Attributes:
        max_retries: Retries allowed after the first attempt (0 = single attempt).
        base_delay: Delay in seconds before the first retry.
        max_delay: Upper bound in seconds for any single backoff delay.
        backoff_multiplier: Growth factor applied per retry, at least 1.
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER

    def __post_init__(self) -> None:
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ConfigurationError(f"max_retries must be an integer, got {self.max_retries!r}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.base_delay < 0:
            raise ConfigurationError(f"base_delay must be non-negative, got {self.base_delay}")
        if self.max_delay < self.base_delay:
            raise ConfigurationError(
                f"max_delay ({self.max_delay}) must not be smaller than base_delay ({self.base_delay})"
            )
        if self.backoff_multiplier < 1:
            raise ConfigurationError(
                f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}"
            )

    def with_overrides(self, **overrides: Any) -> "RetryPolicyConfig":
        """Returns a new validated config with the given fields replaced."""
        return replace(self, **overrides)


@dataclass(frozen=True)
class RateLimitConfig:
    """Admission budget: at most ``max_requests`` per trailing ``window_seconds``."""
    max_requests: int = DEFAULT_MAX_REQUESTS
    window_seconds: float = DEFAULT_WINDOW_SECONDS

    def __post_init__(self) -> None:
        if isinstance(self.max_requests, bool) or not isinstance(self.max_requests, int):
            raise ConfigurationError(f"max_requests must be an integer, got {self.max_requests!r}")
        if self.max_requests <= 0:
            raise ConfigurationError(f"max_requests must be positive, got {self.max_requests}")
        if self.window_seconds <= 0:
            raise ConfigurationError(f"window_seconds must be positive, got {self.window_seconds}")

    @property
    def repoll_interval(self) -> float:
        """Fixed wait between admission polls while the window is saturated."""
        return self.window_seconds / self.max_requests

    def with_overrides(self, **overrides: Any) -> "RateLimitConfig":
        """Returns a new validated config with the given fields replaced."""
        return replace(self, **overrides)
