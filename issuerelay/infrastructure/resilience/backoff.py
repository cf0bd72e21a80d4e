"""Exponential backoff between retries."""

from issuerelay.domain.models.config import RetryPolicyConfig


class BackoffPolicy:
    """Maps a 1-based retry number to a wait duration in seconds.

    ``delay(n) = min(base_delay * backoff_multiplier ** (n - 1), max_delay)``

    No jitter is applied, so independent orchestrators retrying the same
    failure will retry in lockstep.
    """

    def __init__(self, config: RetryPolicyConfig = RetryPolicyConfig()):
        self.config = config

    def delay(self, attempt_number: int) -> float:
        if attempt_number < 1:
            raise ValueError(f"attempt_number must be >= 1, got {attempt_number}")
        cfg = self.config
        try:
            raw = cfg.base_delay * cfg.backoff_multiplier ** (attempt_number - 1)
        except OverflowError:
            return cfg.max_delay
        return min(raw, cfg.max_delay)
