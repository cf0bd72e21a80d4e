"""Domain Events related to batch submission and resilience.

Examples include events for when attempts are deferred by the rate limiter,
retried, fail, or succeed.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class SubmissionStarted(DomainEvent):
    """A submit() call passed validation and is entering admission."""
    issue_count: int
    max_retries: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class AdmissionDeferred(DomainEvent):
    """The rate limiter denied admission; the orchestrator will re-poll."""
    wait_seconds: float
    requests_in_window: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class AttemptStarted(DomainEvent):
    """A delivery attempt was admitted and handed to the transport."""
    attempt_number: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class AttemptFailed(DomainEvent):
    """A single delivery attempt failed."""
    attempt_number: int
    error_message: str
    retryable: bool
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """A backoff wait was scheduled before the next attempt."""
    attempt_number: int  # 1-based retry index passed to the backoff policy
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class SubmissionSucceeded(DomainEvent):
    """The batch was delivered."""
    attempt_number: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class SubmissionFailed(DomainEvent):
    """The submission ended without delivering the batch."""
    outcome: str
    error_message: str
    attempt_number: int
    last_error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
