"""API Resilience Implementations.

Contains the sliding-window rate limiter, exponential backoff policy,
transient error classifier and the submission orchestrator that composes them.
Bounded Context: API Resilience
"""

from issuerelay.infrastructure.resilience.backoff import BackoffPolicy
from issuerelay.infrastructure.resilience.clock import MonotonicClock
from issuerelay.infrastructure.resilience.error_classifier import ErrorClassifier
from issuerelay.infrastructure.resilience.orchestrator import SubmissionOrchestrator
from issuerelay.infrastructure.resilience.rate_limiter import SlidingWindowLimiter

__all__ = [
    "BackoffPolicy",
    "ErrorClassifier",
    "MonotonicClock",
    "SlidingWindowLimiter",
    "SubmissionOrchestrator",
]
