"""Service for submitting batches with admission control and retries.

Turns one best-effort transport call into a policy-governed sequence of
attempts: every attempt is admitted by a sliding-window rate limiter,
transient failures are retried with exponential backoff up to a fixed
budget, and terminal failures end the submission immediately.

Liveness caveat: waiting for rate-limiter admission is not a retry and is
not bounded. A limiter that stays saturated (e.g. because another user of the
same orchestrator keeps it full) stalls ``submit`` indefinitely unless the
caller passes a ``cancel_event`` or ``deadline``.
"""

import asyncio
import enum
import logging
from typing import Any, Callable, Optional

from issuerelay.domain.events.submission_events import (
    AdmissionDeferred, AttemptFailed, AttemptStarted, DomainEvent,
    RetryScheduled, SubmissionFailed, SubmissionStarted, SubmissionSucceeded,
)
from issuerelay.domain.interfaces.clock import Clock
from issuerelay.domain.interfaces.transport import TransportClient
from issuerelay.domain.models.config import RateLimitConfig, RetryPolicyConfig
from issuerelay.domain.models.submission import (
    BatchPayload, SubmissionOutcome, SubmissionResult, TransportResponse,
)
from issuerelay.infrastructure.resilience.backoff import BackoffPolicy
from issuerelay.infrastructure.resilience.clock import MonotonicClock
from issuerelay.infrastructure.resilience.error_classifier import ErrorClassifier
from issuerelay.infrastructure.resilience.rate_limiter import SlidingWindowLimiter

logger = logging.getLogger(__name__)

EMPTY_PAYLOAD_MESSAGE = "Invalid payload: batch contains no issues"
NO_MESSAGE_ERROR = "transport reported failure without an error message"

EventSink = Callable[[DomainEvent], None]


class SubmissionState(enum.Enum):
    """States of a single submit() call."""
    IDLE = "idle"
    ADMITTING = "admitting"
    ATTEMPTING = "attempting"
    RETRY_WAIT = "retry_wait"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _log_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


class SubmissionOrchestrator:
    """Executes the attempt/retry protocol for one batch at a time.

    One instance owns one rate limiter whose timestamp log accumulates across
    submissions until ``reset_rate_limiter`` is called. Concurrent ``submit``
    calls on the same instance are serialized by an internal lock; use one
    orchestrator per independent submission stream to run them in parallel.
    """

    def __init__(
        self,
        transport: TransportClient,
        retry_config: RetryPolicyConfig = RetryPolicyConfig(),
        rate_limit_config: RateLimitConfig = RateLimitConfig(),
        clock: Optional[Clock] = None,
        classifier: Optional[ErrorClassifier] = None,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the orchestrator.

        Args:
            transport: Performs a single delivery attempt.
            retry_config: Retry budget and backoff parameters.
            rate_limit_config: Admission budget per trailing window.
            clock: Time source; defaults to a real monotonic clock.
            classifier: Transient/terminal error predicate.
            event_sink: Receives domain events; defaults to debug logging.
        """
        self.transport = transport
        self.clock = clock or MonotonicClock()
        self.classifier = classifier or ErrorClassifier()
        self.limiter = SlidingWindowLimiter(rate_limit_config)
        self._retry_config = retry_config
        self.backoff = BackoffPolicy(retry_config)
        self._event_sink = event_sink or _log_event
        self._lock = asyncio.Lock()
        self.state = SubmissionState.IDLE

        logger.info(
            f"SubmissionOrchestrator initialized: max_retries={retry_config.max_retries}, "
            f"base_delay={retry_config.base_delay}s, max_delay={retry_config.max_delay}s, "
            f"factor={retry_config.backoff_multiplier}, "
            f"rate_limit={rate_limit_config.max_requests}/{rate_limit_config.window_seconds}s"
        )

    # --- Configuration ---

    @property
    def retry_config(self) -> RetryPolicyConfig:
        return self._retry_config

    @property
    def rate_limit_config(self) -> RateLimitConfig:
        return self.limiter.config

    def _ensure_idle(self) -> None:
        if self._lock.locked():
            raise RuntimeError("Configuration cannot change while a submission is in flight.")

    def update_retry_config(
        self, config: Optional[RetryPolicyConfig] = None, **overrides: Any
    ) -> RetryPolicyConfig:
        """Replaces the retry policy between submissions.

        Args:
            config: A complete replacement config (defaults to the current one).
            **overrides: Individual fields to change, e.g. ``max_retries=5``.

        Returns:
            The new, validated config.

        Raises:
            ConfigurationError: If the resulting config is invalid.
            RuntimeError: If a submission is currently running.
        """
        self._ensure_idle()
        new_config = config or self._retry_config
        if overrides:
            new_config = new_config.with_overrides(**overrides)
        self._retry_config = new_config
        self.backoff = BackoffPolicy(new_config)
        logger.info(f"Retry policy updated: {new_config}")
        return new_config

    def update_rate_limit_config(
        self, config: Optional[RateLimitConfig] = None, **overrides: Any
    ) -> RateLimitConfig:
        """Replaces the admission budget between submissions. See update_retry_config."""
        self._ensure_idle()
        new_config = config or self.limiter.config
        if overrides:
            new_config = new_config.with_overrides(**overrides)
        self.limiter.reconfigure(new_config)
        return new_config

    def reset_rate_limiter(self) -> None:
        self._ensure_idle()
        self.limiter.reset()

    # --- Submission ---

    async def submit(
        self,
        payload: BatchPayload,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> SubmissionResult:
        """Delivers one batch, retrying transient failures.

        Args:
            payload: The batch to deliver. Must contain at least one issue.
            cancel_event: Optional signal checked before every state
                transition; also interrupts rate-limit and backoff waits.
            deadline: Optional ``clock.now()`` value after which no new
                attempt or wait is started.

        Returns:
            Exactly one SubmissionResult. Expected failures never raise.
        """
        async with self._lock:
            return await self._run(payload, cancel_event, deadline)

    async def _run(
        self,
        payload: BatchPayload,
        cancel_event: Optional[asyncio.Event],
        deadline: Optional[float],
    ) -> SubmissionResult:
        self.state = SubmissionState.IDLE
        if payload.is_empty():
            logger.error("Refusing to submit an empty batch.")
            # Reported as attempt 1 although the transport is never called
            return self._finish_failure(SubmissionOutcome.VALIDATION_ERROR, EMPTY_PAYLOAD_MESSAGE, 1)

        # Snapshot the policy so a replacement cannot affect this call
        retry_config = self._retry_config
        backoff = self.backoff
        max_retries = retry_config.max_retries

        self._emit(SubmissionStarted(issue_count=payload.issue_count, max_retries=max_retries))
        logger.info(f"Submitting batch of {payload.issue_count} issue(s) (max_retries={max_retries}).")

        attempt = 0  # Failed attempts so far == retry slots consumed
        last_error: Optional[str] = None
        self.state = SubmissionState.ADMITTING

        while attempt <= max_retries:
            if self._is_cancelled(cancel_event, deadline):
                return self._finish_cancelled(attempt, last_error, cancel_event)

            if self.state is SubmissionState.ADMITTING:
                if self.limiter.admit(self.clock.now()):
                    self.state = SubmissionState.ATTEMPTING
                    continue
                wait_seconds = self.limiter.config.repoll_interval
                self._emit(AdmissionDeferred(
                    wait_seconds=wait_seconds,
                    requests_in_window=self.limiter.in_window(self.clock.now()),
                ))
                logger.debug(f"Admission denied; polling again in {wait_seconds:.2f}s.")
                if not await self._wait(wait_seconds, cancel_event, deadline):
                    return self._finish_cancelled(attempt, last_error, cancel_event)

            elif self.state is SubmissionState.ATTEMPTING:
                attempt_number = attempt + 1
                self._emit(AttemptStarted(attempt_number=attempt_number))
                response = await self._send(payload, attempt_number)

                if response.success:
                    self.state = SubmissionState.SUCCEEDED
                    self._emit(SubmissionSucceeded(attempt_number=attempt_number))
                    logger.info(f"Batch delivered on attempt {attempt_number}.")
                    return SubmissionResult(
                        success=True,
                        attempt_number=attempt_number,
                        outcome=SubmissionOutcome.SUCCEEDED,
                    )

                last_error = response.error or NO_MESSAGE_ERROR
                retryable = self.classifier.is_retryable(last_error)
                self._emit(AttemptFailed(
                    attempt_number=attempt_number, error_message=last_error, retryable=retryable,
                ))
                if not retryable:
                    logger.error(f"Non-retryable error on attempt {attempt_number}: {last_error}")
                    return self._finish_failure(
                        SubmissionOutcome.TERMINAL_DELIVERY_ERROR, last_error, attempt_number,
                    )

                attempt += 1
                if attempt <= max_retries:
                    self.state = SubmissionState.RETRY_WAIT
                else:
                    logger.error(f"Max retries ({max_retries}) reached. Last error: {last_error}")

            elif self.state is SubmissionState.RETRY_WAIT:
                delay = backoff.delay(attempt)
                logger.warning(
                    f"Attempt {attempt}/{max_retries + 1} failed: {last_error}. "
                    f"Retrying in {delay:.2f}s..."
                )
                self._emit(RetryScheduled(attempt_number=attempt, delay_seconds=delay))
                if not await self._wait(delay, cancel_event, deadline):
                    return self._finish_cancelled(attempt, last_error, cancel_event)
                self.state = SubmissionState.ADMITTING

        message = f"retry budget exhausted after {max_retries + 1} attempt(s); last error: {last_error}"
        return self._finish_failure(
            SubmissionOutcome.RETRY_BUDGET_EXHAUSTED, message, max_retries + 1, last_error,
        )

    async def _send(self, payload: BatchPayload, attempt_number: int) -> TransportResponse:
        """Runs one transport call; an exception counts as a failed attempt."""
        try:
            return await self.transport.send(payload)
        except Exception as e:
            logger.warning(
                f"Transport raised {type(e).__name__} on attempt {attempt_number}: {e}",
                exc_info=True,
            )
            return TransportResponse(success=False, error=str(e) or type(e).__name__)

    # --- Suspension & cancellation ---

    def _is_cancelled(self, cancel_event: Optional[asyncio.Event], deadline: Optional[float]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and self.clock.now() >= deadline

    async def _wait(
        self, seconds: float, cancel_event: Optional[asyncio.Event], deadline: Optional[float]
    ) -> bool:
        """Sleeps unless cancelled. Returns False if the submission must stop."""
        if deadline is not None and self.clock.now() + seconds > deadline:
            logger.info(f"Not waiting {seconds:.2f}s: it would end past the submission deadline.")
            return False
        await self.clock.sleep(seconds, cancel_event)
        return not self._is_cancelled(cancel_event, deadline)

    # --- Outcomes ---

    def _emit(self, event: DomainEvent) -> None:
        self._event_sink(event)

    def _finish_failure(
        self,
        outcome: SubmissionOutcome,
        message: str,
        attempt_number: int,
        last_error: Optional[str] = None,
    ) -> SubmissionResult:
        self.state = SubmissionState.FAILED
        self._emit(SubmissionFailed(
            outcome=outcome.value,
            error_message=message,
            attempt_number=attempt_number,
            last_error=last_error,
        ))
        return SubmissionResult(
            success=False, error=message, attempt_number=attempt_number, outcome=outcome,
        )

    def _finish_cancelled(
        self, attempts_made: int, last_error: Optional[str], cancel_event: Optional[asyncio.Event]
    ) -> SubmissionResult:
        reason = "cancelled" if cancel_event is not None and cancel_event.is_set() else "deadline reached"
        message = f"submission {reason} after {attempts_made} attempt(s)"
        if last_error:
            message += f"; last error: {last_error}"
        logger.warning(message)
        return self._finish_failure(SubmissionOutcome.CANCELLED, message, attempts_made, last_error)
