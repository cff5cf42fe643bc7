"""
Submission guard - Single-flight lock around one asynchronous operation.

Submission State Machine
========================

States:
- IDLE: No submission in progress, a submit-intent is accepted
- PENDING: Operation in flight, further submit-intents are rejected as busy
- SUCCEEDED: Operation completed, outcome not yet acknowledged
- FAILED: Operation reported failure, outcome not yet acknowledged

Valid Transitions:
    IDLE -> PENDING          (submit accepted)
    PENDING -> SUCCEEDED     (operation returned)
    PENDING -> FAILED        (operation raised SubmissionFailed or timed out)
    SUCCEEDED -> IDLE        (caller acknowledged)
    FAILED -> IDLE           (caller acknowledged)

A submit-intent in any state other than IDLE raises SubmissionBusyError and
never invokes the operation. No cancellation: an accepted submit runs to
completion.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import IllegalTransition, SubmissionBusyError, SubmissionFailed

logger = logging.getLogger(__name__)

TIMEOUT_REASON = "timed out"


class SubmissionStatus(str, Enum):
    """Lifecycle of one submission."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one accepted submit-intent."""

    status: SubmissionStatus
    reason: str | None = None
    result: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status is SubmissionStatus.SUCCEEDED


class SubmissionGuard:
    """
    Guards one asynchronous operation so at most one runs at a time.

    The guard is single-threaded and cooperative: the busy check and the
    transition to PENDING happen before the first await, so no other
    coroutine can interleave between them.
    """

    def __init__(self, name: str = "submission", timeout: float | None = None) -> None:
        """
        Initialize an idle guard.

        Args:
            name: Label used in log messages
            timeout: Seconds before an in-flight operation is treated as failed,
                or None to wait indefinitely
        """
        self.name = name
        self.timeout = timeout
        self._status = SubmissionStatus.IDLE
        self._outcome: SubmissionOutcome | None = None

    @property
    def status(self) -> SubmissionStatus:
        return self._status

    @property
    def pending(self) -> bool:
        """True while an operation is in flight."""
        return self._status is SubmissionStatus.PENDING

    @property
    def outcome(self) -> SubmissionOutcome | None:
        """Unacknowledged outcome, if any."""
        return self._outcome

    async def submit(
        self,
        payload: Any,
        operation: Callable[[Any], Awaitable[Any]],
        on_success: Callable[[SubmissionOutcome], None] | None = None,
        on_failure: Callable[[SubmissionOutcome], None] | None = None,
    ) -> SubmissionOutcome:
        """
        Run operation(payload) unless another submission is outstanding.

        Exactly one of on_success / on_failure runs per accepted submit.
        The outcome stays in place until acknowledge() is called.

        Args:
            payload: Value handed to the operation
            operation: Coroutine function performing the external call.
                Reports failure by raising SubmissionFailed.
            on_success: Called with the outcome when the operation returns
            on_failure: Called with the outcome when the operation fails

        Returns:
            SubmissionOutcome with SUCCEEDED or FAILED status

        Raises:
            SubmissionBusyError: If the guard is not idle
        """
        if self._status is not SubmissionStatus.IDLE:
            logger.info("[%s] Rejected duplicate submit while %s", self.name, self._status.value)
            raise SubmissionBusyError(self.name)

        self._status = SubmissionStatus.PENDING
        logger.debug("[%s] Submission pending", self.name)

        try:
            if self.timeout is None:
                result = await operation(payload)
            else:
                result = await asyncio.wait_for(operation(payload), timeout=self.timeout)
        except SubmissionFailed as exc:
            outcome = SubmissionOutcome(SubmissionStatus.FAILED, reason=exc.reason)
        except asyncio.TimeoutError:
            outcome = SubmissionOutcome(SubmissionStatus.FAILED, reason=TIMEOUT_REASON)
        except BaseException:
            # Collaborator crash: leave the guard usable and let the error surface
            self._status = SubmissionStatus.IDLE
            raise
        else:
            outcome = SubmissionOutcome(SubmissionStatus.SUCCEEDED, result=result)

        self._status = outcome.status
        self._outcome = outcome
        logger.info("[%s] Submission %s", self.name, outcome.status.value)

        if outcome.succeeded:
            if on_success is not None:
                on_success(outcome)
        elif on_failure is not None:
            on_failure(outcome)

        return outcome

    def acknowledge(self) -> SubmissionOutcome:
        """
        Consume the current outcome and return to IDLE.

        Raises:
            IllegalTransition: If there is no outcome to acknowledge
        """
        if self._outcome is None:
            raise IllegalTransition(f"{self.name}: nothing to acknowledge while {self._status.value}")

        outcome = self._outcome
        self._outcome = None
        self._status = SubmissionStatus.IDLE
        return outcome

    def reset(self) -> None:
        """
        Drop any unacknowledged outcome.

        Raises:
            IllegalTransition: If an operation is in flight
        """
        if self.pending:
            raise IllegalTransition(f"{self.name}: cannot reset while pending")
        self._outcome = None
        self._status = SubmissionStatus.IDLE
