"""
Retry orchestration for a single tracking request.

State machine: RUNNING(1) -> ... -> RUNNING(n) -> SUCCESS | FAILURE.

- An attempt with at least one event ends the run with SUCCESS.
- An empty attempt or an attempt error (launch, navigation, block,
  extraction) leads to a retry after `retry_delay_ms`, until
  `max_attempts` is reached; then FAILURE.
- Each attempt's session is closed inside the attempt, before the retry
  delay starts.
- An optional overall deadline cancels the in-flight attempt and ends the
  run with FAILURE(deadline_exceeded).

Unexpected exceptions (anything that is not an AttemptError) propagate to
the caller.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional
from uuid import uuid4

from shared.config import AppConfig
from shared.logging import bind_request_context, clear_request_context, get_logger
from worker.artifacts import ArtifactSink, AttemptContext, build_artifact_sink
from worker.attempt import run_attempt
from worker.crawl.browser import SessionManager
from worker.errors import AttemptError
from worker.models import (
    AttemptRecord,
    ExtractionResult,
    ScrapeFailure,
    ScrapeOutcome,
    ScrapeSuccess,
)

logger = get_logger(__name__)

AttemptRunner = Callable[[AttemptContext], Awaitable[ExtractionResult]]

NOT_FOUND_MESSAGE = "Tracking information not found"
DEADLINE_MESSAGE = "Request deadline exceeded"


class OrchestratorState(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


class RetryOrchestrator:
    """
    Drives up to `config.max_attempts` independent attempts for one tracking number.

    One instance is shared by all requests of a process; it holds no
    per-request state. `attempt_runner` replaces the browser pipeline in tests.
    """

    def __init__(
        self,
        config: AppConfig,
        session_manager: Optional[SessionManager] = None,
        artifact_sink: Optional[ArtifactSink] = None,
        *,
        attempt_runner: Optional[AttemptRunner] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.session_manager = session_manager or SessionManager(config)
        self.artifact_sink = artifact_sink or build_artifact_sink(config)
        self._attempt_runner = attempt_runner or self._run_browser_attempt
        self._sleep = sleep

    async def _run_browser_attempt(self, ctx: AttemptContext) -> ExtractionResult:
        return await run_attempt(ctx, self.config, self.session_manager, self.artifact_sink)

    async def run(self, tracking_number: str, request_id: Optional[str] = None) -> ScrapeOutcome:
        """Run the attempt loop for an already-validated tracking number."""
        request_id = request_id or str(uuid4())
        bind_request_context(request_id=request_id, tracking_number=tracking_number)
        attempts: list[AttemptRecord] = []
        deadline = self.config.request_deadline_seconds
        logger.info(
            "orchestrator.started",
            max_attempts=self.config.max_attempts,
            retry_delay_ms=self.config.retry_delay_ms,
            deadline_s=deadline or None,
        )
        try:
            if deadline > 0:
                return await self._run_with_deadline(tracking_number, request_id, attempts, deadline)
            return await self._run_attempts(tracking_number, request_id, attempts)
        finally:
            clear_request_context("request_id", "tracking_number", "attempt")

    async def _run_with_deadline(
        self,
        tracking_number: str,
        request_id: str,
        attempts: list[AttemptRecord],
        deadline: float,
    ) -> ScrapeOutcome:
        """
        Run the attempt loop as a task and cancel it once `deadline` elapses.

        Only the elapsed deadline yields FAILURE(deadline_exceeded); a
        TimeoutError raised by an attempt itself propagates like any other
        unexpected error.
        """
        task = asyncio.ensure_future(self._run_attempts(tracking_number, request_id, attempts))
        try:
            done, _ = await asyncio.wait({task}, timeout=deadline)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise
        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.error(
            "orchestrator.deadline_exceeded",
            deadline_s=deadline,
            attempts_made=len(attempts),
        )
        return ScrapeFailure("deadline_exceeded", DEADLINE_MESSAGE, tuple(attempts))

    async def _run_attempts(
        self,
        tracking_number: str,
        request_id: str,
        attempts: list[AttemptRecord],
    ) -> ScrapeOutcome:
        max_attempts = self.config.max_attempts
        delay_s = self.config.retry_delay_ms / 1000

        for number in range(1, max_attempts + 1):
            record = AttemptRecord(number=number, started_at=datetime.now(timezone.utc))
            attempts.append(record)
            bind_request_context(attempt=number)
            logger.info("attempt.started", state=OrchestratorState.RUNNING.value)
            ctx = AttemptContext(request_id, tracking_number, number)
            start = time.monotonic()
            try:
                result = await self._attempt_runner(ctx)
            except AttemptError as e:
                record.status = "error"
                record.error_kind = e.kind
                record.message = e.message
                logger.warning(
                    "attempt.failed",
                    error_kind=e.kind,
                    error=e.message,
                    detail=e.detail,
                )
            except asyncio.CancelledError:
                record.status = "cancelled"
                logger.warning("attempt.cancelled")
                raise
            else:
                record.event_count = len(result.events)
                if result.events:
                    record.status = "success"
                    logger.info(
                        "orchestrator.transition",
                        state=OrchestratorState.SUCCESS.value,
                        event_count=record.event_count,
                    )
                    return ScrapeSuccess(result.events, result.parcel, tuple(attempts))
                record.status = "empty"
                logger.warning("attempt.empty")
            finally:
                record.duration_ms = (time.monotonic() - start) * 1000

            if number < max_attempts:
                logger.info(
                    "orchestrator.retry",
                    next_attempt=number + 1,
                    delay_ms=self.config.retry_delay_ms,
                )
                await self._sleep(delay_s)

        last = attempts[-1]
        if last.status == "empty":
            kind, message = "not_found", NOT_FOUND_MESSAGE
        else:
            kind, message = last.error_kind or "error", last.message or NOT_FOUND_MESSAGE
        logger.warning(
            "orchestrator.transition",
            state=OrchestratorState.FAILURE.value,
            reason=kind,
            attempts_made=len(attempts),
        )
        return ScrapeFailure(kind, message, tuple(attempts))
