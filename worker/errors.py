"""
Error taxonomy for the scrape pipeline and user-safe error summaries.

Attempt-level errors (launch, navigation, block, extraction) never reach
callers: the orchestrator turns them into retry decisions. Only
ValidationError (before any attempt) and ExhaustedError (after all
attempts) are surfaced. Messages exposed to callers must come from
USER_SAFE_ERROR_SUMMARIES; detailed errors stay in logs only.
"""

from __future__ import annotations

from typing import Optional

# Canonical user-safe strings (no raw exception content in API responses).
USER_SAFE_ERROR_SUMMARIES = frozenset(
    {
        "Browser launch failed",
        "Extraction failed",
        "Navigation failed",
        "Request deadline exceeded",
        "Tracking information not found",
        "Tracking number is required",
        "Tracking number is invalid",
        "Tracking page blocked",
    }
)


class ScrapeError(Exception):
    """Base class for all pipeline errors."""

    kind = "scrape_error"
    summary = "Tracking information not found"

    def __init__(self, message: str = "", *, detail: Optional[str] = None) -> None:
        super().__init__(message or self.summary)
        self.message = message or self.summary
        self.detail = detail


class ValidationError(ScrapeError):
    """Missing or malformed tracking number; raised before any attempt starts."""

    kind = "validation"
    summary = "Tracking number is invalid"


class AttemptError(ScrapeError):
    """Failure scoped to a single attempt; converted into a retry decision."""

    kind = "attempt_error"


class LaunchError(AttemptError):
    kind = "launch"
    summary = "Browser launch failed"


class NavigationError(AttemptError):
    """Both the primary and the fallback page loads failed."""

    kind = "navigation"
    summary = "Navigation failed"


class BlockedError(AttemptError):
    """A bot-detection indicator was observed on the loaded page."""

    kind = "blocked"
    summary = "Tracking page blocked"

    def __init__(self, message: str = "", *, indicator: str = "", detail: Optional[str] = None):
        super().__init__(message, detail=detail)
        self.indicator = indicator


class ExtractionError(AttemptError):
    """The rendered state could not be read at all."""

    kind = "extraction"
    summary = "Extraction failed"


class ExhaustedError(ScrapeError):
    """All attempts were spent without usable data."""

    kind = "exhausted"
    summary = "Tracking information not found"

    def __init__(
        self,
        message: str = "",
        *,
        reason: str = "not_found",
        attempts: int = 0,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message, detail=detail)
        self.reason = reason
        self.attempts = attempts


def get_user_safe_error_summary(
    exc: BaseException,
    fallback: str = "Tracking information not found",
) -> str:
    """
    Return a user-safe error summary for API responses.

    No raw exception messages or stack traces. A pipeline error's message is
    only used if it matches the allowlist of known safe summaries.
    """
    if isinstance(exc, ScrapeError):
        msg = exc.message.strip()
        if msg in USER_SAFE_ERROR_SUMMARIES:
            return msg
        if exc.summary in USER_SAFE_ERROR_SUMMARIES:
            return exc.summary
    return fallback
