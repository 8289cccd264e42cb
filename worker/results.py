"""
Terminal result packaging for callers of the scrape pipeline.
"""

from __future__ import annotations

from worker.errors import ExhaustedError
from worker.models import ScrapeFailure, ScrapeOutcome, ScrapeSuccess


def success_payload(outcome: ScrapeSuccess) -> dict:
    """`{"tracking_details": [...], "parcel_info": {...}}` in page order."""
    return {
        "tracking_details": [event.to_dict() for event in outcome.events],
        "parcel_info": outcome.parcel.to_dict(),
    }


def assemble_result(outcome: ScrapeOutcome) -> dict:
    """
    Success payload, or ExhaustedError for a failed run.

    The error message is the user-safe summary; the reason carries the
    failure kind (not_found, deadline_exceeded, blocked, ...).
    """
    if isinstance(outcome, ScrapeSuccess):
        return success_payload(outcome)
    if isinstance(outcome, ScrapeFailure):
        raise ExhaustedError(
            reason=outcome.kind,
            attempts=len(outcome.attempts),
            detail=outcome.message,
        )
    raise TypeError(f"Unsupported outcome type: {type(outcome).__name__}")
