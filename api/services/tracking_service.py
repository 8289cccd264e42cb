"""
Service layer for tracking lookups.

Validates the tracking number before any browser work starts, runs the
retry orchestrator and packages its outcome for the route handlers.
"""

from __future__ import annotations

import re
from typing import Optional

from shared.logging import get_logger
from worker.errors import ValidationError
from worker.orchestrator import RetryOrchestrator
from worker.results import assemble_result

logger = get_logger(__name__)

# Carrier formats vary widely; letters, digits and dashes cover them.
TRACKING_NUMBER_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9-]{2,63}$")


def normalize_tracking_number(raw: Optional[str]) -> str:
    """
    Normalize a tracking number to a consistent format.

    - Strips surrounding and embedded whitespace
    - Uppercases letters
    - Requires 3-64 characters of letters, digits or dashes

    Raises ValidationError for a missing or malformed value.
    """
    if raw is None or not raw.strip():
        raise ValidationError("Tracking number is required")
    value = re.sub(r"\s+", "", raw).upper()
    if not TRACKING_NUMBER_PATTERN.match(value):
        raise ValidationError("Tracking number is invalid", detail=f"rejected value {raw!r}")
    return value


class TrackingService:
    def __init__(self, orchestrator: RetryOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def track(self, raw_tracking_number: Optional[str]) -> dict:
        """
        Return the tracking payload for a tracking number.

        Raises ValidationError before any attempt for bad input, and
        ExhaustedError when every attempt came back without data.
        """
        tracking_number = normalize_tracking_number(raw_tracking_number)
        outcome = await self.orchestrator.run(tracking_number)
        return assemble_result(outcome)
