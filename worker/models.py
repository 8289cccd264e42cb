"""
Value objects produced by the scrape pipeline.

Extracted fields are plain strings and fall back to SENTINEL when the
source node is absent; they are never None.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal, Optional, Union

SENTINEL = "N/A"

AttemptStatus = Literal["success", "empty", "error", "cancelled"]


@dataclass(frozen=True)
class TrackingEvent:
    """One row of the tracking history, in page order."""

    date: str = SENTINEL
    time: str = SENTINEL
    status: str = SENTINEL
    courier: str = SENTINEL

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ParcelInfo:
    """Parcel summary read from the attributes table."""

    tracking_number: str = SENTINEL
    origin: str = SENTINEL
    destination: str = SENTINEL
    courier: str = SENTINEL
    days_in_transit: str = SENTINEL
    tracking_link: str = SENTINEL

    def to_dict(self) -> dict:
        return asdict(self)

    def missing_fields(self) -> list[str]:
        """Names of fields still holding the sentinel."""
        return [name for name, value in asdict(self).items() if value == SENTINEL]


@dataclass(frozen=True)
class ExtractionResult:
    events: tuple[TrackingEvent, ...]
    parcel: ParcelInfo


@dataclass
class AttemptRecord:
    """Ephemeral record of one attempt; owns exactly one browser session while running."""

    number: int
    started_at: datetime
    status: Optional[AttemptStatus] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None
    duration_ms: Optional[float] = None
    event_count: int = 0


@dataclass(frozen=True)
class ScrapeSuccess:
    events: tuple[TrackingEvent, ...]
    parcel: ParcelInfo
    attempts: tuple[AttemptRecord, ...] = field(default_factory=tuple)

    ok = True


@dataclass(frozen=True)
class ScrapeFailure:
    # not_found, deadline_exceeded, or the last attempt error's kind
    kind: str
    message: str
    attempts: tuple[AttemptRecord, ...] = field(default_factory=tuple)

    ok = False


ScrapeOutcome = Union[ScrapeSuccess, ScrapeFailure]
