"""
Tracking data extraction from a rendered page snapshot.

Pure functions: HTML in, TrackingEvent / ParcelInfo values out. No
navigation, no retry decisions, no session handling. Missing nodes or
sub-fields become the sentinel; a failure inside one event node never
aborts extraction of the others.
"""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup, Tag

from shared.logging import get_logger
from worker.crawl.constants import (
    EVENT_FIELD_SELECTORS,
    EVENT_SELECTOR,
    PARCEL_CONTAINER_SELECTOR,
    PARCEL_FIELD_SELECTORS,
    TRACKING_LINK_SELECTOR,
)
from worker.crawl.text import or_sentinel
from worker.errors import ExtractionError
from worker.models import SENTINEL, ExtractionResult, ParcelInfo, TrackingEvent

logger = get_logger(__name__)


def parse_snapshot(html: str) -> BeautifulSoup:
    """Parse a serialized DOM snapshot; raises ExtractionError if it is not readable."""
    if not isinstance(html, str):
        raise ExtractionError(detail=f"snapshot is {type(html).__name__}, expected str")
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as e:
        raise ExtractionError(detail=str(e)) from e


def _node_text(node: Optional[Tag]) -> str:
    """Visible text of a node, or the sentinel. Inputs contribute their value."""
    if node is None:
        return SENTINEL
    if node.name == "input":
        return or_sentinel(node.get("value"))
    return or_sentinel(node.get_text(" ", strip=True))


def _select_text(root: Tag, selector: str) -> str:
    try:
        return _node_text(root.select_one(selector))
    except Exception as e:
        logger.warning("extraction.field_failed", selector=selector, error=str(e))
        return SENTINEL


def extract_event(node: Tag) -> TrackingEvent:
    """Read one event node; absent sub-fields fall back to the sentinel."""
    fields = {name: _select_text(node, selector) for name, selector in EVENT_FIELD_SELECTORS.items()}
    return TrackingEvent(**fields)


def extract_tracking_events(soup: BeautifulSoup) -> list[TrackingEvent]:
    """All event nodes in document order."""
    events: list[TrackingEvent] = []
    for index, node in enumerate(soup.select(EVENT_SELECTOR)):
        try:
            events.append(extract_event(node))
        except Exception as e:
            logger.warning("extraction.event_failed", index=index, error=str(e))
            events.append(TrackingEvent())
    return events


def extract_parcel_info(soup: BeautifulSoup) -> ParcelInfo:
    """
    Parcel summary by fixed positional lookup inside the attributes container.

    Row order is a contract with the page layout (row 5 is skipped on
    purpose). Without the container every table field is the sentinel.
    """
    container = soup.select_one(PARCEL_CONTAINER_SELECTOR)
    if container is None:
        fields = {name: SENTINEL for name in PARCEL_FIELD_SELECTORS}
    else:
        fields = {
            name: _select_text(container, selector)
            for name, selector in PARCEL_FIELD_SELECTORS.items()
        }
    fields["tracking_link"] = _select_text(soup, TRACKING_LINK_SELECTOR)
    return ParcelInfo(**fields)


def extract_tracking_data(html: str) -> ExtractionResult:
    """Convert a rendered page snapshot into events and parcel info."""
    soup = parse_snapshot(html)
    events = extract_tracking_events(soup)
    parcel = extract_parcel_info(soup)
    logger.info(
        "extraction.complete",
        event_count=len(events),
        parcel_missing_fields=parcel.missing_fields(),
    )
    return ExtractionResult(events=tuple(events), parcel=parcel)
