"""
Blocked-page detection: CAPTCHA widgets, challenge pages, access-denied and
error banners.

Detection is deterministic, does not mutate the DOM, and works on the same
serialized snapshot the extractor reads. A page flagged here must not be
extracted: an empty result from a challenge page is not something a plain
retry resolves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup
from playwright.async_api import Page

from shared.logging import get_logger
from worker.crawl.constants import (
    BLOCK_INDICATOR_SELECTORS,
    BLOCK_TEXT_INDICATORS,
    BLOCKING_STATUSES,
    EVENT_SELECTOR,
    PARCEL_CONTAINER_SELECTOR,
)
from worker.crawl.extraction import parse_snapshot
from worker.crawl.text import normalize_whitespace
from worker.errors import BlockedError, ExtractionError

logger = get_logger(__name__)


@dataclass(frozen=True)
class BlockIndicator:
    """What matched: a selector, a text phrase, or a response status."""

    source: str  # "selector" | "text" | "status"
    value: str

    def __str__(self) -> str:
        return f"{self.source}:{self.value}"


def _visible_text(soup: BeautifulSoup) -> str:
    """Page text outside scripts and tracking content; event statuses may quote block phrases."""
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    for tag in soup.select(f"{EVENT_SELECTOR}, {PARCEL_CONTAINER_SELECTOR}"):
        tag.decompose()
    return normalize_whitespace(soup.get_text(" ")).lower()


def find_block_indicator(html: str, status: Optional[int] = None) -> Optional[BlockIndicator]:
    """
    Return the first blocking indicator found in the snapshot, or None.

    Order: widget/banner selectors, then title and visible text phrases,
    then a blocking HTTP status from the navigation response.
    """
    soup = parse_snapshot(html)

    for selector in BLOCK_INDICATOR_SELECTORS:
        if soup.select_one(selector) is not None:
            return BlockIndicator("selector", selector)

    title = normalize_whitespace(soup.title.get_text()).lower() if soup.title else ""
    body_text = _visible_text(soup)
    combined = f"{title} {body_text}"
    for phrase in BLOCK_TEXT_INDICATORS:
        if phrase in combined:
            return BlockIndicator("text", phrase)

    if status in BLOCKING_STATUSES:
        return BlockIndicator("status", str(status))

    return None


def ensure_not_blocked(html: str, status: Optional[int] = None) -> None:
    """Raise BlockedError when the snapshot shows a blocking indicator."""
    indicator = find_block_indicator(html, status)
    if indicator is None:
        return
    logger.warning("block.detected", indicator=str(indicator), status=status)
    raise BlockedError(indicator=str(indicator), detail=f"blocking indicator {indicator}")


async def read_snapshot(page: Page) -> str:
    """Serialize the rendered DOM; failures here are extraction failures."""
    try:
        return await page.content()
    except Exception as e:
        raise ExtractionError(detail=f"page.content failed: {e}") from e


async def check_for_block(page: Page, status: Optional[int] = None) -> str:
    """
    Read the page snapshot and raise BlockedError if it is blocked.

    Returns the snapshot so the caller can extract from the same state.
    """
    html = await read_snapshot(page)
    ensure_not_blocked(html, status)
    return html
