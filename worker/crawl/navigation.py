"""
Two-phase navigation and the bounded content-ready wait.

Primary load uses the stricter wait condition; on timeout or a network
error the page is loaded again with the looser fallback condition. Only
when both fail does the attempt fail with NavigationError. The
content-ready wait afterwards is best effort: late or partial content is
still worth reading.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Literal, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.config import AppConfig
from shared.logging import get_logger
from worker.crawl.constants import CONTENT_READY_SELECTOR
from worker.errors import NavigationError

logger = get_logger(__name__)

Strategy = Literal["primary", "fallback"]


@dataclass
class NavigateResult:
    """Result of navigate()."""

    strategy: Strategy
    status: Optional[int]
    url: str
    elapsed_ms: float


def classify_failure(exc: BaseException) -> str:
    """
    Classify a navigation failure for logging.

    One of: navigation_timeout, net_err, other.
    """
    if isinstance(exc, PlaywrightTimeoutError):
        return "navigation_timeout"
    msg = (getattr(exc, "message", None) or str(exc)).lower()
    if "net::err_" in msg:
        return "net_err"
    return "other"


async def _goto(page: Page, url: str, wait_until: str, timeout_ms: int) -> Optional[int]:
    response = await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    # about:blank and same-document navigations yield no response
    return response.status if response is not None else None


async def navigate(page: Page, url: str, config: AppConfig) -> NavigateResult:
    """
    Load `url` with the primary strategy, falling back once on failure.

    Raises NavigationError when both loads fail.
    """
    start = time.monotonic()
    logger.info(
        "navigation.attempt",
        url=url,
        strategy="primary",
        wait_until=config.primary_wait_until,
        timeout_ms=config.primary_nav_timeout_ms,
    )
    try:
        status = await _goto(
            page, url, config.primary_wait_until, config.primary_nav_timeout_ms
        )
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info("navigation.success", strategy="primary", status=status, elapsed_ms=elapsed_ms)
        return NavigateResult("primary", status, url, elapsed_ms)
    except PlaywrightError as e:
        logger.warning(
            "navigation.fallback",
            url=url,
            failure_classification=classify_failure(e),
            error=str(e),
            wait_until=config.fallback_wait_until,
            timeout_ms=config.fallback_nav_timeout_ms,
        )

    try:
        status = await _goto(
            page, url, config.fallback_wait_until, config.fallback_nav_timeout_ms
        )
    except PlaywrightError as e:
        reason = classify_failure(e)
        logger.error(
            "navigation.failed",
            url=url,
            failure_classification=reason,
            error=str(e),
        )
        raise NavigationError(detail=f"{reason}: {e}") from e

    elapsed_ms = (time.monotonic() - start) * 1000
    logger.info("navigation.success", strategy="fallback", status=status, elapsed_ms=elapsed_ms)
    return NavigateResult("fallback", status, url, elapsed_ms)


async def wait_for_content_ready(page: Page, timeout_ms: int) -> bool:
    """
    Wait until the event list or a block indicator is attached to the DOM.

    Returns False on timeout (or any wait error); never raises for that.
    """
    try:
        await page.wait_for_selector(CONTENT_READY_SELECTOR, state="attached", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        logger.warning("navigation.content_ready_timeout", timeout_ms=timeout_ms)
        return False
    except PlaywrightError as e:
        logger.warning("navigation.content_ready_failed", error=str(e))
        return False
    logger.info("navigation.content_ready")
    return True
