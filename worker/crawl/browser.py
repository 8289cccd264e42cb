"""
Browser session lifecycle: one Chromium process, context and page per attempt.

Sessions are never pooled or reused. `BrowserSession.close()` is idempotent
so both the success path and cleanup paths may call it. The manager caps the
number of browser processes alive at once across concurrent requests.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from shared.config import AppConfig
from shared.logging import get_logger
from worker.crawl.constants import LOCALE, TIMEZONE_ID, VIEWPORT
from worker.errors import LaunchError

logger = get_logger(__name__)


async def create_browser_context(
    browser: Browser,
    user_agent: str,
    accept_language: str,
) -> BrowserContext:
    """
    Create a browser context with the given user agent.

    Uses stable viewport, locale and timezone for anti-bot considerations.
    """
    context = await browser.new_context(
        viewport=dict(VIEWPORT),
        user_agent=user_agent,
        timezone_id=TIMEZONE_ID,
        locale=LOCALE,
        extra_http_headers={"Accept-Language": accept_language},
    )

    return context


def build_launch_options(config: AppConfig) -> dict[str, Any]:
    """Keyword arguments for `chromium.launch` derived from config."""
    options: dict[str, Any] = {
        "headless": config.headless,
        "args": list(config.launch_args),
        "timeout": config.launch_timeout_ms,
    }
    if config.browser_executable_path:
        options["executable_path"] = config.browser_executable_path
    if config.proxy:
        options["proxy"] = config.proxy
    return options


class BrowserSession:
    """Live browser handle plus its single page, owned by one attempt."""

    def __init__(
        self,
        playwright: Optional[Playwright],
        browser: Optional[Browser],
        context: Optional[BrowserContext],
        page: Optional[Page],
        user_agent: str = "",
    ) -> None:
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.page = page
        self.user_agent = user_agent
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """
        Release page, context, browser and driver, in that order.

        Safe to call more than once; only the first call does work. Errors
        from individual steps are logged and do not stop the remaining steps.
        """
        if self._closed:
            return
        self._closed = True

        steps = (
            ("page", self.page, "close"),
            ("context", self.context, "close"),
            ("browser", self.browser, "close"),
            ("playwright", self.playwright, "stop"),
        )
        for name, handle, method in steps:
            if handle is None:
                continue
            try:
                await getattr(handle, method)()
            except Exception as e:
                logger.warning(
                    "session.close_step_failed",
                    step=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        self.page = None
        self.context = None
        self.browser = None
        self.playwright = None
        logger.info("session.closed")


class SessionManager:
    """Launches one browser session per attempt."""

    def __init__(
        self,
        config: AppConfig,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.config = config
        self._playwright_factory = playwright_factory
        self._slots = asyncio.Semaphore(config.max_concurrent_sessions)
        self.opened = 0

    @asynccontextmanager
    async def session_slot(self) -> AsyncIterator[None]:
        """Hold one of the `max_concurrent_sessions` slots for the duration of an attempt."""
        if self._slots.locked():
            logger.info("session.waiting_for_slot", limit=self.config.max_concurrent_sessions)
        async with self._slots:
            yield

    async def open(self, user_agent: str) -> BrowserSession:
        """
        Start the driver, launch Chromium and open one page.

        Raises LaunchError if any step fails; partially started resources are
        released before raising.
        """
        session = BrowserSession(None, None, None, None, user_agent=user_agent)
        launch_options = build_launch_options(self.config)
        logger.info(
            "session.launching",
            headless=self.config.headless,
            proxy=bool(self.config.proxy),
            executable_path=self.config.browser_executable_path,
        )
        try:
            session.playwright = await self._playwright_factory().start()
            session.browser = await session.playwright.chromium.launch(**launch_options)
            session.context = await create_browser_context(
                session.browser, user_agent, self.config.accept_language
            )
            session.page = await session.context.new_page()
        except asyncio.CancelledError:
            await session.close()
            raise
        except Exception as e:
            logger.error("session.launch_failed", error=str(e), error_type=type(e).__name__)
            await session.close()
            raise LaunchError(detail=str(e)) from e

        self.opened += 1
        logger.info("session.launched")
        return session
