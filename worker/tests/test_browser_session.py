"""
Unit tests for browser session launch and release.

Covers: launch options from config, LaunchError with partial cleanup,
idempotent close, close continuing past failing steps, session slot limit.
The Playwright driver is replaced with mocks.
"""

from __future__ import annotations

import asyncio
import dataclasses
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config import DEFAULT_LAUNCH_ARGS, AppConfig
from worker.crawl.browser import BrowserSession, SessionManager, build_launch_options
from worker.errors import LaunchError

UA = "Mozilla/5.0 test"


def _config(**overrides) -> AppConfig:
    base = dataclasses.replace(
        AppConfig.from_env(),
        headless=True,
        launch_args=DEFAULT_LAUNCH_ARGS,
        launch_timeout_ms=30_000,
        browser_executable_path=None,
        proxy_server=None,
        proxy_username=None,
        proxy_password=None,
        max_concurrent_sessions=2,
    )
    return dataclasses.replace(base, **overrides)


def _fake_driver():
    """Return (factory, playwright, browser, context, page) mocks wired together."""
    page = AsyncMock()
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=page)
    browser = AsyncMock()
    browser.new_context = AsyncMock(return_value=context)
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()
    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=playwright)
    return factory, playwright, browser, context, page


def test_build_launch_options_defaults():
    options = build_launch_options(_config())

    assert options["headless"] is True
    assert options["timeout"] == 30_000
    assert "--no-sandbox" in options["args"]
    assert "--disable-gpu" in options["args"]
    assert "--disable-extensions" in options["args"]
    assert "executable_path" not in options
    assert "proxy" not in options


def test_build_launch_options_proxy_and_executable():
    options = build_launch_options(
        _config(
            browser_executable_path="/usr/bin/chromium",
            proxy_server="http://proxy:8080",
            proxy_username="user",
            proxy_password="secret",
        )
    )

    assert options["executable_path"] == "/usr/bin/chromium"
    assert options["proxy"] == {
        "server": "http://proxy:8080",
        "username": "user",
        "password": "secret",
    }


@pytest.mark.asyncio
async def test_open_launches_browser_context_and_page():
    factory, playwright, browser, context, page = _fake_driver()
    manager = SessionManager(_config(), playwright_factory=factory)

    session = await manager.open(UA)

    assert session.page is page
    assert session.browser is browser
    assert manager.opened == 1
    playwright.chromium.launch.assert_awaited_once()
    kwargs = browser.new_context.await_args.kwargs
    assert kwargs["user_agent"] == UA
    assert kwargs["locale"] == "en-US"


@pytest.mark.asyncio
async def test_open_launch_failure_raises_launch_error_and_stops_driver():
    factory, playwright, browser, context, page = _fake_driver()
    playwright.chromium.launch = AsyncMock(side_effect=RuntimeError("Executable doesn't exist"))
    manager = SessionManager(_config(), playwright_factory=factory)

    with pytest.raises(LaunchError) as exc_info:
        await manager.open(UA)

    assert exc_info.value.kind == "launch"
    assert "Executable" in exc_info.value.detail
    playwright.stop.assert_awaited_once()
    assert manager.opened == 0


@pytest.mark.asyncio
async def test_open_page_failure_closes_browser():
    factory, playwright, browser, context, page = _fake_driver()
    context.new_page = AsyncMock(side_effect=RuntimeError("crashed"))
    manager = SessionManager(_config(), playwright_factory=factory)

    with pytest.raises(LaunchError):
        await manager.open(UA)

    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_twice_is_idempotent():
    factory, playwright, browser, context, page = _fake_driver()
    session = await SessionManager(_config(), playwright_factory=factory).open(UA)

    await session.close()
    await session.close()

    assert session.closed is True
    page.close.assert_awaited_once()
    context.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()
    assert session.page is None
    assert session.browser is None


@pytest.mark.asyncio
async def test_close_continues_after_failing_step():
    page = AsyncMock()
    page.close = AsyncMock(side_effect=RuntimeError("Target closed"))
    browser = AsyncMock()
    session = BrowserSession(None, browser, None, page)

    await session.close()

    browser.close.assert_awaited_once()
    assert session.closed is True


@pytest.mark.asyncio
async def test_session_slot_limits_concurrency():
    manager = SessionManager(_config(max_concurrent_sessions=1), playwright_factory=MagicMock())
    active = 0
    peak = 0

    async def worker():
        nonlocal active, peak
        async with manager.session_slot():
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

    await asyncio.gather(worker(), worker(), worker())

    assert peak == 1
