"""
One scrape attempt: launch, harden, filter, navigate, check for blocks, extract.

The attempt owns exactly one browser session and releases it on every exit
path (success, empty result, attempt error, cancellation). Artifacts are
captured once per attempt, just before the session is closed.
"""

from __future__ import annotations

import asyncio
import random
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from shared.config import AppConfig
from shared.logging import get_logger
from worker.artifacts import ArtifactSink, AttemptContext, attach_safely, capture_safely
from worker.crawl.blocked_page import check_for_block
from worker.crawl.browser import SessionManager
from worker.crawl.extraction import extract_tracking_data
from worker.crawl.navigation import navigate, wait_for_content_ready
from worker.crawl.request_filter import install_request_filter
from worker.crawl.stealth import apply_stealth, select_user_agent
from worker.errors import BlockedError, ExtractionError, LaunchError
from worker.models import ExtractionResult

logger = get_logger(__name__)


def extract(html: str) -> ExtractionResult:
    """Run extraction; anything unexpected becomes an ExtractionError."""
    try:
        return extract_tracking_data(html)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(detail=f"{type(e).__name__}: {e}") from e


async def run_attempt(
    ctx: AttemptContext,
    config: AppConfig,
    session_manager: SessionManager,
    artifact_sink: ArtifactSink,
    rng: Optional[random.Random] = None,
) -> ExtractionResult:
    """
    Execute one attempt and return what was extracted (possibly no events).

    Raises LaunchError, NavigationError, BlockedError or ExtractionError;
    the session is closed before any of them propagates.
    """
    url = config.tracking_url(ctx.tracking_number)
    user_agent = select_user_agent(config, rng)

    async with session_manager.session_slot():
        session = await session_manager.open(user_agent)
        page = session.page
        stage = "error"
        try:
            await attach_safely(artifact_sink, page, ctx)
            try:
                await apply_stealth(page, config)
                filter_stats = await install_request_filter(page, config.blocked_resource_types)
            except PlaywrightError as e:
                raise LaunchError(detail=f"session setup failed: {e}") from e

            nav = await navigate(page, url, config)
            await wait_for_content_ready(page, config.content_ready_timeout_ms)

            try:
                html = await check_for_block(page, nav.status)
            except BlockedError:
                stage = "blocked"
                raise

            result = extract(html)
            stage = "success" if result.events else "empty"
            logger.info(
                "attempt.extracted",
                event_count=len(result.events),
                navigation_strategy=nav.strategy,
                requests_blocked=filter_stats.blocked,
                requests_continued=filter_stats.continued,
            )
            return result
        except asyncio.CancelledError:
            stage = "cancelled"
            raise
        finally:
            if stage == "cancelled":
                artifact_sink.release(ctx)
            else:
                await capture_safely(artifact_sink, page, ctx, stage)
            await session.close()
