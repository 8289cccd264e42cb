"""
Sub-resource request filtering during page load.

Requests whose resource type is in the blocklist (images, stylesheets,
fonts, media by default) are aborted; everything else continues unmodified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from playwright.async_api import Page, Request, Route

from shared.logging import get_logger

logger = get_logger(__name__)

RouteHandler = Callable[[Route, Request], Awaitable[None]]


@dataclass
class RequestFilterStats:
    blocked: int = 0
    continued: int = 0


def build_route_handler(
    blocked_resource_types: Iterable[str],
    stats: RequestFilterStats,
) -> RouteHandler:
    """Route handler that aborts blocked resource types and continues the rest."""
    blocked = frozenset(t.lower() for t in blocked_resource_types)

    async def _route_handler(route: Route, request: Request) -> None:
        if request.resource_type in blocked:
            stats.blocked += 1
            await route.abort()
            return
        stats.continued += 1
        await route.continue_()

    return _route_handler


async def install_request_filter(
    page: Page,
    blocked_resource_types: Iterable[str],
) -> RequestFilterStats:
    """Register the interception rule on the page; returns live counters."""
    stats = RequestFilterStats()
    blocked = frozenset(blocked_resource_types)
    if not blocked:
        return stats
    await page.route("**/*", build_route_handler(blocked, stats))
    logger.debug("request_filter.installed", blocked_resource_types=sorted(blocked))
    return stats
