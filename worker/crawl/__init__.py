"""
Playwright-based helpers for loading and reading a tracking page.

This package implements session launch, fingerprint hardening, request
filtering, two-phase navigation, block detection and extraction.

Public API: re-exports the symbols used by the attempt pipeline and tests so
that `from worker.crawl import ...` remains valid.
"""

from __future__ import annotations

from worker.crawl.blocked_page import (
    BlockIndicator,
    check_for_block,
    ensure_not_blocked,
    find_block_indicator,
    read_snapshot,
)
from worker.crawl.browser import (
    BrowserSession,
    SessionManager,
    build_launch_options,
    create_browser_context,
)
from worker.crawl.constants import (
    BLOCK_INDICATOR_SELECTORS,
    BLOCK_TEXT_INDICATORS,
    BLOCKING_STATUSES,
    CONTENT_READY_SELECTOR,
    EVENT_FIELD_SELECTORS,
    EVENT_SELECTOR,
    PARCEL_CONTAINER_SELECTOR,
    PARCEL_FIELD_SELECTORS,
    TRACKING_LINK_SELECTOR,
)
from worker.crawl.extraction import (
    extract_event,
    extract_parcel_info,
    extract_tracking_data,
    extract_tracking_events,
    parse_snapshot,
)
from worker.crawl.navigation import (
    NavigateResult,
    classify_failure,
    navigate,
    wait_for_content_ready,
)
from worker.crawl.request_filter import (
    RequestFilterStats,
    build_route_handler,
    install_request_filter,
)
from worker.crawl.stealth import apply_stealth, build_stealth_script, select_user_agent
from worker.crawl.text import normalize_whitespace, or_sentinel

__all__ = [
    # constants
    "BLOCK_INDICATOR_SELECTORS",
    "BLOCK_TEXT_INDICATORS",
    "BLOCKING_STATUSES",
    "CONTENT_READY_SELECTOR",
    "EVENT_FIELD_SELECTORS",
    "EVENT_SELECTOR",
    "PARCEL_CONTAINER_SELECTOR",
    "PARCEL_FIELD_SELECTORS",
    "TRACKING_LINK_SELECTOR",
    # browser
    "BrowserSession",
    "SessionManager",
    "build_launch_options",
    "create_browser_context",
    # stealth
    "apply_stealth",
    "build_stealth_script",
    "select_user_agent",
    # request_filter
    "RequestFilterStats",
    "build_route_handler",
    "install_request_filter",
    # navigation
    "NavigateResult",
    "classify_failure",
    "navigate",
    "wait_for_content_ready",
    # blocked_page
    "BlockIndicator",
    "check_for_block",
    "ensure_not_blocked",
    "find_block_indicator",
    "read_snapshot",
    # extraction
    "extract_event",
    "extract_parcel_info",
    "extract_tracking_data",
    "extract_tracking_events",
    "parse_snapshot",
    # text
    "normalize_whitespace",
    "or_sentinel",
]
