"""
Crawl constants: extraction selectors, block indicators, context defaults.

The selectors below are the extraction contract with the tracking page
layout. Parcel attributes are looked up by fixed table position; keep the
positions as they are unless the upstream page changes.
"""

from __future__ import annotations

# Tracking events
EVENT_SELECTOR = ".event"
EVENT_FIELD_SELECTORS = {
    "date": ".event-time strong",
    "time": ".event-time span",
    "status": ".event-content strong",
    "courier": ".carrier",
}

# Parcel attributes, relative to PARCEL_CONTAINER_SELECTOR
PARCEL_CONTAINER_SELECTOR = ".parcel-attributes"
PARCEL_FIELD_SELECTORS = {
    "tracking_number": "tr:nth-child(1) .value span",
    "origin": "tr:nth-child(2) .value span:nth-child(2)",
    "destination": "tr:nth-child(3) .value span:nth-child(2)",
    "courier": "tr:nth-child(4) .value a",
    "days_in_transit": "tr:nth-child(6) .value span",
}
# The link lives outside the attributes table, in a read-only input.
TRACKING_LINK_SELECTOR = ".tracking-link input"

# Challenge / CAPTCHA widgets
CAPTCHA_SELECTORS = (
    "iframe[src*='recaptcha']",
    "iframe[src*='hcaptcha']",
    "iframe[src*='challenges.cloudflare.com']",
    ".g-recaptcha",
    ".h-captcha",
    ".cf-turnstile",
    "#challenge-form",
    "#challenge-stage",
    "#cf-challenge-running",
)
# Generic error banner rendered instead of tracking data
ERROR_BANNER_SELECTORS = (
    ".access-denied",
    "#access-denied",
    ".error-banner",
)
BLOCK_INDICATOR_SELECTORS = CAPTCHA_SELECTORS + ERROR_BANNER_SELECTORS

# Substrings in title or visible text (case-insensitive). Kept narrow: words
# like "bot" or "blocked" also appear on normal tracking pages.
BLOCK_TEXT_INDICATORS = (
    "access denied",
    "attention required",
    "verify you are human",
    "are you a robot",
    "unusual traffic",
    "ddos protection",
)

# HTTP statuses treated as a block when the navigation response carries them
BLOCKING_STATUSES = (403, 429, 503)

# Content-ready signal: data container or any block indicator
CONTENT_READY_SELECTOR = ", ".join((EVENT_SELECTOR,) + BLOCK_INDICATOR_SELECTORS)

# Browser context
VIEWPORT = {"width": 1366, "height": 768}
TIMEZONE_ID = "America/New_York"
LOCALE = "en-US"
