"""
Fingerprint hardening applied to every page before navigation.

The init script runs before any page script on every document the page
loads. It only changes what the target's bot detection observes; it has no
effect on extraction.
"""

from __future__ import annotations

import json
import random
from typing import Optional

from playwright.async_api import Page

from shared.config import DEFAULT_USER_AGENT, AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)

STEALTH_INIT_SCRIPT = """
(() => {
  Object.defineProperty(navigator, 'webdriver', { get: () => false });

  const fakePlugins = [
    { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer', description: 'Portable Document Format' },
    { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai', description: '' },
    { name: 'Native Client', filename: 'internal-nacl-plugin', description: '' },
  ];
  Object.defineProperty(navigator, 'plugins', { get: () => fakePlugins });

  const languages = %(languages)s;
  Object.defineProperty(navigator, 'languages', { get: () => languages });

  if (!window.chrome) {
    window.chrome = {};
  }
  if (!window.chrome.runtime) {
    window.chrome.runtime = {};
  }

  if (window.navigator.permissions && window.navigator.permissions.query) {
    const originalQuery = window.navigator.permissions.query.bind(window.navigator.permissions);
    window.navigator.permissions.query = (parameters) =>
      parameters && parameters.name === 'notifications'
        ? Promise.resolve({ state: Notification.permission })
        : originalQuery(parameters);
  }
})();
"""


def languages_from_header(accept_language: str) -> list[str]:
    """
    Language tags from an Accept-Language value, in preference order.

    "en-US,en;q=0.9" -> ["en-US", "en"]. Never empty.
    """
    tags = []
    for part in accept_language.split(","):
        tag = part.split(";", 1)[0].strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags or ["en-US", "en"]


def build_stealth_script(accept_language: str) -> str:
    languages = json.dumps(languages_from_header(accept_language))
    return STEALTH_INIT_SCRIPT % {"languages": languages}


def select_user_agent(config: AppConfig, rng: Optional[random.Random] = None) -> str:
    """Fixed user agent when configured, otherwise a draw from the pool."""
    if config.user_agent:
        return config.user_agent
    if config.user_agent_pool:
        return (rng or random).choice(config.user_agent_pool)
    return DEFAULT_USER_AGENT


async def apply_stealth(page: Page, config: AppConfig) -> None:
    """Register the fingerprint overrides and the language header on the page."""
    await page.add_init_script(build_stealth_script(config.accept_language))
    await page.set_extra_http_headers({"Accept-Language": config.accept_language})
    logger.debug("stealth.applied", accept_language=config.accept_language)
