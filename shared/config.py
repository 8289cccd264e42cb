"""
Environment-based configuration for the parcel tracking scraper.

This module exposes a small, typed configuration surface shared by the API
and the scrape pipeline. All values are sourced from environment variables
with sensible, non-secret defaults.

The configuration is immutable: build one `AppConfig` at process start and
pass it explicitly into the pipeline. Proxy credentials are never
hard-coded; they must be provided via the environment (or python-dotenv in
local development).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]
WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]
ArtifactsMode = Literal["off", "failures", "always"]

_WAIT_STATES = {"commit", "domcontentloaded", "load", "networkidle"}
_ARTIFACTS_MODES = {"off", "failures", "always"}

DEFAULT_TRACKING_URL_TEMPLATE = "https://parcelsapp.com/en/tracking/{tracking_number}"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36"
)

DEFAULT_USER_AGENT_POOL = (
    DEFAULT_USER_AGENT,
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
)

# Chromium flags for containerized, deterministic runs.
DEFAULT_LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-software-rasterizer",
    "--disable-features=site-per-process",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-sync",
    "--disable-default-apps",
    "--no-first-run",
    "--disable-blink-features=AutomationControlled",
)

DEFAULT_BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font", "media")


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Read-only after startup. Timeouts are in milliseconds unless the field
    name says otherwise.
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    # When True, logs go to stdout. When False, only file (if LOG_FILE set). Default True.
    log_stdout: bool

    # Target page; must contain a {tracking_number} placeholder.
    tracking_url_template: str

    # Retry policy
    max_attempts: int
    retry_delay_ms: int
    # Whole multi-attempt sequence; 0 disables the deadline.
    request_deadline_seconds: float
    max_concurrent_sessions: int

    # Browser launch
    launch_timeout_ms: int
    headless: bool
    browser_executable_path: Optional[str]
    launch_args: tuple[str, ...]
    proxy_server: Optional[str]
    proxy_username: Optional[str]
    proxy_password: Optional[str]

    # Fingerprint
    user_agent: Optional[str]
    user_agent_pool: tuple[str, ...]
    accept_language: str

    # Navigation
    primary_wait_until: WaitUntil
    primary_nav_timeout_ms: int
    fallback_wait_until: WaitUntil
    fallback_nav_timeout_ms: int
    content_ready_timeout_ms: int
    blocked_resource_types: frozenset[str]

    # Diagnostics
    artifacts_mode: ArtifactsMode
    artifacts_dir: str

    def tracking_url(self, tracking_number: str) -> str:
        """Build the tracking page URL for an already-validated tracking number."""
        return self.tracking_url_template.format(tracking_number=tracking_number)

    @property
    def proxy(self) -> Optional[dict]:
        """Playwright proxy settings, or None when no proxy is configured."""
        if not self.proxy_server:
            return None
        proxy = {"server": self.proxy_server}
        if self.proxy_username:
            proxy["username"] = self.proxy_username
        if self.proxy_password:
            proxy["password"] = self.proxy_password
        return proxy

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        All fields have sensible defaults suitable for local development.
        Production deployments are expected to override these via env vars.
        """

        environment = os.getenv("APP_ENV", "local")

        # Narrow the type at runtime while keeping a simple env interface.
        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _list_env(name: str, default: tuple[str, ...], sep: str = ",") -> tuple[str, ...]:
            raw = os.getenv(name)
            if not raw:
                return default
            items = tuple(item.strip() for item in raw.split(sep) if item.strip())
            return items or default

        def _wait_env(name: str, default: str) -> str:
            value = (os.getenv(name) or default).strip().lower()
            if value not in _WAIT_STATES:
                raise ValueError(f"Unsupported {name} value: {value!r}")
            return value

        def _max_attempts() -> int:
            raw = os.getenv("SCRAPE_MAX_ATTEMPTS", "3").strip()
            try:
                attempts = int(raw)
            except ValueError:
                return 3
            return max(1, min(10, attempts))

        artifacts_mode = (os.getenv("ARTIFACTS_MODE") or "off").strip().lower()
        if artifacts_mode not in _ARTIFACTS_MODES:
            raise ValueError(f"Unsupported ARTIFACTS_MODE value: {artifacts_mode!r}")

        tracking_url_template = os.getenv("TRACKING_URL_TEMPLATE", DEFAULT_TRACKING_URL_TEMPLATE)
        if "{tracking_number}" not in tracking_url_template:
            raise ValueError("TRACKING_URL_TEMPLATE must contain '{tracking_number}'")

        extra_args = _list_env("BROWSER_EXTRA_ARGS", ())

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            tracking_url_template=tracking_url_template,
            max_attempts=_max_attempts(),
            retry_delay_ms=max(0, int(os.getenv("SCRAPE_RETRY_DELAY_MS", "2000"))),
            request_deadline_seconds=max(
                0.0, float(os.getenv("SCRAPE_REQUEST_DEADLINE_SECONDS", "300"))
            ),
            max_concurrent_sessions=max(1, int(os.getenv("MAX_CONCURRENT_SESSIONS", "2"))),
            launch_timeout_ms=int(os.getenv("BROWSER_LAUNCH_TIMEOUT_MS", "30000")),
            headless=_bool_env("BROWSER_HEADLESS", True),
            browser_executable_path=(
                os.getenv("BROWSER_EXECUTABLE_PATH")
                or os.getenv("PUPPETEER_EXECUTABLE_PATH")
                or None
            ),
            launch_args=DEFAULT_LAUNCH_ARGS + extra_args,
            proxy_server=os.getenv("PROXY_SERVER") or None,
            proxy_username=os.getenv("PROXY_USERNAME") or None,
            proxy_password=os.getenv("PROXY_PASSWORD") or None,
            user_agent=os.getenv("USER_AGENT") or None,
            user_agent_pool=_list_env("USER_AGENT_POOL", DEFAULT_USER_AGENT_POOL, sep="|"),
            accept_language=os.getenv("ACCEPT_LANGUAGE", "en-US,en;q=0.9"),
            primary_wait_until=_wait_env("NAV_PRIMARY_WAIT_UNTIL", "networkidle"),  # type: ignore[arg-type]
            primary_nav_timeout_ms=int(os.getenv("NAV_PRIMARY_TIMEOUT_MS", "30000")),
            fallback_wait_until=_wait_env("NAV_FALLBACK_WAIT_UNTIL", "domcontentloaded"),  # type: ignore[arg-type]
            fallback_nav_timeout_ms=int(os.getenv("NAV_FALLBACK_TIMEOUT_MS", "60000")),
            content_ready_timeout_ms=int(os.getenv("CONTENT_READY_TIMEOUT_MS", "30000")),
            blocked_resource_types=frozenset(
                t.lower()
                for t in _list_env("BLOCKED_RESOURCE_TYPES", DEFAULT_BLOCKED_RESOURCE_TYPES)
            ),
            artifacts_mode=artifacts_mode,  # type: ignore[arg-type]
            artifacts_dir=os.getenv("ARTIFACTS_DIR", "./artifacts"),
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    In simple scripts, calling this function directly is sufficient. In
    longer-lived processes, construct a single `AppConfig` instance at
    startup and pass it explicitly through your code.
    """

    return AppConfig.from_env()
