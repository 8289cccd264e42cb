"""
Diagnostic artifact capture: screenshot, html_gz, console log.

The scrape pipeline talks to an ArtifactSink and never to the filesystem.
Capture is opportunistic: sink failures are logged with context and never
change the outcome of an attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from playwright.async_api import ConsoleMessage, Page

from shared.config import AppConfig
from shared.logging import get_logger
from worker.storage import build_artifact_path, write_html_gz, write_jsonl, write_screenshot

logger = get_logger(__name__)


@dataclass(frozen=True)
class AttemptContext:
    request_id: str
    tracking_number: str
    attempt: int

    @property
    def key(self) -> tuple[str, int]:
        return (self.request_id, self.attempt)


class ArtifactSink(Protocol):
    async def attach(self, page: Page, ctx: AttemptContext) -> None:
        """Called once the page exists, before navigation."""

    async def capture(self, page: Page, ctx: AttemptContext, stage: str) -> None:
        """Called once at the end of the attempt; stage is the attempt status."""

    def release(self, ctx: AttemptContext) -> None:
        """Drop per-attempt state for an attempt that ends without capture."""


class NullArtifactSink:
    """Sink that writes nothing."""

    async def attach(self, page: Page, ctx: AttemptContext) -> None:
        return None

    async def capture(self, page: Page, ctx: AttemptContext, stage: str) -> None:
        return None

    def release(self, ctx: AttemptContext) -> None:
        return None


class LocalArtifactSink:
    """
    Write artifacts under `{artifacts_dir}/{tracking_number}__{request_id}/attempt_{n}/`.

    In "failures" mode successful attempts are not written.
    """

    def __init__(self, artifacts_dir: str | Path, mode: str = "failures") -> None:
        self.artifacts_dir = Path(artifacts_dir)
        self.mode = mode
        self._console: dict[tuple[str, int], list[dict]] = {}

    async def attach(self, page: Page, ctx: AttemptContext) -> None:
        buffer: list[dict] = []
        self._console[ctx.key] = buffer

        def _on_console(message: ConsoleMessage) -> None:
            buffer.append(
                {
                    "timestamp": datetime.now(timezone.utc),
                    "type": message.type,
                    "text": message.text,
                }
            )

        page.on("console", _on_console)

    async def capture(self, page: Page, ctx: AttemptContext, stage: str) -> None:
        console_rows = self._console.pop(ctx.key, [])
        if self.mode == "failures" and stage == "success":
            return

        def _path(artifact_type: str) -> Path:
            return build_artifact_path(
                self.artifacts_dir,
                ctx.tracking_number,
                ctx.request_id,
                ctx.attempt,
                stage,
                artifact_type,  # type: ignore[arg-type]
            )

        written: dict[str, dict] = {}

        screenshot = await page.screenshot(full_page=True)
        size, checksum = write_screenshot(_path("screenshot"), screenshot)
        written["screenshot"] = {"bytes": size, "md5": checksum}

        html = await page.content()
        size, checksum = write_html_gz(_path("html_gz"), html)
        written["html_gz"] = {"bytes": size, "md5": checksum}

        size, checksum = write_jsonl(_path("console_log"), console_rows)
        written["console_log"] = {"bytes": size, "md5": checksum}

        logger.info("artifacts.saved", stage=stage, artifacts=written)

    def release(self, ctx: AttemptContext) -> None:
        self._console.pop(ctx.key, None)


def build_artifact_sink(config: AppConfig) -> ArtifactSink:
    if config.artifacts_mode == "off":
        return NullArtifactSink()
    return LocalArtifactSink(config.artifacts_dir, mode=config.artifacts_mode)


async def attach_safely(sink: ArtifactSink, page: Page, ctx: AttemptContext) -> None:
    try:
        await sink.attach(page, ctx)
    except Exception as e:
        logger.warning(
            "artifacts.attach_failed",
            error=str(e),
            error_type=type(e).__name__,
        )


async def capture_safely(sink: ArtifactSink, page: Page, ctx: AttemptContext, stage: str) -> None:
    """Capture artifacts; write failures are logged with context and not raised."""
    try:
        await sink.capture(page, ctx, stage)
    except Exception as e:
        logger.error(
            "artifacts.write_failed",
            stage=stage,
            error=str(e),
            error_type=type(e).__name__,
        )
