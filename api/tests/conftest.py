"""
Pytest configuration and fixtures for API tests.

This module provides a FastAPI test client wired to a scripted retry
orchestrator, so no browser is launched.
"""

from __future__ import annotations

import dataclasses
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from shared.config import AppConfig
from worker.models import ExtractionResult, ParcelInfo, TrackingEvent
from worker.orchestrator import RetryOrchestrator


class ScriptedRunner:
    """Attempt runner returning (or raising) scripted results in order."""

    def __init__(self) -> None:
        self.results: list = []
        self.calls: list = []

    async def __call__(self, ctx):
        self.calls.append(ctx)
        item = self.results.pop(0) if self.results else ExtractionResult(events=(), parcel=ParcelInfo())
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def test_config() -> AppConfig:
    return dataclasses.replace(
        AppConfig.from_env(),
        max_attempts=3,
        retry_delay_ms=0,
        request_deadline_seconds=0,
        artifacts_mode="off",
        log_stdout=False,
        log_file=None,
    )


@pytest.fixture
def runner() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture
def orchestrator(test_config, runner) -> RetryOrchestrator:
    async def no_sleep(_seconds):
        return None

    return RetryOrchestrator(test_config, attempt_runner=runner, sleep=no_sleep)


@pytest.fixture
def client(test_config, orchestrator) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client backed by the scripted orchestrator."""
    app = create_app(config=test_config, orchestrator=orchestrator)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def abc123_result() -> ExtractionResult:
    events = (
        TrackingEvent(date="Mar 04, 2025", time="14:05", status="Delivered", courier="USPS"),
        TrackingEvent(date="Mar 03, 2025", time="08:10", status="Out for delivery", courier="USPS"),
        TrackingEvent(date="Feb 20, 2025", time="10:00", status="Accepted", courier="USPS"),
    )
    parcel = ParcelInfo(
        tracking_number="ABC123",
        origin="China",
        destination="United States",
        courier="USPS",
        days_in_transit="12",
        tracking_link="https://parcelsapp.com/en/tracking/ABC123",
    )
    return ExtractionResult(events=events, parcel=parcel)
