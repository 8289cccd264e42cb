"""
Tests for tracking endpoints.

These tests cover the HTTP contract of the lookup:
- missing / malformed tracking number -> 400 before any attempt
- events found -> 200 with tracking_details and parcel_info
- all attempts without data -> 404
- unexpected failure -> 500 with a generic message
- /api/track alias and /health
"""

from __future__ import annotations

from fastapi import status

from worker.errors import BlockedError, NavigationError
from worker.models import ExtractionResult, ParcelInfo


def test_track_missing_num_returns_400(client, runner):
    response = client.get("/track")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Tracking number is required"
    assert runner.calls == []


def test_track_blank_num_returns_400(client, runner):
    response = client.get("/track", params={"num": "   "})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Tracking number is required"
    assert runner.calls == []


def test_track_malformed_num_returns_400(client, runner):
    response = client.get("/track", params={"num": "<script>"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Tracking number is invalid"
    assert runner.calls == []


def test_track_success_returns_events_and_parcel(client, runner, abc123_result):
    runner.results = [abc123_result]

    response = client.get("/track", params={"num": "ABC123"})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [e["status"] for e in data["tracking_details"]] == [
        "Delivered",
        "Out for delivery",
        "Accepted",
    ]
    assert data["tracking_details"][0] == {
        "date": "Mar 04, 2025",
        "time": "14:05",
        "status": "Delivered",
        "courier": "USPS",
    }
    assert data["parcel_info"]["tracking_number"] == "ABC123"
    assert data["parcel_info"]["days_in_transit"] == "12"
    assert len(runner.calls) == 1


def test_track_normalizes_tracking_number(client, runner, abc123_result):
    runner.results = [abc123_result]

    response = client.get("/track", params={"num": " abc 123 "})

    assert response.status_code == status.HTTP_200_OK
    assert runner.calls[0].tracking_number == "ABC123"


def test_track_retries_after_attempt_errors(client, runner, abc123_result):
    runner.results = [BlockedError(indicator="selector:.g-recaptcha"), NavigationError(), abc123_result]

    response = client.get("/track", params={"num": "ABC123"})

    assert response.status_code == status.HTTP_200_OK
    assert [ctx.attempt for ctx in runner.calls] == [1, 2, 3]


def test_track_missing_fields_use_sentinel(client, runner, abc123_result):
    runner.results = [ExtractionResult(events=abc123_result.events, parcel=ParcelInfo())]

    response = client.get("/track", params={"num": "ABC123"})

    assert response.status_code == status.HTTP_200_OK
    assert set(response.json()["parcel_info"].values()) == {"N/A"}


def test_track_exhausted_returns_404(client, runner):
    response = client.get("/track", params={"num": "EMPTY000"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Tracking information not found"
    assert len(runner.calls) == 3


def test_track_exhausted_by_errors_hides_internal_detail(client, runner):
    runner.results = [NavigationError(detail="net::ERR_CONNECTION_RESET at 10.0.0.1")] * 3

    response = client.get("/track", params={"num": "ABC123"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "10.0.0.1" not in response.text


def test_track_unexpected_error_returns_500(client, runner):
    runner.results = [RuntimeError("driver exploded: /home/app/secret")]

    response = client.get("/track", params={"num": "ABC123"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "Failed to retrieve tracking information"
    assert "secret" not in response.text


def test_api_track_alias(client, runner, abc123_result):
    runner.results = [abc123_result]

    response = client.get("/api/track", params={"num": "ABC123"})

    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()["tracking_details"]) == 3


def test_health_check(client, runner):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data
    assert runner.calls == []
