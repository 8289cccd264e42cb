"""
Pydantic schemas for API response contracts.

These models define the typed interface between the API and clients.
Extracted fields are always strings; missing values are "N/A".
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from worker.models import SENTINEL


class TrackingEventResponse(BaseModel):
    """One tracking event, in page order."""

    date: str = SENTINEL
    time: str = SENTINEL
    status: str = SENTINEL
    courier: str = SENTINEL


class ParcelInfoResponse(BaseModel):
    """Parcel summary."""

    tracking_number: str = SENTINEL
    origin: str = SENTINEL
    destination: str = SENTINEL
    courier: str = SENTINEL
    days_in_transit: str = SENTINEL
    tracking_link: str = SENTINEL


class TrackResponse(BaseModel):
    """Response schema for GET /track."""

    tracking_details: list[TrackingEventResponse] = Field(default_factory=list)
    parcel_info: ParcelInfoResponse


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime


class ErrorResponse(BaseModel):
    detail: str
