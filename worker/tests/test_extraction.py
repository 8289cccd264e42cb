"""
Unit tests for tracking data extraction from page snapshots.

Covers: event list in page order, sentinel for missing sub-fields, per-node
isolation, positional parcel attribute lookup, tracking link input value.
No Playwright/network required.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from worker.crawl.extraction import (
    extract_parcel_info,
    extract_tracking_data,
    extract_tracking_events,
    parse_snapshot,
)
from worker.errors import ExtractionError
from worker.models import SENTINEL, ParcelInfo, TrackingEvent


def _event(date="Mar 04, 2025", time="14:05", status="Delivered", courier="USPS"):
    return f"""
    <li class="event">
      <div class="event-time"><strong>{date}</strong><span>{time}</span></div>
      <div class="event-content"><strong>{status}</strong></div>
      <span class="carrier">{courier}</span>
    </li>
    """


PARCEL_TABLE = """
<div class="parcel-attributes">
  <table>
    <tr><th>Tracking number</th><td class="value"><span>ABC123</span></td></tr>
    <tr><th>Origin</th><td class="value"><span class="flag"></span><span>China</span></td></tr>
    <tr><th>Destination</th><td class="value"><span class="flag"></span><span>United States</span></td></tr>
    <tr><th>Courier</th><td class="value"><a href="/carrier/usps">USPS</a></td></tr>
    <tr><th>Status</th><td class="value"><span>Delivered</span></td></tr>
    <tr><th>Days in transit</th><td class="value"><span>12</span></td></tr>
  </table>
</div>
<div class="tracking-link"><input type="text" value="https://parcelsapp.com/en/tracking/ABC123" readonly></div>
"""


def _page(*events: str, parcel: str = PARCEL_TABLE) -> str:
    return f"""
    <html><head><title>ABC123 tracking</title></head>
    <body>
      <ul class="events">{''.join(events)}</ul>
      {parcel}
    </body></html>
    """


ABC123_PAGE = _page(
    _event("Mar 04, 2025", "14:05", "Delivered", "USPS"),
    _event("Mar 02, 2025", "08:30", "Out for delivery", "USPS"),
    _event("Feb 20, 2025", "23:10", "Departed from origin country", "Cainiao"),
)


def test_extract_full_page_three_events_all_parcel_fields():
    """Three event nodes and a populated container: 3 events, no sentinel in parcel."""
    result = extract_tracking_data(ABC123_PAGE)

    assert len(result.events) == 3
    assert result.events[0] == TrackingEvent("Mar 04, 2025", "14:05", "Delivered", "USPS")
    assert result.events[2].courier == "Cainiao"
    assert result.parcel == ParcelInfo(
        tracking_number="ABC123",
        origin="China",
        destination="United States",
        courier="USPS",
        days_in_transit="12",
        tracking_link="https://parcelsapp.com/en/tracking/ABC123",
    )
    assert result.parcel.missing_fields() == []


def test_events_keep_page_order():
    html = _page(_event(status="first"), _event(status="second"), _event(status="third"))
    events = extract_tracking_events(parse_snapshot(html))
    assert [e.status for e in events] == ["first", "second", "third"]


def test_event_missing_sub_fields_get_sentinel():
    """Event with only a status: the other three sub-fields are the sentinel."""
    html = _page('<div class="event"><div class="event-content"><strong>In transit</strong></div></div>')
    events = extract_tracking_events(parse_snapshot(html))

    assert events == [TrackingEvent(SENTINEL, SENTINEL, "In transit", SENTINEL)]


def test_event_blank_text_gets_sentinel():
    html = _page(_event(date="   ", time="", status="\n", courier=" "))
    (event,) = extract_tracking_events(parse_snapshot(html))
    assert event == TrackingEvent()


def test_event_text_whitespace_normalized():
    html = _page(_event(status="  Arrived   at\n  sorting   center "))
    (event,) = extract_tracking_events(parse_snapshot(html))
    assert event.status == "Arrived at sorting center"


def test_event_node_failure_does_not_abort_others():
    """A failure while reading one node yields a sentinel event; the rest are kept."""
    html = _page(_event(status="one"), _event(status="two"), _event(status="three"))
    soup = parse_snapshot(html)

    from worker.crawl import extraction

    original = extraction.extract_event
    calls = {"n": 0}

    def flaky(node):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("boom")
        return original(node)

    with patch.object(extraction, "extract_event", side_effect=flaky):
        events = extract_tracking_events(soup)

    assert [e.status for e in events] == ["one", SENTINEL, "three"]


def test_no_events_returns_empty_list():
    result = extract_tracking_data(_page())
    assert result.events == ()
    assert result.parcel.tracking_number == "ABC123"


def test_parcel_missing_container_all_table_fields_sentinel():
    html = _page(_event(), parcel="")
    parcel = extract_parcel_info(parse_snapshot(html))
    assert parcel == ParcelInfo()


def test_parcel_positional_lookup_skips_fifth_row():
    """days_in_transit is read from row 6, not row 5."""
    parcel = extract_parcel_info(parse_snapshot(ABC123_PAGE))
    assert parcel.days_in_transit == "12"


def test_parcel_origin_reads_second_span_only():
    """Origin/destination use span:nth-child(2); the flag span is ignored."""
    html = _page(
        parcel="""
        <div class="parcel-attributes"><table>
          <tr><td class="value"><span>X1</span></td></tr>
          <tr><td class="value"><span>ignored</span></td></tr>
        </table></div>
        """
    )
    parcel = extract_parcel_info(parse_snapshot(html))
    assert parcel.tracking_number == "X1"
    assert parcel.origin == SENTINEL
    assert parcel.destination == SENTINEL
    assert parcel.courier == SENTINEL
    assert parcel.tracking_link == SENTINEL


def test_tracking_link_without_value_is_sentinel():
    html = _page(parcel='<div class="tracking-link"><input type="text"></div>')
    parcel = extract_parcel_info(parse_snapshot(html))
    assert parcel.tracking_link == SENTINEL


def test_to_dict_keys():
    result = extract_tracking_data(ABC123_PAGE)
    assert set(result.events[0].to_dict()) == {"date", "time", "status", "courier"}
    assert set(result.parcel.to_dict()) == {
        "tracking_number",
        "origin",
        "destination",
        "courier",
        "days_in_transit",
        "tracking_link",
    }


def test_parse_snapshot_rejects_non_string():
    with pytest.raises(ExtractionError):
        parse_snapshot(None)  # type: ignore[arg-type]


def test_extract_garbage_html_does_not_raise():
    result = extract_tracking_data("<div><span>unclosed <b>tags")
    assert result.events == ()
    assert result.parcel == ParcelInfo()
