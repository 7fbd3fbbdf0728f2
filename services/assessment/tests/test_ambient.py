"""Tests for JSON log rendering, the event bus fallback, and timer arithmetic."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from packages.common.events import EventBus
from packages.common.logging import JSONFormatter, set_request_id
from packages.common.time_utils import Clock, SystemClock, ms_between
from services.assessment.status import remaining_ms


def test_json_formatter_carries_request_id_and_extras() -> None:
    record = logging.makeLogRecord(
        {"name": "assessment.grading", "levelname": "INFO", "msg": "submission graded", "score": 3}
    )
    set_request_id("rid-1")
    try:
        line = json.loads(JSONFormatter().format(record))
    finally:
        set_request_id(None)

    assert line["msg"] == "submission graded"
    assert line["request_id"] == "rid-1"
    assert line["score"] == 3
    assert "args" not in line


def test_event_bus_without_broker_only_logs(caplog) -> None:
    bus = EventBus(None, "assessment-events")
    with caplog.at_level(logging.INFO, logger="packages.common.events"):
        bus.publish("assessment.submitted", "1:s", {"score": 2})
    assert any(getattr(r, "event_type", None) == "assessment.submitted" for r in caplog.records)


def test_remaining_ms_counts_from_start() -> None:
    start = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)
    assert ms_between(start, start + timedelta(seconds=1.5)) == 1_500
    assert remaining_ms(start, 10, start) == 600_000
    assert remaining_ms(start, 10, start + timedelta(minutes=10)) == 0
    assert remaining_ms(start, 10, start + timedelta(minutes=11)) == -60_000


def test_clock_is_abstract() -> None:
    with pytest.raises(TypeError):
        Clock()
    assert SystemClock().now().tzinfo is not None
