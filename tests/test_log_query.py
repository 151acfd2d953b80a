from snakelink.domain.models import LogEntry
from snakelink.services.log_query import DEFAULT_WINDOW_MS, query_logs

from conftest import make_reading, make_spec

NOW = 100 * DEFAULT_WINDOW_MS


def history():
    spec = make_spec("a")
    return [
        LogEntry(timestamp=NOW - DEFAULT_WINDOW_MS - 1, readings={"a": make_reading(spec, 1.0)}),
        LogEntry(timestamp=NOW - 3000, readings={"a": make_reading(spec, 2.0)}),
        LogEntry(timestamp=NOW - 2000, readings={}),
        LogEntry(timestamp=NOW - 1000, readings={"a": make_reading(spec, 4.0)}),
    ]


def test_defaults_to_last_24_hours():
    page = query_logs(history(), now_ms=NOW)

    assert (page.from_ms, page.to_ms) == (NOW - DEFAULT_WINDOW_MS, NOW)
    assert page.total == 3
    assert [r["timestamp"] for r in page.results] == [NOW - 3000, NOW - 2000, NOW - 1000]
    assert page.results[0]["readings"]["a"]["value"] == 2.0


def test_time_range_and_pagination():
    page = query_logs(history(), now_ms=NOW, from_ms=0, to_ms=NOW - 1500, limit=2, offset=1)

    assert page.total == 3
    assert page.count == 2
    assert [r["timestamp"] for r in page.results] == [NOW - 3000, NOW - 2000]


def test_sensor_filter_reduces_results():
    page = query_logs(history(), now_ms=NOW, sensor_id="a")

    assert page.results == [
        {"timestamp": NOW - 3000, "value": 2.0, "unit": "°C"},
        {"timestamp": NOW - 2000, "value": None, "unit": None},
        {"timestamp": NOW - 1000, "value": 4.0, "unit": "°C"},
    ]


def test_offset_past_end_is_empty():
    page = query_logs(history(), now_ms=NOW, offset=10)
    assert page.total == 3 and page.results == []
