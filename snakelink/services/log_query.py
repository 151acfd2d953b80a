from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..domain.models import LogEntry

DEFAULT_WINDOW_MS = 24 * 60 * 60 * 1000
DEFAULT_LIMIT = 500


@dataclass
class LogPage:
    total: int
    from_ms: int
    to_ms: int
    limit: int
    offset: int
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)


def query_logs(
    entries: list[LogEntry],
    now_ms: int,
    from_ms: Optional[int] = None,
    to_ms: Optional[int] = None,
    sensor_id: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> LogPage:
    """
    Filter the log history by time range, then page it.

    Without a sensor id each result is a full entry; with one, each result is
    reduced to {timestamp, value, unit} for that sensor (None when absent).
    """
    to_ms = now_ms if to_ms is None else to_ms
    from_ms = now_ms - DEFAULT_WINDOW_MS if from_ms is None else from_ms
    limit = max(0, limit)
    offset = max(0, offset)

    in_range = [e for e in entries if from_ms <= e.timestamp <= to_ms]
    page = in_range[offset : offset + limit]

    results: list[dict[str, Any]] = []
    for entry in page:
        if sensor_id is None:
            results.append(entry.model_dump(mode="json", by_alias=True))
            continue
        reading = entry.readings.get(sensor_id)
        results.append({
            "timestamp": entry.timestamp,
            "value": reading.value if reading else None,
            "unit": reading.unit if reading else None,
        })

    return LogPage(total=len(in_range), from_ms=from_ms, to_ms=to_ms, limit=limit, offset=offset, results=results)
