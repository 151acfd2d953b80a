import time
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def now_ms() -> int:
    return int(time.time() * 1000)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local(tz: str) -> datetime:
    return now_utc().astimezone(ZoneInfo(tz))


def local_hour(tz: str, now: Optional[datetime] = None) -> int:
    """Hour of day (0-23) in the given IANA timezone."""
    moment = now or now_utc()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz)).hour


def format_local_ms(ts_ms: int, tz: str, fmt: str = "%H:%M") -> str:
    return datetime.fromtimestamp(ts_ms / 1000, tz=ZoneInfo(tz)).strftime(fmt)
