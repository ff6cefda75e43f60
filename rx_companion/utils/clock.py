# rx_companion/utils/clock.py
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rx_companion.core.schedule_config import DEFAULT_TIMEZONE

_HHMM_RE = re.compile(r"^\s*(\d{1,2})[:.](\d{2})\s*$")

def parse_hhmm(hhmm: str) -> Optional[Tuple[int, int]]:
    """
    "8:05" / "08.05" / "08:05" -> (8, 5). Anything outside 00:00..23:59 -> None.
    """
    m = _HHMM_RE.match(str(hhmm or ""))
    if not m:
        return None
    h, mins = int(m.group(1)), int(m.group(2))
    if not (0 <= h <= 23 and 0 <= mins <= 59):
        return None
    return h, mins

def format_hhmm(h: int, m: int) -> str:
    return f"{h:02d}:{m:02d}"

def normalize_hhmm(hhmm: str) -> Optional[str]:
    parsed = parse_hhmm(hhmm)
    return format_hhmm(*parsed) if parsed else None

def resolve_tz(name: Optional[str] = None) -> tzinfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")

def ensure_aware(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    # naive instants are read as wall-clock time in the configured zone
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=resolve_tz(tz_name))
    return dt

def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(resolve_tz(tz_name))

def at_day_offset(start: datetime, day_offset: int, h: int, m: int) -> datetime:
    """Wall-clock h:m on the calendar day `day_offset` days after start's date, in start's zone."""
    day: date = start.date() + timedelta(days=day_offset)
    return datetime.combine(day, time(h, m), tzinfo=start.tzinfo)
