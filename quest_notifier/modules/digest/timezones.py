"""
IANA zone selection for the hourly digest.

Every tick scans the full tz database (about 600 zones) and keeps the zones
whose local wall-clock hour matches.

The match is on the wall-clock hour only. Zones with a non-whole-hour offset
(e.g. Asia/Kolkata, +05:30) are selected during the UTC hour in which their
local time is 09:xx. On DST transition days a zone may match in two
consecutive ticks or in none.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from quest_notifier.core.logging.logger import get_logger

logger = get_logger(__name__)


def zones_at_local_hour(
    now: datetime, hour: int, zones: Optional[Iterable[str]] = None
) -> List[str]:
    """Sorted names of the zones in which `now` falls in local hour `hour`."""
    candidates = zones if zones is not None else available_timezones()
    matched: List[str] = []
    for name in candidates:
        try:
            tz = ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Skipping unloadable zone", extra={"zone": name})
            continue
        if now.astimezone(tz).hour == hour:
            matched.append(name)
    return sorted(matched)
