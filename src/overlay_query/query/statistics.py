"""Record counts over trailing time windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Sequence

from overlay_query.query.filters import CREATED_AT_FIELD
from overlay_query.store.record_store import RecordStore


@dataclass(frozen=True)
class StatsWindow:
    """A named trailing duration."""

    name: str
    duration: timedelta


LAST_1H = StatsWindow("last1h", timedelta(hours=1))
LAST_24H = StatsWindow("last24h", timedelta(hours=24))
LAST_7D = StatsWindow("last7d", timedelta(days=7))
LAST_30D = StatsWindow("last30d", timedelta(days=30))

DASHBOARD_WINDOWS = (LAST_24H, LAST_7D, LAST_30D)
ADMIN_WINDOWS = (LAST_1H, LAST_24H, LAST_7D, LAST_30D)


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def window_filter(window: StatsWindow, now: datetime) -> Dict:
    """Filter for records created at or after ``now - window.duration``."""
    return {CREATED_AT_FIELD: {"$gte": now - window.duration}}


def count_windows(store: RecordStore, windows: Sequence[StatsWindow], now: datetime) -> Dict[str, int]:
    """Count records inside each window, all relative to the same ``now``.

    Each window is an independent count, not a difference between windows,
    so for a fixed record set the counts never decrease as windows grow.
    """
    return {window.name: store.count(window_filter(window, now)) for window in windows}
