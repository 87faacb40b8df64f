"""
Focus stats for one user: totals, weekday activity per window, the most
productive weekday, average sessions per active day, week-over-week change,
the current streak and a 90-day heatmap.

Each facet is its own read; a session written mid-computation may show up in
some facets and not in others.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, Optional

from models import as_utc, round_half_up, utcnow
from results import Ok, Result, storage_guarded, unauthenticated
from store import DayAggregate, RecordStore, SessionFilter
from streaks import Weekday, current_streak

ACTIVITY_WINDOWS = (("last_7_days", 7), ("last_30_days", 30), ("last_90_days", 90))
AVERAGE_DAILY_WINDOW_DAYS = 30
HEATMAP_WINDOW_DAYS = 90
TREND_WINDOW = timedelta(days=7)


def to_int(value: Any) -> int:
    """Counts and minute totals; a missing aggregate (SQL NULL) is 0."""
    if value is None:
        return 0
    return round_half_up(float(value))


def weekday_buckets(days: Iterable[DayAggregate]) -> dict[str, dict]:
    counts: dict[Weekday, int] = defaultdict(int)
    minutes: dict[Weekday, float] = defaultdict(float)
    for agg in days:
        weekday = Weekday.of(agg.day)
        counts[weekday] += agg.count
        minutes[weekday] += agg.minutes
    return {
        weekday.label: {"count": counts[weekday], "total_minutes": to_int(minutes[weekday])}
        for weekday in sorted(counts)
        if counts[weekday]
    }


def most_productive_day(days: Iterable[DayAggregate]) -> Optional[str]:
    """Weekday with the most focus minutes; ties go to the earlier weekday."""
    totals: dict[Weekday, float] = defaultdict(float)
    for agg in days:
        totals[Weekday.of(agg.day)] += agg.minutes
    if not totals:
        return None
    return max(sorted(totals), key=lambda weekday: totals[weekday]).label


def average_daily_sessions(days: Iterable[DayAggregate]) -> float:
    """Mean sessions per calendar date, over dates that had at least one."""
    counts = [agg.count for agg in days if agg.count]
    if not counts:
        return 0.0
    return round(sum(counts) / len(counts), 2)


def weekly_change(current: int, previous: int) -> int:
    """
    Percent change from ``previous`` to ``current``. Growth from zero is a
    flat 100, no activity in either week is 0.
    """
    if previous == 0:
        return 0 if current == 0 else 100
    return round_half_up((current - previous) / previous * 100)


def heatmap(days: Iterable[DayAggregate]) -> list[dict]:
    return [
        {"date": agg.day.isoformat(), "count": agg.count, "minutes": to_int(agg.minutes)}
        for agg in days
        if agg.count
    ]


@storage_guarded
def compute_stats(
    store: RecordStore,
    owner: Optional[str],
    *,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> Result[dict]:
    if not owner:
        return unauthenticated()
    now = as_utc(now or utcnow())

    total_sessions = to_int(store.count_sessions(owner, SessionFilter()))
    completed_sessions = to_int(store.count_sessions(owner, SessionFilter(completed=True)))
    focus_minutes = store.sum_duration(owner, SessionFilter(completed=True)) or 0.0

    windows = {
        name: store.group_by_day(owner, days, False, now, tz) for name, days in ACTIVITY_WINDOWS
    }
    all_time_completed = store.group_by_day(owner, None, True, now, tz)

    this_week = to_int(
        store.count_sessions(
            owner, SessionFilter(completed=True, since=now - TREND_WINDOW, until=now)
        )
    )
    last_week = to_int(
        store.count_sessions(
            owner,
            SessionFilter(completed=True, since=now - 2 * TREND_WINDOW, until=now - TREND_WINDOW),
        )
    )

    return Ok(
        {
            "total_sessions": total_sessions,
            "completed_sessions": completed_sessions,
            "completion_rate": (
                round_half_up(completed_sessions / total_sessions * 100) if total_sessions else 0
            ),
            "total_focus_minutes": to_int(focus_minutes),
            "average_session_duration_minutes": (
                to_int(focus_minutes / completed_sessions) if completed_sessions else 0
            ),
            "activity": {name: weekday_buckets(days) for name, days in windows.items()},
            "most_productive_day": most_productive_day(all_time_completed),
            "average_daily_sessions": average_daily_sessions(
                windows[f"last_{AVERAGE_DAILY_WINDOW_DAYS}_days"]
            ),
            "weekly_change": weekly_change(this_week, last_week),
            "current_streak": current_streak(store.distinct_completed_dates(owner, tz)),
            "heatmap_data": heatmap(windows[f"last_{HEATMAP_WINDOW_DAYS}_days"]),
        }
    )
