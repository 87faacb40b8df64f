"""
Calendar helpers for the stats endpoint: weekday names and the streak.
"""
from __future__ import annotations

from datetime import date, timedelta
from enum import IntEnum
from typing import Iterable


class Weekday(IntEnum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return cls(day.weekday())

    @property
    def label(self) -> str:
        return self.name.capitalize()


def split_runs(days_desc: list[date]) -> list[list[date]]:
    """
    Partition dates sorted newest first into maximal runs of consecutive days.
    A new run starts wherever a date is not exactly one day before the date
    preceding it in the list.
    """
    runs: list[list[date]] = []
    for i, day in enumerate(days_desc):
        is_break = i > 0 and days_desc[i - 1] - day != timedelta(days=1)
        if i == 0 or is_break:
            runs.append([])
        runs[-1].append(day)
    return runs


def current_streak(days: Iterable[date]) -> int:
    """Length of the most recent run of consecutive active dates."""
    days_desc = sorted(set(days), reverse=True)
    if not days_desc:
        return 0
    return len(split_runs(days_desc)[0])
