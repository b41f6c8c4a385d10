"""
Activity analytics over a contribution calendar.
Heatmap levels, weekday distribution and monthly trend.
"""
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional

from evergreeners.constants import (
    ACTIVITY_LEVEL_BOUNDS, ACTIVITY_GRID_DAYS, WEEKDAY_WINDOW_DAYS,
    MONTHLY_TREND_MONTHS, WEEKDAY_NAMES, WEEKLY_WINDOW_DAYS
)
from evergreeners.schemas import AnalyticsResponse, MonthlyCommits, WeekdayCommits
from evergreeners.services.streak_service import StreakCalculator


def activity_level(count: int) -> int:
    """
    Heatmap level for a day's count.

    0 -> 0, 1-3 -> 1, 4-6 -> 2, 7-9 -> 3, 10+ -> 4
    """
    if count <= 0:
        return 0
    for level, upper in enumerate(ACTIVITY_LEVEL_BOUNDS, start=1):
        if count <= upper:
            return level
    return len(ACTIVITY_LEVEL_BOUNDS) + 1


def activity_levels(calendar: Iterable[Any], days: int = ACTIVITY_GRID_DAYS) -> List[int]:
    """Levels of the most recent `days` calendar entries, oldest first"""
    recent = StreakCalculator.normalize(calendar)[:days]
    return [activity_level(day.count) for day in reversed(recent)]


def weekday_distribution(
    calendar: Iterable[Any],
    today: date,
    days: int = WEEKDAY_WINDOW_DAYS
) -> List[WeekdayCommits]:
    """Commits per weekday (Mon..Sun) over the trailing window ending today"""
    counts = StreakCalculator.counts_by_date(StreakCalculator.normalize(calendar))
    totals = [0] * 7
    for offset in range(days):
        day = today - timedelta(days=offset)
        totals[day.weekday()] += counts.get(day, 0)
    return [WeekdayCommits(day=name, commits=totals[i]) for i, name in enumerate(WEEKDAY_NAMES)]


def monthly_totals(
    calendar: Iterable[Any],
    today: date,
    months: int = MONTHLY_TREND_MONTHS
) -> List[MonthlyCommits]:
    """Commits per calendar month for the trailing months, oldest first"""
    keys = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    keys.reverse()

    totals = {key: 0 for key in keys}
    for day in StreakCalculator.normalize(calendar):
        key = (day.date.year, day.date.month)
        if key in totals and day.date <= today:
            totals[key] += day.count

    return [MonthlyCommits(month=f"{y:04d}-{m:02d}", commits=totals[(y, m)]) for y, m in keys]


def most_productive_weekday(distribution: List[WeekdayCommits]) -> Optional[str]:
    """Weekday with the most commits; the earlier weekday wins a tie"""
    best = None
    for entry in distribution:
        if entry.commits > 0 and (best is None or entry.commits > best.commits):
            best = entry
    return best.day if best else None


def average_daily(total_commits: int, days: int = ACTIVITY_GRID_DAYS) -> float:
    if days <= 0:
        return 0.0
    return round((total_commits or 0) / days, 1)


def build_analytics(calendar: Iterable[Any], today: date, total_commits: int) -> AnalyticsResponse:
    """Everything the analytics page needs in one response"""
    days = StreakCalculator.normalize(calendar)
    distribution = weekday_distribution(days, today)
    counts = StreakCalculator.counts_by_date(days)
    return AnalyticsResponse(
        activity_levels=activity_levels(days),
        weekday_distribution=distribution,
        monthly_totals=monthly_totals(days, today),
        most_productive_day=most_productive_weekday(distribution),
        average_daily=average_daily(total_commits),
        active_days=StreakCalculator.window_active_days(counts, today, WEEKLY_WINDOW_DAYS),
    )
