"""
Contribution streak calculation.
Turns a raw per-day contribution calendar into streak and commit aggregates.

Everything here is pure: "today" and "yesterday" are passed in as calendar
dates by the caller and no clock is read.
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from evergreeners.constants import WEEKLY_WINDOW_DAYS
from evergreeners.schemas import ContributionDay, UserStats

logger = logging.getLogger("evergreeners.streaks")


class StreakCalculator:
    """Derives UserStats from a contribution calendar"""

    @staticmethod
    def normalize(calendar: Optional[Iterable[Any]]) -> List[ContributionDay]:
        """
        Parse, deduplicate and sort a calendar, newest first.

        Accepts ContributionDay objects or mappings with "date" and
        "contributionCount" (or "count"). Entries that cannot be parsed are
        skipped. When a date appears twice the later entry wins.

        Args:
            calendar: Raw calendar in any order

        Returns:
            Days sorted by date descending, one per date
        """
        by_date: Dict[date, ContributionDay] = {}
        for item in calendar or []:
            day = StreakCalculator._parse_day(item)
            if day is None:
                logger.debug(f"Skipping malformed calendar entry: {item!r}")
                continue
            by_date[day.date] = day
        return sorted(by_date.values(), key=lambda d: d.date, reverse=True)

    @staticmethod
    def _parse_day(item: Any) -> Optional[ContributionDay]:
        if isinstance(item, ContributionDay):
            return item
        if not isinstance(item, dict):
            return None
        try:
            return ContributionDay.model_validate(item)
        except ValidationError:
            return None

    @staticmethod
    def counts_by_date(days: Iterable[ContributionDay]) -> Dict[date, int]:
        """Map each date to its count"""
        return {day.date: day.count for day in days}

    @staticmethod
    def window_commits(counts: Dict[date, int], end: date, days: int) -> int:
        """Sum of counts over the `days` calendar dates ending at `end`, inclusive"""
        return sum(counts.get(end - timedelta(days=offset), 0) for offset in range(days))

    @staticmethod
    def window_active_days(counts: Dict[date, int], end: date, days: int) -> int:
        """Number of dates with activity in the window ending at `end`"""
        return sum(
            1 for offset in range(days)
            if counts.get(end - timedelta(days=offset), 0) > 0
        )

    @staticmethod
    def current_streak(days: List[ContributionDay], today: date, yesterday: date) -> int:
        """
        Length of the current run of consecutive active days.

        The run is anchored at the most recent active day. If that day is
        neither today nor yesterday the chain is broken and the streak is 0.
        A quiet today does not break a chain that reached yesterday.

        Args:
            days: Normalized calendar, newest first
            today: Caller's current calendar date
            yesterday: Caller's previous calendar date

        Returns:
            Streak length (0 if broken or no activity)
        """
        counts = StreakCalculator.counts_by_date(days)

        last_active = next(
            (d.date for d in days if d.count > 0 and d.date <= today),
            None
        )
        if last_active is None:
            return 0
        if last_active != today and last_active != yesterday:
            return 0

        streak = 0
        cursor = last_active
        while counts.get(cursor, 0) > 0:
            streak += 1
            cursor -= timedelta(days=1)
        return streak

    @staticmethod
    def compute(
        calendar: Optional[Iterable[Any]],
        today: date,
        yesterday: date,
        total_commits: Optional[int] = None,
        total_projects: int = 0
    ) -> UserStats:
        """
        Compute all derived stats for one calendar.

        Args:
            calendar: Raw calendar in any order
            today: Caller's current calendar date
            yesterday: Caller's previous calendar date
            total_commits: Total reported by the producer, if any;
                otherwise the sum of all counts is used
            total_projects: Project count supplied by the caller

        Returns:
            Fresh UserStats
        """
        days = StreakCalculator.normalize(calendar)
        counts = StreakCalculator.counts_by_date(days)

        if total_commits is None or total_commits < 0:
            total_commits = sum(counts.values())

        return UserStats(
            streak=StreakCalculator.current_streak(days, today, yesterday),
            total_commits=total_commits,
            today_commits=counts.get(today, 0),
            yesterday_commits=counts.get(yesterday, 0),
            weekly_commits=StreakCalculator.window_commits(counts, today, WEEKLY_WINDOW_DAYS),
            active_days=StreakCalculator.window_active_days(counts, today, WEEKLY_WINDOW_DAYS),
            total_projects=max(0, total_projects or 0),
        )


def flatten_github_calendar(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Flatten GitHub's contributionCalendar object into a list of days.

    {"weeks": [{"contributionDays": [{"date": ..., "contributionCount": ...}]}]}
    """
    days = []
    for week in payload.get("weeks") or []:
        if not isinstance(week, dict):
            continue
        days.extend(week.get("contributionDays") or [])
    return days


def compute_streak_stats(
    calendar: Optional[Iterable[Any]],
    today: date,
    yesterday: date,
    total_commits: Optional[int] = None,
    total_projects: int = 0
) -> UserStats:
    return StreakCalculator.compute(calendar, today, yesterday, total_commits, total_projects)
