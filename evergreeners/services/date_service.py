"""
Date boundary service.
Turns wall-clock time into the "today"/"yesterday" calendar dates the
metrics core works with, using the configured timezone and day start time.
"""
from datetime import datetime, timedelta, date
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from evergreeners import config

logger = logging.getLogger("evergreeners.dates")


class DateService:
    """Service for date-related operations"""

    def __init__(self, timezone: Optional[str] = None, day_start_time: Optional[str] = None):
        self.timezone = timezone or config.TIMEZONE
        self.day_start_time = day_start_time or config.DAY_START_TIME

    def get_zone(self) -> ZoneInfo:
        """Configured timezone, falling back to UTC when the name is unknown"""
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone '{self.timezone}', using UTC")
            return ZoneInfo("UTC")

    def get_effective_date(self, now: Optional[datetime] = None) -> date:
        """
        Get the effective current date in the configured timezone.

        If the local time is before day_start_time, the effective date is
        still yesterday.

        Example: with day_start_time = "04:00" and a local time of 02:30,
        commits made now still belong to the previous day's chain.

        Args:
            now: Aware datetime to evaluate; defaults to the current time

        Returns:
            Effective local date
        """
        zone = self.get_zone()
        if now is None:
            now = datetime.now(zone)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo("UTC")).astimezone(zone)
        else:
            now = now.astimezone(zone)

        today = now.date()

        try:
            start_hour, start_minute = self.parse_time(self.day_start_time)
        except (ValueError, IndexError, AttributeError):
            return today

        current_minutes = now.hour * 60 + now.minute
        start_minutes = start_hour * 60 + start_minute

        if current_minutes < start_minutes:
            return today - timedelta(days=1)

        return today

    def get_today_and_yesterday(self, now: Optional[datetime] = None) -> Tuple[date, date]:
        """Effective today plus the calendar day before it"""
        today = self.get_effective_date(now)
        return today, today - timedelta(days=1)

    @staticmethod
    def parse_time(time_str: str) -> tuple[int, int]:
        """
        Parse time string into hour and minute.

        Args:
            time_str: Time string in "HH:MM" format

        Returns:
            Tuple of (hour, minute)

        Raises:
            ValueError: If time string is invalid
        """
        parts = time_str.split(":")
        hour = int(parts[0])
        minute = int(parts[1])
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"Invalid time: {time_str}")
        return hour, minute
