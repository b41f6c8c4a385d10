"""
Tests for DateService.

Tests cover:
1. Effective date in the configured timezone
2. Day start time shifting the date boundary
3. Time parsing and fallbacks
"""
import pytest
from datetime import date, datetime, timezone

from evergreeners.services.date_service import DateService


class TestEffectiveDate:
    """Tests for get_effective_date"""

    def test_utc_midnight_boundary(self):
        service = DateService(timezone="UTC", day_start_time="00:00")

        assert service.get_effective_date(datetime(2024, 6, 10, 0, 0, tzinfo=timezone.utc)) == date(2024, 6, 10)
        assert service.get_effective_date(datetime(2024, 6, 9, 23, 59, tzinfo=timezone.utc)) == date(2024, 6, 9)

    def test_converts_to_configured_zone(self):
        """03:00 UTC is still the previous evening in New York"""
        service = DateService(timezone="America/New_York", day_start_time="00:00")

        result = service.get_effective_date(datetime(2024, 6, 10, 3, 0, tzinfo=timezone.utc))

        assert result == date(2024, 6, 9)

    def test_naive_datetime_is_utc(self):
        service = DateService(timezone="Asia/Tokyo", day_start_time="00:00")

        assert service.get_effective_date(datetime(2024, 6, 10, 20, 0)) == date(2024, 6, 11)

    def test_before_day_start_is_yesterday(self):
        """Late-night commits before day start still belong to the previous day"""
        service = DateService(timezone="UTC", day_start_time="04:00")

        assert service.get_effective_date(datetime(2024, 6, 10, 2, 30, tzinfo=timezone.utc)) == date(2024, 6, 9)
        assert service.get_effective_date(datetime(2024, 6, 10, 4, 0, tzinfo=timezone.utc)) == date(2024, 6, 10)

    def test_today_and_yesterday(self):
        service = DateService(timezone="UTC", day_start_time="00:00")

        today, yesterday = service.get_today_and_yesterday(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))

        assert today == date(2024, 3, 1)
        assert yesterday == date(2024, 2, 29)

    def test_defaults_to_now(self):
        service = DateService(timezone="UTC", day_start_time="00:00")

        assert service.get_effective_date() == datetime.now(timezone.utc).date()


class TestFallbacks:
    """Tests for invalid configuration"""

    def test_unknown_timezone_uses_utc(self):
        service = DateService(timezone="Mars/Olympus_Mons", day_start_time="00:00")

        assert service.get_zone().key == "UTC"
        assert service.get_effective_date(datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc)) == date(2024, 6, 10)

    def test_invalid_day_start_ignored(self):
        service = DateService(timezone="UTC", day_start_time="25:99")

        assert service.get_effective_date(datetime(2024, 6, 10, 1, 0, tzinfo=timezone.utc)) == date(2024, 6, 10)


class TestParseTime:
    """Tests for parse_time"""

    def test_valid(self):
        assert DateService.parse_time("04:30") == (4, 30)
        assert DateService.parse_time("0:05") == (0, 5)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "12"])
    def test_invalid(self, value):
        with pytest.raises((ValueError, IndexError)):
            DateService.parse_time(value)
