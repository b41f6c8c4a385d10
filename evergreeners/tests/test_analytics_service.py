"""
Tests for calendar analytics.
"""
from datetime import timedelta

from evergreeners.services.analytics_service import (
    activity_level, activity_levels, average_daily, build_analytics,
    monthly_totals, most_productive_weekday, weekday_distribution
)
from evergreeners.tests.conftest import make_calendar


class TestActivityLevel:
    """Tests for heatmap levels"""

    def test_bounds(self):
        assert [activity_level(c) for c in (0, 1, 3, 4, 6, 7, 9, 10, 55)] == [0, 1, 1, 2, 2, 3, 3, 4, 4]

    def test_levels_oldest_first(self, today):
        calendar = make_calendar(today, [10, 0, 5, 1])

        assert activity_levels(calendar) == [1, 2, 0, 4]

    def test_levels_limited_to_window(self, today):
        calendar = make_calendar(today, [1] * 400)

        assert len(activity_levels(calendar)) == 365


class TestDistribution:
    """Tests for weekday and monthly aggregation"""

    def test_weekday_distribution(self, today):
        # today (2024-06-10) is a Monday
        calendar = make_calendar(today, [4, 2, 0, 0, 0, 0, 0, 3])

        distribution = weekday_distribution(calendar, today)

        assert [d.day for d in distribution] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert distribution[0].commits == 7
        assert distribution[6].commits == 2
        assert most_productive_weekday(distribution) == "Mon"

    def test_window_excludes_old_days(self, today):
        calendar = [{"date": (today - timedelta(days=120)).isoformat(), "contributionCount": 9}]

        assert sum(d.commits for d in weekday_distribution(calendar, today)) == 0

    def test_tie_goes_to_earlier_weekday(self, today):
        calendar = make_calendar(today, [0, 5, 5])

        distribution = weekday_distribution(calendar, today)

        assert most_productive_weekday(distribution) == "Sat"

    def test_no_activity_has_no_best_day(self, today):
        assert most_productive_weekday(weekday_distribution([], today)) is None

    def test_monthly_totals(self, today):
        calendar = [
            {"date": "2024-06-01", "contributionCount": 2},
            {"date": "2024-06-10", "contributionCount": 3},
            {"date": "2024-05-31", "contributionCount": 4},
            {"date": "2023-12-31", "contributionCount": 100},
        ]

        months = monthly_totals(calendar, today)

        assert [m.month for m in months] == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
        assert months[-1].commits == 5
        assert months[-2].commits == 4
        assert months[0].commits == 0

    def test_monthly_crosses_year(self, today):
        months = monthly_totals([], today.replace(month=2), months=3)

        assert [m.month for m in months] == ["2023-12", "2024-01", "2024-02"]


class TestBuildAnalytics:
    """Tests for the combined analytics response"""

    def test_average_daily(self):
        assert average_daily(730) == 2.0
        assert average_daily(100) == 0.3
        assert average_daily(0) == 0.0

    def test_build(self, today):
        calendar = make_calendar(today, [1, 0, 2])

        result = build_analytics(calendar, today, 365)

        assert result.average_daily == 1.0
        assert result.active_days == 2
        assert result.activity_levels == [1, 0, 1]
