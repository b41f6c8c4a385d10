"""
Contribution sync service.
Applies a freshly fetched contribution calendar to a stored user: stats are
recomputed and overwritten wholesale, then rank and goals follow.
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from evergreeners.models import User
from evergreeners.schemas import SyncResponse, UserCreate, UserStats
from evergreeners.repositories.user_repository import UserRepository
from evergreeners.services.date_service import DateService
from evergreeners.services.goal_service import GoalService
from evergreeners.services.profile_service import assign_anonymous_name
from evergreeners.services.rank_service import RankService
from evergreeners.services.streak_service import StreakCalculator, flatten_github_calendar
from evergreeners.exceptions import DatabaseException, UserNotFoundException

logger = logging.getLogger("evergreeners.sync")


class SyncService:
    """Service orchestrating stat recomputation for users"""

    def __init__(self, db: Session, date_service: Optional[DateService] = None):
        self.db = db
        self.user_repo = UserRepository()
        self.date_service = date_service or DateService()
        self.rank_service = RankService(db)
        self.goal_service = GoalService(db)

    def get_user(self, user_id: str) -> User:
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    def ensure_user(self, user_data: UserCreate) -> User:
        """Create the user if missing, otherwise refresh profile fields"""
        user = self.user_repo.get_by_id(self.db, user_data.id)
        if user:
            user.username = user_data.username
            user.name = user_data.name
            user.is_public = user_data.is_public
            assign_anonymous_name(user)
            return self.user_repo.update(self.db, user)
        user = User(**user_data.model_dump())
        assign_anonymous_name(user)
        return self.user_repo.create(self.db, user)

    @staticmethod
    def stats_of(user: User) -> UserStats:
        """Stats currently stored on a user row"""
        return UserStats(
            streak=user.streak or 0,
            total_commits=user.total_commits or 0,
            today_commits=user.today_commits or 0,
            yesterday_commits=user.yesterday_commits or 0,
            weekly_commits=user.weekly_commits or 0,
            active_days=user.active_days or 0,
            total_projects=user.total_projects or 0,
        )

    def sync_user(
        self,
        user_id: str,
        calendar: Union[List[Any], Dict[str, Any]],
        total_commits: Optional[int] = None,
        total_projects: Optional[int] = None,
        today: Optional[date] = None
    ) -> SyncResponse:
        """
        Store a new calendar for a user and recompute everything from it.

        Args:
            user_id: User to sync
            calendar: Flat list of days or GitHub's contributionCalendar object
            total_commits: Producer-reported total, if known
            total_projects: Project count, if known (keeps the stored one otherwise)
            today: Override of the effective date, mainly for tests

        Returns:
            Sync summary with the new stats and rank
        """
        user = self.get_user(user_id)

        if isinstance(calendar, dict):
            if total_commits is None and isinstance(calendar.get("totalContributions"), int):
                total_commits = calendar["totalContributions"]
            calendar = flatten_github_calendar(calendar)

        days = StreakCalculator.normalize(calendar)
        user.contribution_data = [day.model_dump(by_alias=True, mode="json") for day in days]
        user.reported_total_commits = total_commits
        if total_projects is not None:
            user.total_projects = total_projects

        logger.info(f"Sync for {user_id}: {len(days)} calendar days")
        try:
            return self.recompute_user(user, today)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Sync for {user_id} failed: {e}")
            raise DatabaseException("sync", str(e))

    def _dates(self, today: Optional[date]) -> Tuple[date, date]:
        if today is None:
            return self.date_service.get_today_and_yesterday()
        return today, today - timedelta(days=1)

    def _write_stats(self, user: User, today: date, yesterday: date) -> UserStats:
        """Overwrite a user's stat columns from the stored calendar"""
        stats = StreakCalculator.compute(
            user.contribution_data,
            today,
            yesterday,
            total_commits=user.reported_total_commits,
            total_projects=user.total_projects or 0,
        )

        for field, value in stats.model_dump().items():
            setattr(user, field, value)
        self.user_repo.update(self.db, user)
        return stats

    def _rank_and_refresh(self, user: User, stats: UserStats) -> SyncResponse:
        """Rank against the stored population, then move goals along"""
        rank = self.rank_service.rank_user(user)
        completed = self.goal_service.refresh_for_user(user.id, stats)

        self.db.refresh(user)
        logger.info(f"Stats for {user.id}: streak={stats.streak} weekly={stats.weekly_commits} rank={rank}")
        return SyncResponse(
            stats=stats,
            current_rank=user.current_rank,
            best_rank=user.best_rank,
            completed_goals=[goal.id for goal in completed],
        )

    def recompute_user(self, user: User, today: Optional[date] = None) -> SyncResponse:
        """Recompute a user's stats from the stored calendar"""
        today, yesterday = self._dates(today)
        stats = self._write_stats(user, today, yesterday)
        return self._rank_and_refresh(user, stats)

    def recompute_all(self, today: Optional[date] = None) -> int:
        """
        Recompute stats for every user with a stored calendar.

        Every user's stats are written before anyone is ranked, so ranks
        compare fresh scores only.

        Returns:
            Number of users recomputed
        """
        today, yesterday = self._dates(today)
        users = self.user_repo.get_with_contributions(self.db)
        fresh = [(user, self._write_stats(user, today, yesterday)) for user in users]
        for user, stats in fresh:
            self._rank_and_refresh(user, stats)
        return len(users)
