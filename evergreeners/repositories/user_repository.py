"""
User repository - Data access layer for the User model.
Handles user lookups, stat overwrites and leaderboard queries.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, or_, update

from evergreeners.models import User
from evergreeners.constants import LEADERBOARD_COMMITS, LEADERBOARD_STREAK, LEADERBOARD_WEEKLY


LEADERBOARD_COLUMNS = {
    LEADERBOARD_STREAK: User.streak,
    LEADERBOARD_COMMITS: User.total_commits,
    LEADERBOARD_WEEKLY: User.weekly_commits,
}


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def metric_column(metric: str):
        """Column backing a leaderboard filter (unknown filters rank by streak)"""
        return LEADERBOARD_COLUMNS.get(metric, User.streak)

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_with_contributions(db: Session) -> List[User]:
        """Get all users that have a stored contribution calendar"""
        return db.query(User).filter(User.contribution_data.isnot(None)).order_by(User.id).all()

    @staticmethod
    def create(db: Session, user: User) -> User:
        """Create new user"""
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User) -> User:
        """Update existing user"""
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_top(db: Session, metric: str, limit: int) -> List[User]:
        """Top public users by metric, ties ordered by username"""
        column = UserRepository.metric_column(metric)
        return db.query(User).filter(
            User.is_public == True
        ).order_by(column.desc(), User.username).limit(limit).all()

    @staticmethod
    def get_scores(db: Session, metric: str) -> List[int]:
        """Every user's score for a metric"""
        column = UserRepository.metric_column(metric)
        return [score or 0 for (score,) in db.query(column).all()]

    @staticmethod
    def count_above(db: Session, metric: str, score: int) -> int:
        """Number of users whose metric is strictly greater than score"""
        column = UserRepository.metric_column(metric)
        return db.query(func.count(User.id)).filter(column > score).scalar() or 0

    @staticmethod
    def improve_best_rank(db: Session, user_id: str, rank: int) -> bool:
        """
        Record a new best rank only if it beats the stored one.

        A single conditional UPDATE, so concurrent syncs for the same user
        cannot lose an improvement.

        Returns:
            True if the stored best rank changed
        """
        result = db.execute(
            update(User)
            .where(User.id == user_id)
            .where(or_(User.best_rank.is_(None), User.best_rank > rank))
            .values(best_rank=rank)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount > 0
