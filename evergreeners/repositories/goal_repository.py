"""
Goal repository - Data access layer for the Goal model.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from evergreeners.models import Goal


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: str, include_completed: bool = True) -> List[Goal]:
        """Get a user's goals, oldest first"""
        query = db.query(Goal).filter(Goal.user_id == user_id)
        if not include_completed:
            query = query.filter(Goal.completed == False)
        return query.order_by(Goal.created_at, Goal.id).all()

    @staticmethod
    def get_by_id(db: Session, goal_id: int, user_id: str) -> Optional[Goal]:
        """Get one of a user's goals by ID"""
        return db.query(Goal).filter(Goal.id == goal_id, Goal.user_id == user_id).first()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        """Create new goal"""
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: Goal) -> Goal:
        """Update existing goal"""
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def delete(db: Session, goal: Goal) -> None:
        """Delete a goal"""
        db.delete(goal)
        db.commit()
