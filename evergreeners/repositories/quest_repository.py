"""
Quest repository - Data access layer for quests and their assignments.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from evergreeners.models import Quest, QuestAssignment, User
from evergreeners.constants import ASSIGNMENT_STATUS_ACTIVE, ASSIGNMENT_STATUS_COMPLETED


class QuestRepository:
    """Repository for Quest data access"""

    @staticmethod
    def get_all(db: Session) -> List[Quest]:
        """Get all quests, newest first"""
        return db.query(Quest).order_by(Quest.created_at.desc(), Quest.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, quest_id: int) -> Optional[Quest]:
        """Get quest by ID"""
        return db.query(Quest).filter(Quest.id == quest_id).first()

    @staticmethod
    def create(db: Session, quest: Quest) -> Quest:
        """Create new quest"""
        db.add(quest)
        db.commit()
        db.refresh(quest)
        return quest


class QuestAssignmentRepository:
    """Repository for QuestAssignment data access"""

    @staticmethod
    def get_for_quest(db: Session, quest_id: int) -> List[QuestAssignment]:
        """All assignments of a quest"""
        return db.query(QuestAssignment).filter(QuestAssignment.quest_id == quest_id).all()

    @staticmethod
    def get_all(db: Session) -> List[QuestAssignment]:
        """All assignments"""
        return db.query(QuestAssignment).all()

    @staticmethod
    def get_active(db: Session, quest_id: int) -> Optional[QuestAssignment]:
        """Current active holder of a quest, if any"""
        return db.query(QuestAssignment).filter(
            QuestAssignment.quest_id == quest_id,
            QuestAssignment.status == ASSIGNMENT_STATUS_ACTIVE
        ).first()

    @staticmethod
    def get_for_user(db: Session, quest_id: int, user_id: str) -> Optional[QuestAssignment]:
        """A user's assignment on a quest, preferring the active one"""
        assignments = db.query(QuestAssignment).filter(
            QuestAssignment.quest_id == quest_id,
            QuestAssignment.user_id == user_id
        ).all()
        for assignment in assignments:
            if assignment.status == ASSIGNMENT_STATUS_ACTIVE:
                return assignment
        return assignments[0] if assignments else None

    @staticmethod
    def has_completed(db: Session, quest_id: int, user_id: str) -> bool:
        """Whether the user already completed this quest"""
        return db.query(QuestAssignment).filter(
            QuestAssignment.quest_id == quest_id,
            QuestAssignment.user_id == user_id,
            QuestAssignment.status == ASSIGNMENT_STATUS_COMPLETED
        ).first() is not None

    @staticmethod
    def create(db: Session, assignment: QuestAssignment) -> QuestAssignment:
        """
        Insert an assignment.

        Raises IntegrityError when the active-holder unique index rejects it;
        the caller owns the rollback.
        """
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment

    @staticmethod
    def update(db: Session, assignment: QuestAssignment) -> QuestAssignment:
        """Update existing assignment"""
        db.commit()
        db.refresh(assignment)
        return assignment

    @staticmethod
    def delete(db: Session, assignment: QuestAssignment) -> None:
        """Delete an assignment"""
        db.delete(assignment)
        db.commit()

    @staticmethod
    def complete(
        db: Session,
        assignment_id: int,
        user_id: str,
        points: int,
        fork_url: Optional[str] = None
    ) -> bool:
        """
        Mark an active assignment completed and credit the quest's XP.

        The status change is a conditional UPDATE on status = 'active', and
        XP is added in SQL only when that update hit the row, so concurrent
        checks credit the reward once.

        Returns:
            True if this call completed the assignment
        """
        now = datetime.utcnow()
        values = {
            "status": ASSIGNMENT_STATUS_COMPLETED,
            "completed_at": now,
            "forked_at": func.coalesce(QuestAssignment.forked_at, now),
        }
        if fork_url:
            values["fork_url"] = func.coalesce(QuestAssignment.fork_url, fork_url)

        result = db.execute(
            update(QuestAssignment)
            .where(QuestAssignment.id == assignment_id)
            .where(QuestAssignment.status == ASSIGNMENT_STATUS_ACTIVE)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        completed = result.rowcount == 1
        if completed and points:
            db.execute(
                update(User)
                .where(User.id == user_id)
                .values(xp=func.coalesce(User.xp, 0) + points)
                .execution_options(synchronize_session=False)
            )
        db.commit()
        return completed
