"""
Quest service.
Evaluates quest progress from fork/activity evidence and manages the
exclusive accept/drop lifecycle of quest assignments.

Progress protocol:
1. Fork the quest's repository   -> in_progress
2. Push a commit or open a PR    -> completed
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from evergreeners.models import Quest, QuestAssignment
from evergreeners.schemas import (
    QuestCreate, QuestEvidence, QuestResponse, QuestProgressInfo, QuestCheckResponse
)
from evergreeners.repositories.quest_repository import QuestRepository, QuestAssignmentRepository
from evergreeners.repositories.user_repository import UserRepository
from evergreeners.exceptions import (
    QuestNotFoundException, QuestTakenException, OwnQuestException,
    QuestAlreadyCompletedException, QuestNotAcceptedException, UserNotFoundException
)
from evergreeners.constants import (
    ASSIGNMENT_STATUS_ACTIVE, ASSIGNMENT_STATUS_COMPLETED, QUEST_POINTS,
    QUEST_NOT_STARTED, QUEST_IN_PROGRESS, QUEST_COMPLETED, QUEST_ERROR
)

logger = logging.getLogger("evergreeners.quests")

_PROGRESS_ORDER: Dict[str, int] = {
    QUEST_NOT_STARTED: 0,
    QUEST_IN_PROGRESS: 1,
    QUEST_COMPLETED: 2,
}


def check_quest(evidence: Optional[QuestEvidence]) -> str:
    """
    Progress state shown by one round of evidence.

    None means the lookup itself failed, which yields "error" rather than
    "not_started" so callers can tell the two apart.
    """
    if evidence is None:
        return QUEST_ERROR
    if not evidence.fork_exists:
        return QUEST_NOT_STARTED
    if not evidence.has_qualifying_activity:
        return QUEST_IN_PROGRESS
    return QUEST_COMPLETED


def merge_status(persisted: str, checked: str) -> str:
    """
    Combine persisted progress with a fresh check.

    Errors leave the persisted state alone and progress never moves
    backwards.
    """
    if checked not in _PROGRESS_ORDER:
        return persisted
    if _PROGRESS_ORDER.get(persisted, 0) >= _PROGRESS_ORDER[checked]:
        return persisted
    return checked


def assignment_progress(assignment: Optional[QuestAssignment]) -> str:
    """Persisted progress of an assignment"""
    if assignment is None:
        return QUEST_NOT_STARTED
    if assignment.status == ASSIGNMENT_STATUS_COMPLETED:
        return QUEST_COMPLETED
    if assignment.forked_at or assignment.fork_url:
        return QUEST_IN_PROGRESS
    return QUEST_NOT_STARTED


class QuestService:
    """Service for quests and their assignments"""

    def __init__(self, db: Session):
        self.db = db
        self.quest_repo = QuestRepository()
        self.assignment_repo = QuestAssignmentRepository()
        self.user_repo = UserRepository()

    def get_quest(self, quest_id: int) -> Quest:
        quest = self.quest_repo.get_by_id(self.db, quest_id)
        if not quest:
            raise QuestNotFoundException(quest_id)
        return quest

    def create_quest(self, creator_id: str, quest_data: QuestCreate) -> Quest:
        """Create a quest; its XP comes from the difficulty"""
        if not self.user_repo.get_by_id(self.db, creator_id):
            raise UserNotFoundException(creator_id)

        quest = Quest(
            title=quest_data.title,
            description=quest_data.description,
            repo_url=quest_data.repo_url,
            tags=list(quest_data.tags),
            difficulty=quest_data.difficulty,
            points=QUEST_POINTS.get(quest_data.difficulty, 0),
            created_by=creator_id,
        )
        return self.quest_repo.create(self.db, quest)

    def list_quests(self, viewer_id: Optional[str] = None) -> List[QuestResponse]:
        """All quests with holder and viewer-specific progress"""
        assignments_by_quest: Dict[int, List[QuestAssignment]] = {}
        for assignment in self.assignment_repo.get_all(self.db):
            assignments_by_quest.setdefault(assignment.quest_id, []).append(assignment)

        return [
            self._quest_response(quest, assignments_by_quest.get(quest.id, []), viewer_id)
            for quest in self.quest_repo.get_all(self.db)
        ]

    def _quest_response(
        self,
        quest: Quest,
        assignments: List[QuestAssignment],
        viewer_id: Optional[str]
    ) -> QuestResponse:
        active = next((a for a in assignments if a.status == ASSIGNMENT_STATUS_ACTIVE), None)
        holder = active or next(
            (a for a in assignments if a.status == ASSIGNMENT_STATUS_COMPLETED), None
        )
        mine = None
        if viewer_id:
            mine_list = [a for a in assignments if a.user_id == viewer_id]
            mine = next(
                (a for a in mine_list if a.status == ASSIGNMENT_STATUS_ACTIVE),
                mine_list[0] if mine_list else None
            )

        return QuestResponse(
            id=quest.id,
            title=quest.title,
            description=quest.description,
            repo_url=quest.repo_url,
            tags=quest.tags or [],
            difficulty=quest.difficulty,
            points=quest.points or 0,
            created_by=quest.created_by,
            created_at=quest.created_at,
            is_taken=active is not None,
            accepted_by=holder.user_id if holder else None,
            accepted_status=holder.status if holder else None,
            my_status=mine.status if mine else None,
            my_progress=QuestProgressInfo(
                started_at=mine.started_at,
                completed_at=mine.completed_at,
                fork_url=mine.fork_url,
            ) if mine else None,
        )

    def accept_quest(self, user_id: str, quest_id: int) -> QuestAssignment:
        """
        Take exclusive hold of a quest.

        The insert is the atomic step: the unique index on active assignments
        rejects a second holder even when two accepts race.

        Raises:
            OwnQuestException: the user created the quest
            QuestAlreadyCompletedException: the user already completed it
            QuestTakenException: someone (possibly the user) holds it already
        """
        quest = self.get_quest(quest_id)
        if quest.created_by == user_id:
            raise OwnQuestException(quest_id)
        if self.assignment_repo.has_completed(self.db, quest_id, user_id):
            raise QuestAlreadyCompletedException(quest_id, user_id)

        assignment = QuestAssignment(
            quest_id=quest_id,
            user_id=user_id,
            status=ASSIGNMENT_STATUS_ACTIVE,
            started_at=datetime.utcnow(),
        )
        try:
            assignment = self.assignment_repo.create(self.db, assignment)
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Quest {quest_id} already taken, rejecting {user_id}")
            raise QuestTakenException(quest_id)

        logger.info(f"Quest {quest_id} accepted by {user_id}")
        return assignment

    def drop_quest(self, user_id: str, quest_id: int) -> None:
        """Release the user's active hold on a quest"""
        self.get_quest(quest_id)
        assignment = self.assignment_repo.get_for_user(self.db, quest_id, user_id)
        if not assignment or assignment.status != ASSIGNMENT_STATUS_ACTIVE:
            raise QuestNotAcceptedException(quest_id, user_id)

        self.assignment_repo.delete(self.db, assignment)
        logger.info(f"Quest {quest_id} dropped by {user_id}")

    def check_progress(
        self,
        user_id: str,
        quest_id: int,
        evidence: Optional[QuestEvidence]
    ) -> QuestCheckResponse:
        """
        Apply one round of evidence to the user's assignment.

        Only forward transitions are written. A failed lookup is reported as
        "error" and leaves the stored progress untouched.
        """
        quest = self.get_quest(quest_id)
        assignment = self.assignment_repo.get_for_user(self.db, quest_id, user_id)
        if not assignment:
            raise QuestNotAcceptedException(quest_id, user_id)

        checked = check_quest(evidence)
        persisted = assignment_progress(assignment)
        status = merge_status(persisted, checked)

        if checked == QUEST_ERROR:
            logger.warning(f"Quest {quest_id} check for {user_id} could not be evaluated")

        if status == QUEST_COMPLETED and persisted != QUEST_COMPLETED:
            fork_url = evidence.fork_url if evidence is not None else None
            if self.assignment_repo.complete(self.db, assignment.id, user_id, quest.points or 0, fork_url):
                logger.info(f"Quest {quest_id} completed by {user_id}, +{quest.points} XP")
            else:
                logger.info(f"Quest {quest_id} was already completed for {user_id}")
        elif status != persisted:
            assignment.forked_at = assignment.forked_at or datetime.utcnow()
            if evidence is not None and evidence.fork_url and not assignment.fork_url:
                assignment.fork_url = evidence.fork_url
            self.assignment_repo.update(self.db, assignment)
            logger.info(f"Quest {quest_id} progress for {user_id}: {persisted} -> {status}")

        return QuestCheckResponse(quest_id=quest_id, checked_status=checked, status=status)
