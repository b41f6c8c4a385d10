"""
Rank tracking service.
Computes leaderboard ranks from score populations and keeps each user's
best-ever rank, which only ever improves.
"""
import logging
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from evergreeners import config
from evergreeners.models import User
from evergreeners.repositories.user_repository import UserRepository, LEADERBOARD_COLUMNS
from evergreeners.schemas import LeaderboardEntry, LeaderboardResponse
from evergreeners.constants import LEADERBOARD_STREAK

logger = logging.getLogger("evergreeners.ranks")


def compute_rank(score: int, peer_scores: Iterable[int]) -> Optional[int]:
    """
    Rank of a score within a population.

    rank = 1 + number of peers with a strictly greater score, so ties share
    a rank. A non-positive score is unranked.

    Args:
        score: The user's own score
        peer_scores: Scores of the population (may include the user's own)

    Returns:
        Rank starting at 1, or None when unranked
    """
    if score is None or score <= 0:
        return None
    return 1 + sum(1 for peer in peer_scores if peer is not None and peer > score)


def reconcile_best_rank(current_rank: Optional[int], previous_best: Optional[int]) -> Optional[int]:
    """
    New best rank after observing current_rank. Lower is better; an unranked
    observation never clears a recorded best.
    """
    if current_rank is None:
        return previous_best
    if previous_best is None or current_rank < previous_best:
        return current_rank
    return previous_best


class RankService:
    """Service for leaderboard and best-rank bookkeeping"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()

    @staticmethod
    def score_of(user: User, metric: str) -> int:
        column = LEADERBOARD_COLUMNS.get(metric, User.streak)
        return getattr(user, column.key) or 0

    def rank_user(self, user: User, metric: str = LEADERBOARD_STREAK) -> Optional[int]:
        """
        Rank a user against every tracked user and record it.

        current_rank is overwritten; best_rank goes through the conditional
        update so it can only improve.
        """
        score = self.score_of(user, metric)
        rank = compute_rank(score, self.user_repo.get_scores(self.db, metric))
        previous_best = user.best_rank

        user.current_rank = rank
        self.user_repo.update(self.db, user)

        if reconcile_best_rank(rank, previous_best) == previous_best:
            return rank
        if self.user_repo.improve_best_rank(self.db, user.id, rank):
            logger.info(f"New best rank for {user.id}: {rank}")
        return rank

    def get_leaderboard(
        self,
        metric: str = LEADERBOARD_STREAK,
        viewer_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> LeaderboardResponse:
        """
        Top public users for a metric plus the viewer's own standing.

        Ranks inside the list share positions on ties, the same rule as
        compute_rank. A viewer found in the list keeps that rank; otherwise
        they are ranked against all users, public or not.

        List ranks count public users only, while the stored current_rank
        counts everyone, so a private user above someone makes the two differ.
        """
        if metric not in LEADERBOARD_COLUMNS:
            metric = LEADERBOARD_STREAK
        limit = limit or config.LEADERBOARD_LIMIT

        top_users = self.user_repo.get_top(self.db, metric, limit)
        scores = [self.score_of(u, metric) for u in top_users]
        entries = [
            self._entry(user, self._list_rank(scores, index) if scores[index] > 0 else None)
            for index, user in enumerate(top_users)
        ]

        current_user_rank = None
        if viewer_id:
            listed = next((entry for entry in entries if entry.id == viewer_id), None)
            viewer = None if listed else self.user_repo.get_by_id(self.db, viewer_id)
            if listed:
                current_user_rank = listed
            elif viewer:
                score = self.score_of(viewer, metric)
                rank = None
                if score > 0:
                    rank = 1 + self.user_repo.count_above(self.db, metric, score)
                current_user_rank = self._entry(viewer, rank)

        return LeaderboardResponse(
            filter=metric,
            users=entries,
            current_user_rank=current_user_rank
        )

    @staticmethod
    def _list_rank(scores: List[int], index: int) -> int:
        # scores are sorted descending, so equal scores sit together
        first = index
        while first > 0 and scores[first - 1] == scores[index]:
            first -= 1
        return first + 1

    @staticmethod
    def _entry(user: User, rank: Optional[int]) -> LeaderboardEntry:
        return LeaderboardEntry(
            rank=rank,
            id=user.id,
            username=user.username,
            name=user.name,
            streak=user.streak or 0,
            total_commits=user.total_commits or 0,
            today_commits=user.today_commits or 0,
            yesterday_commits=user.yesterday_commits or 0,
            weekly_commits=user.weekly_commits or 0,
        )
