"""
Goal progress service.
Seeds goal progress from contribution stats and decides completion, with
support for a manual completion override.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from evergreeners.models import Goal
from evergreeners.schemas import GoalCreate, GoalUpdate, UserStats
from evergreeners.repositories.goal_repository import GoalRepository
from evergreeners.exceptions import GoalNotFoundException, ValidationException
from evergreeners.constants import (
    GOAL_TYPE_STREAK, GOAL_TYPE_COMMITS, GOAL_TYPE_DAYS, GOAL_TYPE_PROJECTS, GOAL_TYPES,
    COMMITS_WINDOW_WEEKLY, COMMITS_WINDOW_TOTAL
)

logger = logging.getLogger("evergreeners.goals")


class GoalMetric(str, Enum):
    STREAK = "streak"
    TOTAL_COMMITS = "total_commits"
    WEEKLY_COMMITS = "weekly_commits"
    ACTIVE_DAYS = "active_days"
    TOTAL_PROJECTS = "total_projects"

    def select(self, stats: Optional[UserStats]) -> int:
        """Read this metric from stats (0 when stats are absent)"""
        if stats is None:
            return 0
        return getattr(stats, self.value, 0) or 0


_TYPE_METRICS: Dict[str, GoalMetric] = {
    GOAL_TYPE_STREAK: GoalMetric.STREAK,
    GOAL_TYPE_DAYS: GoalMetric.ACTIVE_DAYS,
    GOAL_TYPE_PROJECTS: GoalMetric.TOTAL_PROJECTS,
}


def resolve_metric(goal_type: str, commits_window: Optional[str] = None) -> GoalMetric:
    """Stat a goal of this type tracks"""
    if goal_type == GOAL_TYPE_COMMITS:
        if commits_window == COMMITS_WINDOW_WEEKLY:
            return GoalMetric.WEEKLY_COMMITS
        return GoalMetric.TOTAL_COMMITS
    return _TYPE_METRICS.get(goal_type, GoalMetric.STREAK)


def legacy_commits_window(title: str) -> str:
    """
    Guess a commits goal's window from its title.

    Older clients never sent commits_window and relied on the word "weekly"
    in the title. Only used when the field is missing.
    """
    logger.warning(f"Goal '{title}' has no commits_window; inferring it from the title")
    if "weekly" in (title or "").lower():
        return COMMITS_WINDOW_WEEKLY
    return COMMITS_WINDOW_TOTAL


def seed_current(goal_type: str, commits_window: Optional[str], stats: Optional[UserStats]) -> int:
    """Initial progress value for a new goal"""
    return resolve_metric(goal_type, commits_window).select(stats)


def evaluate_goal(current: int, target: int, completed_override: Optional[bool] = None) -> bool:
    """Completion decision: an explicit override wins, otherwise current >= target"""
    if completed_override is not None:
        return completed_override
    return (current or 0) >= (target or 0)


class GoalProgressEvaluator:
    """Re-evaluates stored goals against fresh stats"""

    @staticmethod
    def evaluate(goal: Goal, stats: Optional[UserStats]) -> bool:
        """
        Completion for a goal given the latest stats.

        A manually set completion stands as long as the tracked value has not
        moved; any change to current reverts to the computed rule.
        """
        current = resolve_metric(goal.goal_type, goal.commits_window).select(stats)
        if goal.completion_overridden and current == goal.current:
            return bool(goal.completed)
        return evaluate_goal(current, goal.target)


class GoalService:
    """Service for managing a user's goals"""

    def __init__(self, db: Session):
        self.db = db
        self.goal_repo = GoalRepository()
        self.evaluator = GoalProgressEvaluator()

    def get_goals(self, user_id: str, include_completed: bool = True) -> List[Goal]:
        """Get a user's goals"""
        return self.goal_repo.get_for_user(self.db, user_id, include_completed)

    def get_goal(self, user_id: str, goal_id: int) -> Goal:
        goal = self.goal_repo.get_by_id(self.db, goal_id, user_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return goal

    def create_goal(self, user_id: str, goal_data: GoalCreate, stats: Optional[UserStats] = None) -> Goal:
        """Create a goal, seeding its progress from the user's current stats"""
        if goal_data.goal_type not in GOAL_TYPES:
            raise ValidationException("goal_type", f"unknown goal type '{goal_data.goal_type}'")

        commits_window = goal_data.commits_window
        if goal_data.goal_type == GOAL_TYPE_COMMITS and commits_window is None:
            commits_window = legacy_commits_window(goal_data.title)
        elif goal_data.goal_type != GOAL_TYPE_COMMITS:
            commits_window = None

        current = seed_current(goal_data.goal_type, commits_window, stats)
        goal = Goal(
            user_id=user_id,
            title=goal_data.title,
            goal_type=goal_data.goal_type,
            commits_window=commits_window,
            current=current,
            target=goal_data.target,
            completed=evaluate_goal(current, goal_data.target),
            completion_overridden=False,
        )
        return self.goal_repo.create(self.db, goal)

    def update_goal(self, user_id: str, goal_id: int, goal_update: GoalUpdate) -> Goal:
        """
        Update a goal.

        An explicit completed flag is a manual override and wins outright.
        Otherwise changing current or target recomputes completion and drops
        any earlier override.
        """
        goal = self.get_goal(user_id, goal_id)
        update_data = goal_update.model_dump(exclude_unset=True)

        completed = update_data.pop("completed", None)
        progress_changed = False
        for key, value in update_data.items():
            if value is None:
                continue
            if key in ("current", "target") and getattr(goal, key) != value:
                progress_changed = True
            setattr(goal, key, value)

        if completed is not None:
            goal.completed = evaluate_goal(goal.current, goal.target, completed)
            goal.completion_overridden = True
        elif progress_changed:
            goal.completed = evaluate_goal(goal.current, goal.target)
            goal.completion_overridden = False

        return self.goal_repo.update(self.db, goal)

    def delete_goal(self, user_id: str, goal_id: int) -> None:
        """Delete a goal"""
        goal = self.get_goal(user_id, goal_id)
        self.goal_repo.delete(self.db, goal)

    def refresh_for_user(self, user_id: str, stats: UserStats) -> List[Goal]:
        """
        Re-read every goal's progress from fresh stats.

        Returns:
            Goals that became completed during this refresh
        """
        newly_completed = []
        for goal in self.goal_repo.get_for_user(self.db, user_id):
            was_completed = bool(goal.completed)
            completed = self.evaluator.evaluate(goal, stats)
            current = resolve_metric(goal.goal_type, goal.commits_window).select(stats)

            if current != goal.current:
                goal.current = current
                goal.completion_overridden = False
            goal.completed = completed

            if completed and not was_completed:
                newly_completed.append(goal)
                logger.info(f"Goal {goal.id} completed for user {user_id}")

        self.db.commit()
        return newly_completed
