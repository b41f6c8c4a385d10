from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, JSON, text
from datetime import datetime

from evergreeners.database import Base
from evergreeners.constants import (
    ASSIGNMENT_STATUS_ACTIVE, DIFFICULTY_EASY, GOAL_TYPE_STREAK
)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    username = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    is_public = Column(Boolean, default=True)

    # Profile
    bio = Column(String, nullable=True)
    location = Column(String, nullable=True)
    website = Column(String, nullable=True)
    image = Column(String, nullable=True)
    anonymous_name = Column(String, nullable=True)  # shown instead of the username while private

    # Derived stats, overwritten wholesale on every sync
    streak = Column(Integer, default=0)
    total_commits = Column(Integer, default=0)
    today_commits = Column(Integer, default=0)
    yesterday_commits = Column(Integer, default=0)
    weekly_commits = Column(Integer, default=0)
    active_days = Column(Integer, default=0)
    total_projects = Column(Integer, default=0)

    # Ranking on the streak leaderboard; best_rank only ever improves
    current_rank = Column(Integer, nullable=True)
    best_rank = Column(Integer, nullable=True)

    xp = Column(Integer, default=0)

    # Last calendar fetched from GitHub: [{"date": "YYYY-MM-DD", "contributionCount": n}, ...]
    contribution_data = Column(JSON(none_as_null=True), nullable=True)
    # Caller-supplied total (GitHub's totalContributions), kept for recomputes
    reported_total_commits = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    goal_type = Column(String, default=GOAL_TYPE_STREAK)  # streak, commits, days, projects
    commits_window = Column(String, nullable=True)  # weekly or total, commits goals only
    current = Column(Integer, default=0)
    target = Column(Integer, nullable=False)
    completed = Column(Boolean, default=False)
    completion_overridden = Column(Boolean, default=False)  # completed was set by hand
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Quest(Base):
    __tablename__ = "quests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    repo_url = Column(String, nullable=False)
    tags = Column(JSON, default=list)
    difficulty = Column(String, default=DIFFICULTY_EASY)  # easy, medium, hard
    points = Column(Integer, default=0)
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class QuestAssignment(Base):
    __tablename__ = "quest_assignments"

    id = Column(Integer, primary_key=True, index=True)
    quest_id = Column(Integer, ForeignKey("quests.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, default=ASSIGNMENT_STATUS_ACTIVE)  # active, completed
    fork_url = Column(String, nullable=True)
    forked_at = Column(DateTime, nullable=True)  # set on the in_progress transition
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # At most one active holder per quest
        Index(
            "uq_quest_assignments_active_quest",
            "quest_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )
