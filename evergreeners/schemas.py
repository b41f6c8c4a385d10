from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Any, Dict, List, Optional, Union


# Contribution calendar
class ContributionDay(BaseModel):
    date: date
    count: int = Field(..., ge=0, alias="contributionCount")

    class Config:
        populate_by_name = True


class UserStats(BaseModel):
    streak: int = Field(default=0, ge=0)
    total_commits: int = Field(default=0, ge=0)
    today_commits: int = Field(default=0, ge=0)
    yesterday_commits: int = Field(default=0, ge=0)
    weekly_commits: int = Field(default=0, ge=0)
    active_days: int = Field(default=0, ge=0)
    total_projects: int = Field(default=0, ge=0)


# Users
class UserCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=100)
    name: Optional[str] = Field(None, max_length=200)
    is_public: bool = True


class UserResponse(UserStats):
    id: str
    username: str
    name: Optional[str] = None
    is_public: bool = True
    current_rank: Optional[int] = None
    best_rank: Optional[int] = None
    xp: int = 0
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=200)
    website: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = Field(None, max_length=500)
    is_public: Optional[bool] = None
    anonymous_name: Optional[str] = Field(None, min_length=1, max_length=100)


class ProfileResponse(BaseModel):
    id: str
    username: str
    name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    image: Optional[str] = None
    is_public: bool = True
    anonymous_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SyncRequest(BaseModel):
    # Either a flat list of days or GitHub's contributionCalendar object
    calendar: Union[List[Any], Dict[str, Any]]
    total_commits: Optional[int] = Field(None, ge=0)
    total_projects: Optional[int] = Field(None, ge=0)


class SyncResponse(BaseModel):
    success: bool = True
    stats: UserStats
    current_rank: Optional[int] = None
    best_rank: Optional[int] = None
    completed_goals: List[int] = []


# Leaderboard
class LeaderboardEntry(BaseModel):
    rank: Optional[int] = None  # None when the score is 0 (unranked)
    id: str
    username: str
    name: Optional[str] = None
    streak: int = 0
    total_commits: int = 0
    today_commits: int = 0
    yesterday_commits: int = 0
    weekly_commits: int = 0


class LeaderboardResponse(BaseModel):
    filter: str
    users: List[LeaderboardEntry]
    current_user_rank: Optional[LeaderboardEntry] = None


# Goals
class GoalBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    goal_type: str = Field(default="streak", pattern="^(streak|commits|days|projects)$")
    commits_window: Optional[str] = Field(None, pattern="^(weekly|total)$")
    target: int = Field(..., ge=0)


class GoalCreate(GoalBase):
    pass


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    current: Optional[int] = Field(None, ge=0)
    target: Optional[int] = Field(None, ge=0)
    completed: Optional[bool] = None


class GoalResponse(GoalBase):
    id: int
    user_id: str
    current: int
    completed: bool
    completion_overridden: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


# Quests
class QuestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    repo_url: str = Field(..., min_length=1, max_length=500)
    tags: List[str] = []
    difficulty: str = Field(default="easy", pattern="^(easy|medium|hard)$")


class QuestEvidence(BaseModel):
    fork_exists: bool = False
    fork_url: Optional[str] = None
    has_qualifying_activity: bool = False


class QuestProgressInfo(BaseModel):
    started_at: datetime
    completed_at: Optional[datetime] = None
    fork_url: Optional[str] = None


class QuestResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    repo_url: str
    tags: List[str] = []
    difficulty: str
    points: int
    created_by: str
    created_at: datetime
    is_taken: bool = False
    accepted_by: Optional[str] = None
    accepted_status: Optional[str] = None
    my_status: Optional[str] = None
    my_progress: Optional[QuestProgressInfo] = None


class QuestCheckResponse(BaseModel):
    quest_id: int
    checked_status: str  # what this check observed, may be "error"
    status: str          # persisted progress after the check


# Analytics
class WeekdayCommits(BaseModel):
    day: str
    commits: int


class MonthlyCommits(BaseModel):
    month: str
    commits: int


class AnalyticsResponse(BaseModel):
    activity_levels: List[int]
    weekday_distribution: List[WeekdayCommits]
    monthly_totals: List[MonthlyCommits]
    most_productive_day: Optional[str] = None
    average_daily: float = 0.0
    active_days: int = 0
