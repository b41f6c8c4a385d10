"""
Application-wide constants.
Status strings, metric names, quest rewards and default limits.
"""

# Goal types
GOAL_TYPE_STREAK = "streak"
GOAL_TYPE_COMMITS = "commits"
GOAL_TYPE_DAYS = "days"
GOAL_TYPE_PROJECTS = "projects"
GOAL_TYPES = (GOAL_TYPE_STREAK, GOAL_TYPE_COMMITS, GOAL_TYPE_DAYS, GOAL_TYPE_PROJECTS)

# Which commit counter a commits goal tracks
COMMITS_WINDOW_WEEKLY = "weekly"
COMMITS_WINDOW_TOTAL = "total"

# Leaderboard filters
LEADERBOARD_STREAK = "streak"
LEADERBOARD_COMMITS = "commits"
LEADERBOARD_WEEKLY = "weekly"
DEFAULT_LEADERBOARD_LIMIT = 100

# Quest assignment states (dropped assignments are deleted)
ASSIGNMENT_STATUS_ACTIVE = "active"
ASSIGNMENT_STATUS_COMPLETED = "completed"

# Quest progress states reported by a check
QUEST_NOT_STARTED = "not_started"
QUEST_IN_PROGRESS = "in_progress"
QUEST_COMPLETED = "completed"
QUEST_ERROR = "error"

# Quest difficulty -> XP
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"
QUEST_POINTS = {
    DIFFICULTY_EASY: 50,
    DIFFICULTY_MEDIUM: 100,
    DIFFICULTY_HARD: 200,
}

# Contribution windows (days)
WEEKLY_WINDOW_DAYS = 7
ACTIVITY_GRID_DAYS = 365
WEEKDAY_WINDOW_DAYS = 90
MONTHLY_TREND_MONTHS = 6

# Activity grid levels: upper bound (inclusive) of count for levels 1..3, 4 above
ACTIVITY_LEVEL_BOUNDS = (3, 6, 9)

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Display names handed out when a user hides their profile: <Adjective><Noun><0-999>
ANONYMOUS_ADJECTIVES = ("Hidden", "Secret", "Silent", "Quiet", "Mysterious")
ANONYMOUS_NOUNS = ("Tree", "Leaf", "Sprout", "Root", "Seed")

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/evergreeners"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
]
