from fastapi import FastAPI, Body, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from pathlib import Path

from evergreeners import config
from evergreeners.database import engine, get_db, Base
from evergreeners import models  # Import all models to register them with Base
from evergreeners.schemas import (
    UserCreate, UserResponse, UserStats, ProfileUpdate, ProfileResponse,
    SyncRequest, SyncResponse,
    LeaderboardResponse, AnalyticsResponse,
    GoalCreate, GoalUpdate, GoalResponse,
    QuestCreate, QuestResponse, QuestEvidence, QuestCheckResponse
)
from evergreeners.auth import verify_api_key, get_current_user_id, get_optional_user_id
from evergreeners.exceptions import (
    EvergreenersException, UserNotFoundException, GoalNotFoundException,
    QuestNotFoundException, QuestTakenException, OwnQuestException,
    QuestAlreadyCompletedException, QuestNotAcceptedException, ValidationException
)
from evergreeners.services.date_service import DateService
from evergreeners.services.sync_service import SyncService
from evergreeners.services.profile_service import ProfileService
from evergreeners.services.rank_service import RankService
from evergreeners.services.goal_service import GoalService
from evergreeners.services.quest_service import QuestService
from evergreeners.services.analytics_service import build_analytics
from evergreeners.services.scheduler_service import start_scheduler, stop_scheduler
from evergreeners.constants import DEFAULT_LOG_DIRECTORY_DEV, LEADERBOARD_STREAK

LOG_DIR = config.LOG_DIR

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / config.LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / config.LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("evergreeners")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Evergreeners API",
    description="Contribution streaks, leaderboards, goals and quests",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


def _http_error(e: EvergreenersException) -> HTTPException:
    """Map a domain exception to an HTTP error"""
    if isinstance(e, (UserNotFoundException, GoalNotFoundException, QuestNotFoundException)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (QuestTakenException, QuestAlreadyCompletedException)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, OwnQuestException):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (QuestNotAcceptedException, ValidationException)):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Unhandled domain error: {e}")
    return HTTPException(status_code=500, detail=str(e))


@app.on_event("startup")
async def startup_event():
    logger.info(f"Evergreeners API started. Logging to: {log_path}")
    start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Evergreeners API")
    stop_scheduler()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Evergreeners API", "status": "active"}


# Users
@app.post("/api/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def create_user(user: UserCreate, db: Session = Depends(get_db)):
    """Create a user or refresh their profile fields"""
    return SyncService(db).ensure_user(user)


@app.get("/api/users/{user_id}", response_model=UserResponse, dependencies=[Depends(verify_api_key)])
async def get_user(user_id: str, db: Session = Depends(get_db)):
    """Get a user with their current stats and rank"""
    try:
        return SyncService(db).get_user(user_id)
    except EvergreenersException as e:
        raise _http_error(e)


@app.get("/api/users/{user_id}/stats", response_model=UserStats, dependencies=[Depends(verify_api_key)])
async def get_user_stats(user_id: str, db: Session = Depends(get_db)):
    """Derived stats as of the last sync or recompute"""
    try:
        sync_service = SyncService(db)
        return sync_service.stats_of(sync_service.get_user(user_id))
    except EvergreenersException as e:
        raise _http_error(e)


# Profile
@app.get("/api/user/profile", response_model=ProfileResponse, dependencies=[Depends(verify_api_key)])
async def get_profile(
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the current user's profile"""
    try:
        return ProfileService(db).get_profile(current_user_id)
    except EvergreenersException as e:
        raise _http_error(e)


@app.put("/api/user/profile", response_model=ProfileResponse, dependencies=[Depends(verify_api_key)])
async def update_profile(
    profile: ProfileUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Edit profile fields; going private assigns an anonymous name"""
    try:
        return ProfileService(db).update_profile(current_user_id, profile)
    except EvergreenersException as e:
        raise _http_error(e)


@app.post("/api/users/{user_id}/sync", response_model=SyncResponse, dependencies=[Depends(verify_api_key)])
async def sync_user(
    user_id: str,
    request: SyncRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Store a freshly fetched contribution calendar and recompute stats"""
    if user_id != current_user_id:
        raise HTTPException(status_code=403, detail="You can only sync your own account")
    try:
        return SyncService(db).sync_user(
            user_id,
            request.calendar,
            total_commits=request.total_commits,
            total_projects=request.total_projects
        )
    except EvergreenersException as e:
        raise _http_error(e)


@app.get("/api/users/{user_id}/analytics", response_model=AnalyticsResponse, dependencies=[Depends(verify_api_key)])
async def get_user_analytics(user_id: str, db: Session = Depends(get_db)):
    """Heatmap, weekday and monthly breakdowns of the stored calendar"""
    try:
        user = SyncService(db).get_user(user_id)
    except EvergreenersException as e:
        raise _http_error(e)
    today = DateService().get_effective_date()
    return build_analytics(user.contribution_data or [], today, user.total_commits or 0)


# Leaderboard
@app.get("/api/leaderboard", response_model=LeaderboardResponse, dependencies=[Depends(verify_api_key)])
async def get_leaderboard(
    filter: str = LEADERBOARD_STREAK,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db)
):
    """Top users by streak, total commits or weekly commits"""
    return RankService(db).get_leaderboard(filter, viewer_id)


# Goals
@app.get("/api/goals", response_model=List[GoalResponse], dependencies=[Depends(verify_api_key)])
async def get_goals(
    include_completed: bool = True,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the current user's goals"""
    return GoalService(db).get_goals(current_user_id, include_completed)


@app.post("/api/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def create_goal(
    goal: GoalCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a goal seeded from the user's current stats"""
    try:
        sync_service = SyncService(db)
        stats = sync_service.stats_of(sync_service.get_user(current_user_id))
        return GoalService(db).create_goal(current_user_id, goal, stats)
    except EvergreenersException as e:
        raise _http_error(e)


@app.put("/api/goals/{goal_id}", response_model=GoalResponse, dependencies=[Depends(verify_api_key)])
async def update_goal(
    goal_id: int,
    goal_update: GoalUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update a goal; an explicit completed flag overrides the computed one"""
    try:
        return GoalService(db).update_goal(current_user_id, goal_id, goal_update)
    except EvergreenersException as e:
        raise _http_error(e)


@app.delete("/api/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
async def delete_goal(
    goal_id: int,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a goal"""
    try:
        GoalService(db).delete_goal(current_user_id, goal_id)
    except EvergreenersException as e:
        raise _http_error(e)


# Quests
@app.get("/api/quests", response_model=List[QuestResponse], dependencies=[Depends(verify_api_key)])
async def get_quests(
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db)
):
    """All quests with holder and viewer progress"""
    return QuestService(db).list_quests(viewer_id)


@app.post("/api/quests", response_model=QuestResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def create_quest(
    quest: QuestCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a quest"""
    service = QuestService(db)
    try:
        new_quest = service.create_quest(current_user_id, quest)
    except EvergreenersException as e:
        raise _http_error(e)
    return next(q for q in service.list_quests(current_user_id) if q.id == new_quest.id)


@app.post("/api/quests/{quest_id}/accept", dependencies=[Depends(verify_api_key)])
async def accept_quest(
    quest_id: int,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Take exclusive hold of a quest"""
    try:
        assignment = QuestService(db).accept_quest(current_user_id, quest_id)
    except EvergreenersException as e:
        raise _http_error(e)
    return {"success": True, "quest_id": quest_id, "status": assignment.status}


@app.post("/api/quests/{quest_id}/drop", dependencies=[Depends(verify_api_key)])
async def drop_quest(
    quest_id: int,
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Release a quest so others can take it"""
    try:
        QuestService(db).drop_quest(current_user_id, quest_id)
    except EvergreenersException as e:
        raise _http_error(e)
    return {"success": True, "quest_id": quest_id}


@app.post("/api/quests/{quest_id}/check", response_model=QuestCheckResponse, dependencies=[Depends(verify_api_key)])
async def check_quest_progress(
    quest_id: int,
    evidence: Optional[QuestEvidence] = Body(None),
    current_user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Apply fork/activity evidence to the user's quest; a null body means the lookup failed"""
    try:
        return QuestService(db).check_progress(current_user_id, quest_id, evidence)
    except EvergreenersException as e:
        raise _http_error(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("evergreeners.main:app", host="0.0.0.0", port=8000, reload=False)
