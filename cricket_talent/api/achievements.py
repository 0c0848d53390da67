# cricket_talent/api/achievements.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from cricket_talent.db.session import get_db
from cricket_talent.db.models.user import User, Role
from cricket_talent.db.models.achievement import AchievementCategory, AchievementTier, AchievementStatus
from cricket_talent.core.deps import get_current_user, get_optional_user, require_roles
from cricket_talent.schemas.achievement import (
    AchievementSubmit,
    AchievementReview,
    AchievementOut,
    AchievementEnvelope,
    AchievementStatsOut,
)
from cricket_talent.services import achievement_review, achievement_stats
from cricket_talent.services.clock import Clock, get_clock

router = APIRouter(prefix="/achievements", tags=["Achievements"])


# --- REVIEW QUEUE (admin / coach) ---
@router.get("/pending", response_model=list[AchievementOut])
def pending_achievements(
    category: AchievementCategory | None = None,
    current_user: User = Depends(require_roles(Role.ADMIN, Role.COACH)),
    db: Session = Depends(get_db),
):
    """Oldest submission first."""
    return achievement_review.pending_for_review(db, category)


# --- PUBLIC FEED ---
@router.get("/recent", response_model=list[AchievementOut])
def recent_achievements(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return achievement_review.recent_public(db, limit)


@router.get("/stats/{player_id}", response_model=AchievementStatsOut)
def player_achievement_stats(player_id: int, db: Session = Depends(get_db)):
    # Approved achievements only, whoever asks
    return achievement_stats.summarize(db, player_id)


@router.get("/player/{player_id}", response_model=list[AchievementOut])
def player_achievements(
    player_id: int,
    category: AchievementCategory | None = None,
    tier: AchievementTier | None = None,
    status: AchievementStatus | None = None,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    include_unreviewed = achievement_review.can_see_unreviewed(db, viewer, player_id)
    return achievement_review.list_for_player(
        db,
        player_id,
        category=category,
        tier=tier,
        status=status,
        include_unreviewed=include_unreviewed,
    )


@router.get("/{achievement_id}", response_model=AchievementOut)
def get_achievement(
    achievement_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return achievement_review.get_achievement(db, achievement_id, viewer)


# --- WORKFLOW ---
@router.post("", response_model=AchievementEnvelope, status_code=201)
def submit_achievement(
    data: AchievementSubmit,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    achievement = achievement_review.submit(db, current_user, data, clock=clock)
    return {
        "achievement": achievement,
        "message": "Achievement submitted successfully and is pending approval",
    }


@router.put("/{achievement_id}/review", response_model=AchievementEnvelope)
def review_achievement(
    achievement_id: int,
    body: AchievementReview,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    # Role and self-review checks live in the workflow
    achievement = achievement_review.review(
        db, achievement_id, current_user, body.status, body.feedback, clock=clock
    )
    return {
        "achievement": achievement,
        "message": f"Achievement {achievement.status.value} successfully",
    }
