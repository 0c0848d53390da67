"""
Achievement submission and review.

    submit()                 approve(reviewer)
 (none) -----> pending ---------------------> approved  [terminal]
                  |
                  | reject(reviewer, feedback)
                  v
               rejected  [terminal]

Transitions are a single compare-and-set UPDATE guarded by status == pending,
so two reviewers racing on the same record get one success and one
InvalidTransition, and the loser never overwrites reviewed_by/reviewed_at.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from cricket_talent.core.config import settings
from cricket_talent.db.models.user import User, Role
from cricket_talent.db.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementStatus,
    AchievementTier,
)
from cricket_talent.schemas.achievement import AchievementSubmit
from cricket_talent.services import achievement_stats
from cricket_talent.services.account_links import has_guardian_access
from cricket_talent.services.clock import Clock, system_clock
from cricket_talent.services.errors import (
    NotFound,
    InvalidTransition,
    PermissionDenied,
    ValidationFailed,
)

logger = logging.getLogger(__name__)


def local_today(now: datetime) -> date:
    """Calendar day of the players for a naive UTC instant."""
    return (now + timedelta(minutes=settings.LOCAL_UTC_OFFSET_MINUTES)).date()


# ==============================================================================
# 1. SUBMISSION (only creation path)
# ==============================================================================

def submit(db: Session, actor: User, data: AchievementSubmit, clock: Clock = system_clock) -> Achievement:
    player_id = data.player_id if data.player_id is not None else actor.id

    if actor.role != Role.PLAYER or actor.id != player_id:
        raise PermissionDenied("Players can only submit achievements for their own profile")

    now = clock.now()
    today = local_today(now)
    achievement_date = data.achievement_date or today
    if achievement_date > today:
        raise ValidationFailed("Achievement date cannot be in the future")
    if not data.title.strip() or not data.description.strip():
        raise ValidationFailed("Title and description are required")

    achievement = Achievement(
        player_id=player_id,
        submitted_by=actor.id,
        title=data.title.strip(),
        description=data.description.strip(),
        category=AchievementCategory(data.category),
        tier=AchievementTier(data.tier),
        achievement_date=achievement_date,
        opponent=data.opponent,
        venue=data.venue,
        value=data.value,
        submission_notes=data.submission_notes,
        media_links=list(data.media_links),
        status=AchievementStatus.PENDING,
        is_public=False,  # Not public until approved
        created_at=now,
    )
    try:
        db.add(achievement)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(achievement)
    logger.info(
        f"📝 Achievement {achievement.id} submitted by player {player_id} "
        f"({achievement.category.value}/{achievement.tier.value})"
    )
    return achievement


# ==============================================================================
# 2. REVIEW
# ==============================================================================

def _check_reviewer(achievement: Achievement, reviewer: User) -> None:
    if not reviewer.is_reviewer:
        raise PermissionDenied("Only admins and coaches can review achievements")
    if reviewer.id in (achievement.submitted_by, achievement.player_id):
        raise PermissionDenied("You cannot review your own achievement")


def _transition(
    db: Session,
    achievement_id: int,
    reviewer: User,
    target: AchievementStatus,
    feedback: Optional[str],
    clock: Clock,
) -> Achievement:
    achievement = db.get(Achievement, achievement_id)
    if not achievement:
        raise NotFound("Achievement not found")

    # submitted_by / player_id never change, reading them outside the CAS is safe
    _check_reviewer(achievement, reviewer)

    now = clock.now()
    try:
        result = db.execute(
            update(Achievement)
            .where(
                Achievement.id == achievement_id,
                Achievement.status == AchievementStatus.PENDING,
            )
            .values(
                status=target,
                is_public=(target == AchievementStatus.APPROVED),
                reviewed_by=reviewer.id,
                reviewed_at=now,
                feedback=feedback,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning(
                f"⚠️  Reviewer {reviewer.id} tried to {target.value} achievement {achievement_id} "
                f"which was already reviewed"
            )
            raise InvalidTransition("This achievement has already been reviewed")
        db.commit()
    except InvalidTransition:
        raise
    except Exception:
        db.rollback()
        raise

    # Stats must never outlive a review of this player
    achievement_stats.invalidate(achievement.player_id)

    db.refresh(achievement)
    logger.info(f"✅ Achievement {achievement_id} {target.value} by {reviewer.role.value} {reviewer.id}")
    return achievement


def approve(
    db: Session,
    achievement_id: int,
    reviewer: User,
    note: Optional[str] = None,
    clock: Clock = system_clock,
) -> Achievement:
    return _transition(db, achievement_id, reviewer, AchievementStatus.APPROVED, note, clock)


def reject(
    db: Session,
    achievement_id: int,
    reviewer: User,
    feedback: str = "",
    clock: Clock = system_clock,
) -> Achievement:
    # Feedback is stored verbatim, empty included
    return _transition(db, achievement_id, reviewer, AchievementStatus.REJECTED, feedback, clock)


def review(
    db: Session,
    achievement_id: int,
    reviewer: User,
    status: str,
    feedback: Optional[str] = None,
    clock: Clock = system_clock,
) -> Achievement:
    if status == AchievementStatus.APPROVED.value:
        return approve(db, achievement_id, reviewer, note=feedback, clock=clock)
    if status == AchievementStatus.REJECTED.value:
        return reject(db, achievement_id, reviewer, feedback=feedback if feedback is not None else "", clock=clock)
    raise ValidationFailed("Status must be either approved or rejected")


# ==============================================================================
# 3. QUERY VIEWS
# ==============================================================================

def pending_for_review(db: Session, category: Optional[AchievementCategory] = None) -> List[Achievement]:
    """Oldest submission first, so nobody waits behind newer claims."""
    query = db.query(Achievement).filter(Achievement.status == AchievementStatus.PENDING)
    if category:
        query = query.filter(Achievement.category == category)
    return query.order_by(Achievement.created_at.asc(), Achievement.id.asc()).all()


def can_see_unreviewed(db: Session, viewer: Optional[User], player_id: int) -> bool:
    """Owner, linked guardians and reviewers see pending/rejected records. Everyone else only approved ones."""
    if viewer is None:
        return False
    if viewer.id == player_id or viewer.is_reviewer:
        return True
    return viewer.role == Role.PARENT and has_guardian_access(db, viewer.id, player_id)


def list_for_player(
    db: Session,
    player_id: int,
    category: Optional[AchievementCategory] = None,
    tier: Optional[AchievementTier] = None,
    status: Optional[AchievementStatus] = None,
    include_unreviewed: bool = False,
) -> List[Achievement]:
    query = db.query(Achievement).filter(Achievement.player_id == player_id)
    if not include_unreviewed:
        query = query.filter(Achievement.status == AchievementStatus.APPROVED)
    if status:
        query = query.filter(Achievement.status == status)
    if category:
        query = query.filter(Achievement.category == category)
    if tier:
        query = query.filter(Achievement.tier == tier)
    return query.order_by(Achievement.achievement_date.desc(), Achievement.id.desc()).all()


def recent_public(db: Session, limit: int = 10) -> List[Achievement]:
    return (
        db.query(Achievement)
        .filter(Achievement.status == AchievementStatus.APPROVED, Achievement.is_public.is_(True))
        .order_by(Achievement.achievement_date.desc(), Achievement.id.desc())
        .limit(limit)
        .all()
    )


def get_achievement(db: Session, achievement_id: int, viewer: Optional[User] = None) -> Achievement:
    achievement = db.get(Achievement, achievement_id)
    if not achievement:
        raise NotFound("Achievement not found")
    if achievement.status != AchievementStatus.APPROVED and not can_see_unreviewed(db, viewer, achievement.player_id):
        # Hidden records look missing rather than forbidden
        raise NotFound("Achievement not found")
    return achievement
