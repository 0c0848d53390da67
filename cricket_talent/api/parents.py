from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from cricket_talent.db.session import get_db
from cricket_talent.db.models.user import User, Role
from cricket_talent.db.models.achievement import AchievementCategory, AchievementTier, AchievementStatus
from cricket_talent.core.deps import require_roles
from cricket_talent.schemas.achievement import AchievementOut
from cricket_talent.services import account_links, achievement_review
from cricket_talent.services.errors import PermissionDenied

router = APIRouter(prefix="/parents", tags=["Parents"])


@router.get("/children/{player_id}/achievements", response_model=list[AchievementOut])
def child_achievements(
    player_id: int,
    category: AchievementCategory | None = None,
    tier: AchievementTier | None = None,
    status: AchievementStatus | None = None,
    current_user: User = Depends(require_roles(Role.PARENT)),
    db: Session = Depends(get_db),
):
    """A linked parent sees every achievement of the child, pending and rejected included."""
    if not account_links.has_guardian_access(db, current_user.id, player_id):
        raise PermissionDenied("You do not have access to this player's data")

    return achievement_review.list_for_player(
        db, player_id, category=category, tier=tier, status=status, include_unreviewed=True
    )
