import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from cricket_talent.core.config import settings
from cricket_talent.db.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementStatus,
    AchievementTier,
)
from cricket_talent.schemas.achievement import AchievementOut

logger = logging.getLogger(__name__)


@dataclass
class AchievementStatsSummary:
    """Derived from approved achievements only. Never stored."""
    player_id: int
    total: int = 0
    by_tier: Dict[str, int] = field(default_factory=lambda: {t.value: 0 for t in AchievementTier})
    by_category: Dict[str, int] = field(default_factory=lambda: {c.value: 0 for c in AchievementCategory})
    # Snapshot, not an ORM instance: summaries outlive the session that built them
    latest: Optional[AchievementOut] = None


# ==============================================================================
# CACHE
# Keyed by (player_id, review_version). The version is read from the store on
# every call, so a review done by another worker process also changes the key.
# approve/reject additionally drop the entry through invalidate().
# Least recently read players are evicted past STATS_CACHE_MAX_PLAYERS.
# ==============================================================================

_cache: "OrderedDict[int, Tuple[tuple, AchievementStatsSummary]]" = OrderedDict()
_cache_lock = threading.Lock()


def invalidate(player_id: int) -> None:
    with _cache_lock:
        _cache.pop(player_id, None)


def clear_cache() -> None:
    with _cache_lock:
        _cache.clear()


def _copy(summary: AchievementStatsSummary) -> AchievementStatsSummary:
    # Callers may mutate what they get, the cached entry must not change
    return replace(
        summary,
        by_tier=dict(summary.by_tier),
        by_category=dict(summary.by_category),
        latest=summary.latest.model_copy(deep=True) if summary.latest else None,
    )


def _review_version(db: Session, player_id: int) -> tuple:
    # Reviews are terminal, so this count only ever grows
    reviewed_count, last_reviewed_at = (
        db.query(func.count(Achievement.id), func.max(Achievement.reviewed_at))
        .filter(
            Achievement.player_id == player_id,
            Achievement.status != AchievementStatus.PENDING,
        )
        .one()
    )
    return (reviewed_count, last_reviewed_at)


def compute_summary(db: Session, player_id: int) -> AchievementStatsSummary:
    summary = AchievementStatsSummary(player_id=player_id)
    latest = None

    approved = (
        db.query(Achievement)
        .filter(
            Achievement.player_id == player_id,
            Achievement.status == AchievementStatus.APPROVED,
        )
        .all()
    )

    for ach in approved:
        summary.total += 1
        summary.by_tier[ach.tier.value] += 1
        summary.by_category[ach.category.value] += 1

        # Latest by achievement date, ties go to the most recently reviewed
        key = (ach.achievement_date, ach.reviewed_at or datetime.min, ach.id)
        if latest is None or key > latest[0]:
            latest = (key, ach)

    if latest:
        summary.latest = AchievementOut.model_validate(latest[1])
    return summary


def summarize(db: Session, player_id: int) -> AchievementStatsSummary:
    if not settings.STATS_CACHE_ENABLED:
        return compute_summary(db, player_id)

    version = _review_version(db, player_id)
    with _cache_lock:
        cached = _cache.get(player_id)
        if cached and cached[0] == version:
            _cache.move_to_end(player_id)
            logger.debug(f"📦 Stats cache hit for player {player_id}")
            return _copy(cached[1])

    summary = compute_summary(db, player_id)
    with _cache_lock:
        _cache[player_id] = (version, summary)
        _cache.move_to_end(player_id)
        while len(_cache) > max(1, settings.STATS_CACHE_MAX_PLAYERS):
            _cache.popitem(last=False)
    return _copy(summary)
