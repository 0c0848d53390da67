import random
from datetime import timedelta

import pytest
from sqlalchemy import update

from cricket_talent.core.config import settings
from cricket_talent.db.models.achievement import Achievement, AchievementStatus, AchievementTier
from cricket_talent.db.models.user import Role
from cricket_talent.services import achievement_review, achievement_stats


def test_empty_summary_is_zero_filled(db, player):
    summary = achievement_stats.summarize(db, player.id)

    assert summary.total == 0
    assert summary.latest is None
    assert set(summary.by_tier) == {t.value for t in AchievementTier}
    assert all(n == 0 for n in summary.by_tier.values())
    assert all(n == 0 for n in summary.by_category.values())


def test_approval_updates_totals(db, player, make_submission, coach, clock):
    ach = achievement_review.submit(db, player, make_submission(), clock=clock)
    before = achievement_stats.summarize(db, player.id)
    assert before.total == 0

    achievement_review.approve(db, ach.id, coach, clock=clock)
    after = achievement_stats.summarize(db, player.id)

    assert after.total == 1
    assert after.by_tier["Gold"] == 1
    assert after.by_category["Batting"] == 1
    assert after.latest.id == ach.id


def test_pending_and_rejected_never_count(db, player, make_submission, coach, clock):
    achievement_review.submit(db, player, make_submission(), clock=clock)
    rejected = achievement_review.submit(db, player, make_submission(tier="Diamond"), clock=clock)
    achievement_review.reject(db, rejected.id, coach, feedback="Not verified", clock=clock)

    summary = achievement_stats.summarize(db, player.id)
    assert summary.total == 0
    assert summary.by_tier["Diamond"] == 0


def test_stats_are_per_player(db, make_user, make_submission, coach, clock):
    p1, p2 = make_user(Role.PLAYER), make_user(Role.PLAYER)
    ach = achievement_review.submit(db, p1, make_submission(), clock=clock)
    achievement_review.approve(db, ach.id, coach, clock=clock)

    assert achievement_stats.summarize(db, p1.id).total == 1
    assert achievement_stats.summarize(db, p2.id).total == 0


def test_latest_prefers_achievement_date_then_review_time(db, player, make_submission, coach, clock):
    old = achievement_review.submit(db, player, make_submission(achievement_date=(clock.now() - timedelta(days=30)).date()), clock=clock)
    same_day_a = achievement_review.submit(db, player, make_submission(title="A"), clock=clock)
    same_day_b = achievement_review.submit(db, player, make_submission(title="B"), clock=clock)

    achievement_review.approve(db, same_day_b.id, coach, clock=clock)
    clock.advance(minutes=1)
    achievement_review.approve(db, same_day_a.id, coach, clock=clock)
    clock.advance(minutes=1)
    achievement_review.approve(db, old.id, coach, clock=clock)

    assert achievement_stats.summarize(db, player.id).latest.id == same_day_a.id


@pytest.mark.parametrize("seed", [1, 7, 42, 2025])
def test_total_matches_approved_count_in_any_review_order(db, player, make_submission, coach, clock, seed):
    rng = random.Random(seed)
    tiers = [t.value for t in AchievementTier]
    ids = [
        achievement_review.submit(db, player, make_submission(tier=rng.choice(tiers)), clock=clock).id
        for _ in range(12)
    ]
    rng.shuffle(ids)

    approved = 0
    for ach_id in ids:
        clock.advance(seconds=1)
        action = rng.choice(["approve", "reject", "skip"])
        if action == "approve":
            achievement_review.approve(db, ach_id, coach, clock=clock)
            approved += 1
        elif action == "reject":
            achievement_review.reject(db, ach_id, coach, clock=clock)
        # Read between reviews so the cache is exercised too
        assert achievement_stats.summarize(db, player.id).total == approved

    summary = achievement_stats.summarize(db, player.id)
    assert sum(summary.by_tier.values()) == approved
    assert sum(summary.by_category.values()) == approved


@pytest.fixture
def computations(monkeypatch):
    """Player ids for which the summary was actually recomputed."""
    calls = []
    real_compute = achievement_stats.compute_summary

    def counting_compute(db, player_id):
        calls.append(player_id)
        return real_compute(db, player_id)

    monkeypatch.setattr(achievement_stats, "compute_summary", counting_compute)
    return calls


def test_cache_is_reused_until_a_review(db, player, make_submission, coach, clock, computations):
    ach = achievement_review.submit(db, player, make_submission(), clock=clock)
    achievement_stats.summarize(db, player.id)
    achievement_stats.summarize(db, player.id)
    assert computations == [player.id]

    achievement_review.approve(db, ach.id, coach, clock=clock)
    assert achievement_stats.summarize(db, player.id).total == 1
    assert computations == [player.id, player.id]


def test_cached_summary_cannot_be_changed_by_callers(db, player, make_submission, coach, clock):
    ach = achievement_review.submit(db, player, make_submission(media_links=["https://yt.be/x"]), clock=clock)
    achievement_review.approve(db, ach.id, coach, clock=clock)

    first = achievement_stats.summarize(db, player.id)
    first.total = 99
    first.by_tier["Gold"] = 99
    first.by_category.clear()
    first.latest.media_links.append("https://example.com/other")

    second = achievement_stats.summarize(db, player.id)
    assert second is not first
    assert second.total == 1
    assert second.by_tier["Gold"] == 1
    assert second.by_category["Batting"] == 1
    assert second.latest.media_links == ["https://yt.be/x"]


def test_cache_evicts_least_recently_read_player(db, make_user, monkeypatch, computations):
    monkeypatch.setattr(settings, "STATS_CACHE_MAX_PLAYERS", 2)
    p1, p2, p3 = make_user(Role.PLAYER), make_user(Role.PLAYER), make_user(Role.PLAYER)

    achievement_stats.summarize(db, p1.id)
    achievement_stats.summarize(db, p2.id)
    achievement_stats.summarize(db, p1.id)  # p2 is now the oldest read
    achievement_stats.summarize(db, p3.id)
    assert computations == [p1.id, p2.id, p3.id]

    achievement_stats.summarize(db, p1.id)
    achievement_stats.summarize(db, p2.id)
    assert computations == [p1.id, p2.id, p3.id, p2.id]


def test_review_outside_the_service_still_refreshes_stats(db, session_factory, player, make_submission, coach, clock):
    ach = achievement_review.submit(db, player, make_submission(), clock=clock)
    assert achievement_stats.summarize(db, player.id).total == 0

    # Another worker approves without going through invalidate()
    other = session_factory()
    try:
        other.execute(
            update(Achievement)
            .where(Achievement.id == ach.id)
            .values(status=AchievementStatus.APPROVED, reviewed_by=coach.id, reviewed_at=clock.now())
        )
        other.commit()
    finally:
        other.close()

    db.expire_all()
    assert achievement_stats.summarize(db, player.id).total == 1


def test_cache_can_be_disabled(db, player, monkeypatch, computations):
    monkeypatch.setattr(settings, "STATS_CACHE_ENABLED", False)
    achievement_stats.summarize(db, player.id)
    achievement_stats.summarize(db, player.id)
    assert computations == [player.id, player.id]
