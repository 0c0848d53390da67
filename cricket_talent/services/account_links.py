import logging
from datetime import timedelta
from typing import List, Tuple

from sqlalchemy import update, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cricket_talent.core.config import settings
from cricket_talent.db.models.user import User, Role
from cricket_talent.db.models.access_code import AccessCode
from cricket_talent.db.models.guardian_link import GuardianLink, GuardianRelationship
from cricket_talent.services.clock import Clock, system_clock, normalize_code
from cricket_talent.services.errors import (
    NotFound,
    Expired,
    AlreadyConsumed,
    DuplicateLink,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

# Collisions are practically impossible with 32^8 codes, this only bounds the loop
MAX_CODE_ATTEMPTS = 10


# ==============================================================================
# 1. ISSUING CODES
# ==============================================================================

def _generate_unique_code(db: Session, clock: Clock) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = clock.new_code(settings.ACCESS_CODE_LENGTH)
        if not db.query(AccessCode.id).filter(AccessCode.code == code).first():
            return code
    raise RuntimeError("Could not generate a unique access code")


def issue_code(db: Session, actor: User, clock: Clock = system_clock) -> AccessCode:
    """
    Issues a fresh access code for the calling player.
    Every unconsumed code of the same player is invalidated in the same
    transaction, so a player never has two redeemable codes.

    Concurrent issuers for one player are serialised on the owner row
    (SELECT ... FOR UPDATE where the backend supports it). The partial unique
    index on access_codes.owner_id backs this up: a losing insert raises
    IntegrityError and the whole attempt is replayed.
    """
    if actor.role != Role.PLAYER:
        raise PermissionDenied("Only players can generate access codes for parents")

    player_id = actor.id

    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        now = clock.now()
        code = _generate_unique_code(db, clock)

        try:
            # 1. Lock the owner so issuers of the same player queue up
            db.query(User.id).filter(User.id == player_id).with_for_update().one()

            # 2. Logical invalidation of every unconsumed code, expired ones included, never a delete
            result = db.execute(
                update(AccessCode)
                .where(
                    AccessCode.owner_id == player_id,
                    AccessCode.consumed_at.is_(None),
                    AccessCode.invalidated_at.is_(None),
                )
                .values(invalidated_at=now)
                .execution_options(synchronize_session=False)
            )

            # 3. New code
            access_code = AccessCode(
                code=code,
                owner_id=player_id,
                created_at=now,
                expires_at=now + timedelta(days=settings.ACCESS_CODE_TTL_DAYS),
            )
            db.add(access_code)
            db.commit()
        except IntegrityError:
            # Code collision or a concurrent issue for the same player
            db.rollback()
            logger.warning(f"⚠️  Access code issue for player {player_id} conflicted (attempt {attempt}), retrying")
            continue
        except Exception:
            db.rollback()
            raise

        db.refresh(access_code)
        logger.info(
            f"🔑 Access code issued for player {player_id} "
            f"(expires {access_code.expires_at.isoformat()}, {result.rowcount} previous invalidated)"
        )
        return access_code

    raise RuntimeError(f"Could not issue an access code for player {player_id}")


# ==============================================================================
# 2. REDEEMING CODES
# ==============================================================================

def _raise_if_not_redeemable(access_code: AccessCode, now) -> None:
    """Classifies a dead code. Past TTL is always reported as Expired, even if it was used."""
    if now >= access_code.expires_at:
        raise Expired("This access code has expired. Ask the player to generate a new one.")
    if access_code.invalidated_at is not None:
        # Superseded codes are reported as expired: the fix is the same, ask for a new one
        raise Expired("This access code was replaced by a newer one. Ask the player for the latest code.")
    if access_code.consumed_at is not None:
        raise AlreadyConsumed("This access code has already been used")


def _claim_code(db: Session, access_code_id: int, guardian_id: int, now) -> bool:
    """
    Compare-and-set on consumed_at. The precondition lives in the WHERE clause,
    so of two concurrent claims on the same row only one can match.
    Does not commit.
    """
    result = db.execute(
        update(AccessCode)
        .where(
            AccessCode.id == access_code_id,
            AccessCode.consumed_at.is_(None),
            AccessCode.invalidated_at.is_(None),
            AccessCode.expires_at > now,
        )
        .values(consumed_at=now, consumed_by=guardian_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def redeem_code(
    db: Session,
    actor: User,
    raw_code: str,
    relationship: GuardianRelationship = GuardianRelationship.PARENT,
    clock: Clock = system_clock,
) -> Tuple[GuardianLink, User]:
    """
    Redeems a code on behalf of a guardian.
    Consuming the code and creating the GuardianLink happen in one transaction:
    either both are stored or neither is.
    Returns the new link and the linked player.
    """
    if actor.role != Role.PARENT:
        raise PermissionDenied("Only parent accounts can redeem access codes")

    now = clock.now()
    code = normalize_code(raw_code or "")

    # 1. Lookup (case-insensitive thanks to normalisation)
    access_code = db.query(AccessCode).filter(AccessCode.code == code).first() if code else None
    if not access_code:
        logger.warning(f"⚠️  Guardian {actor.id} tried an unknown access code")
        raise NotFound("Invalid access code")

    # 2. Expired / invalidated / consumed
    _raise_if_not_redeemable(access_code, now)

    # 3. Duplicate link (checked before consuming, so the code stays usable)
    existing = db.query(GuardianLink.id).filter(
        GuardianLink.guardian_id == actor.id,
        GuardianLink.player_id == access_code.owner_id,
    ).first()
    if existing:
        raise DuplicateLink("You are already linked to this player")

    access_code_id = access_code.id
    player_id = access_code.owner_id

    # 4. Atomic consume + link
    try:
        if not _claim_code(db, access_code_id, actor.id, now):
            # Someone else won the race between our read and our write
            db.rollback()
            db.refresh(access_code)
            logger.warning(f"⚠️  Lost redemption race on access code {access_code_id} (guardian {actor.id})")
            _raise_if_not_redeemable(access_code, now)
            raise AlreadyConsumed("This access code has already been used")

        link = GuardianLink(
            guardian_id=actor.id,
            player_id=player_id,
            relation=relationship,
            access_code_id=access_code_id,
            created_at=now,
        )
        db.add(link)
        db.flush()
        db.commit()
    except IntegrityError:
        # Unique (guardian_id, player_id) hit by a concurrent redemption of another code.
        # Rolling back also undoes the consumption above.
        db.rollback()
        raise DuplicateLink("You are already linked to this player")
    except Exception:
        db.rollback()
        raise

    db.refresh(link)
    player = db.get(User, player_id)
    logger.info(f"✅ Guardian {actor.id} linked to player {player_id} as {relationship.value}")
    return link, player


# ==============================================================================
# 3. READ VIEWS
# ==============================================================================

def list_links_for(db: Session, user_id: int) -> List[GuardianLink]:
    """Links where the user is either side. Links never expire."""
    return (
        db.query(GuardianLink)
        .filter(or_(GuardianLink.guardian_id == user_id, GuardianLink.player_id == user_id))
        .order_by(GuardianLink.created_at.desc(), GuardianLink.id.desc())
        .all()
    )


def has_guardian_access(db: Session, guardian_id: int, player_id: int) -> bool:
    return db.query(GuardianLink.id).filter(
        GuardianLink.guardian_id == guardian_id,
        GuardianLink.player_id == player_id,
    ).first() is not None


# ==============================================================================
# 4. HOUSEKEEPING
# ==============================================================================

def purge_expired_codes(db: Session, clock: Clock = system_clock) -> int:
    """
    Deletes codes that can never be redeemed again and were never used.
    Not needed for correctness (expiry is checked at redemption time).
    Consumed codes are kept: links point at them.
    """
    now = clock.now()
    result = db.execute(
        delete(AccessCode)
        .where(
            AccessCode.consumed_at.is_(None),
            or_(
                AccessCode.expires_at <= now,
                AccessCode.invalidated_at.is_not(None),
            ),
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info(f"🧹 Purged {result.rowcount} dead access codes")
    return result.rowcount
