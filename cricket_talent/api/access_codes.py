from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from cricket_talent.db.session import get_db
from cricket_talent.db.models.user import User
from cricket_talent.db.models.guardian_link import GuardianLink
from cricket_talent.core.deps import get_current_user
from cricket_talent.schemas.access_code import AccessCodeOut, RedeemRequest, RedeemOut, GuardianLinkOut
from cricket_talent.schemas.user import PlayerSummary
from cricket_talent.services import account_links
from cricket_talent.services.clock import Clock, get_clock

router = APIRouter(tags=["Account Linking"])


def serialize_link(link: GuardianLink) -> dict:
    return {
        "id": link.id,
        "guardian_id": link.guardian_id,
        "player_id": link.player_id,
        "relationship": link.relation,
        "created_at": link.created_at,
    }


@router.post("/access-codes", response_model=AccessCodeOut, status_code=201)
def generate_access_code(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    The player generates a code to hand to a parent.
    Any previous outstanding code of the player stops working.
    """
    access_code = account_links.issue_code(db, current_user, clock=clock)
    return {"code": access_code.code, "expires_at": access_code.expires_at}


@router.post("/access-codes/{code}/redeem", response_model=RedeemOut)
def redeem_access_code(
    code: str,
    body: RedeemRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    relationship = (body or RedeemRequest()).relationship
    link, player = account_links.redeem_code(db, current_user, code, relationship, clock=clock)
    return {
        "link": serialize_link(link),
        "player": PlayerSummary.model_validate(player),
        "message": "Successfully linked to player",
    }


@router.get("/guardian-links", response_model=list[GuardianLinkOut])
def my_guardian_links(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Parents see their children, players see their guardians."""
    return [serialize_link(link) for link in account_links.list_links_for(db, current_user.id)]
