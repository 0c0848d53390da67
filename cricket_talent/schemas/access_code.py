from pydantic import BaseModel
from datetime import datetime
from cricket_talent.db.models.guardian_link import GuardianRelationship
from cricket_talent.schemas.user import PlayerSummary


class AccessCodeOut(BaseModel):
    code: str
    expires_at: datetime


class RedeemRequest(BaseModel):
    relationship: GuardianRelationship = GuardianRelationship.PARENT


class GuardianLinkOut(BaseModel):
    id: int
    guardian_id: int
    player_id: int
    relationship: GuardianRelationship
    created_at: datetime


class RedeemOut(BaseModel):
    link: GuardianLinkOut
    player: PlayerSummary
    message: str
