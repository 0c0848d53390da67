from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Dict, List, Literal, Optional
from cricket_talent.db.models.achievement import AchievementCategory, AchievementTier, AchievementStatus


class AchievementSubmit(BaseModel):
    # Defaults to the caller; a player can only submit for themselves
    player_id: Optional[int] = None
    title: str = Field(..., max_length=120)
    description: str
    category: AchievementCategory
    tier: AchievementTier = AchievementTier.BRONZE
    # Defaults to the submission day (players' local calendar)
    achievement_date: Optional[date] = None
    opponent: Optional[str] = None
    venue: Optional[str] = None
    value: Optional[float] = None
    submission_notes: Optional[str] = None
    media_links: List[str] = []

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("opponent", "venue", "submission_notes")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("media_links")
    @classmethod
    def clean_links(cls, v: List[str]) -> List[str]:
        return [link.strip() for link in v if link and link.strip()]


class AchievementReview(BaseModel):
    status: Literal["approved", "rejected"]
    feedback: Optional[str] = None


class AchievementOut(BaseModel):
    id: int
    player_id: int
    submitted_by: int
    title: str
    description: str
    category: AchievementCategory
    tier: AchievementTier
    status: AchievementStatus
    achievement_date: date
    opponent: Optional[str] = None
    venue: Optional[str] = None
    value: Optional[float] = None
    submission_notes: Optional[str] = None
    media_links: List[str] = []
    is_public: bool
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    feedback: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AchievementEnvelope(BaseModel):
    achievement: AchievementOut
    message: str


class AchievementStatsOut(BaseModel):
    player_id: int
    total: int
    by_tier: Dict[str, int]
    by_category: Dict[str, int]
    latest: Optional[AchievementOut] = None

    class Config:
        from_attributes = True
