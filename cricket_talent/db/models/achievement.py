# cricket_talent/db/models/achievement.py
from sqlalchemy import String, Integer, Float, Boolean, ForeignKey, DateTime, Date, JSON, Text, Enum as SqEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, date
from typing import Optional, TYPE_CHECKING
import enum
from cricket_talent.db.session import Base

if TYPE_CHECKING:
    from .user import User


# --- CLOSED ENUMS ---
class AchievementCategory(str, enum.Enum):
    BATTING = "Batting"
    BOWLING = "Bowling"
    FIELDING = "Fielding"
    ALL_ROUND = "All-Round"
    TEAM = "Team"
    CAREER = "Career"
    SPECIAL = "Special"


class AchievementTier(str, enum.Enum):
    # Declaration order is the display ranking (lowest first)
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    DIAMOND = "Diamond"


class AchievementStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"    # terminal
    REJECTED = "rejected"    # terminal


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    submitted_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[AchievementCategory] = mapped_column(SqEnum(AchievementCategory), index=True, nullable=False)
    tier: Mapped[AchievementTier] = mapped_column(SqEnum(AchievementTier), default=AchievementTier.BRONZE, nullable=False)
    achievement_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)

    # Optional match context
    opponent: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    venue: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # runs, wickets, catches...
    submission_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    media_links: Mapped[list] = mapped_column(JSON, default=list)

    # --- WORKFLOW ---
    status: Mapped[AchievementStatus] = mapped_column(
        SqEnum(AchievementStatus), default=AchievementStatus.PENDING, index=True, nullable=False
    )
    # Only approved achievements are visible to the public
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # NULL iff status == pending
    reviewed_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Submission time, used for FIFO review ordering
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)

    # Relationships
    player: Mapped["User"] = relationship("User", foreign_keys=[player_id])
    submitter: Mapped["User"] = relationship("User", foreign_keys=[submitted_by])
    reviewer: Mapped[Optional["User"]] = relationship("User", foreign_keys=[reviewed_by])

    def __repr__(self):
        return f"Achievement(id={self.id}, player_id={self.player_id}, status={self.status.value})"
