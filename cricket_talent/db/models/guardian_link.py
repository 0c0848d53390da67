from sqlalchemy import Integer, ForeignKey, DateTime, UniqueConstraint, Enum as SqEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import Optional, TYPE_CHECKING
import enum
from cricket_talent.db.session import Base

if TYPE_CHECKING:
    from cricket_talent.db.models.user import User


class GuardianRelationship(str, enum.Enum):
    # Descriptive only, grants nothing by itself
    PARENT = "parent"
    FATHER = "father"
    MOTHER = "mother"
    GUARDIAN = "guardian"
    OTHER = "other"


class GuardianLink(Base):
    __tablename__ = "guardian_links"
    __table_args__ = (
        # The same guardian can only be linked once to the same player
        UniqueConstraint("guardian_id", "player_id", name="uq_guardian_player"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    guardian_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    # Column is "relationship"; attribute renamed so it does not shadow orm.relationship
    relation: Mapped[GuardianRelationship] = mapped_column(
        "relationship", SqEnum(GuardianRelationship), default=GuardianRelationship.PARENT, nullable=False
    )
    access_code_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("access_codes.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    guardian: Mapped["User"] = relationship("User", foreign_keys=[guardian_id])
    player: Mapped["User"] = relationship("User", foreign_keys=[player_id])
