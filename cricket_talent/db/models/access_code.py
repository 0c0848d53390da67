from sqlalchemy import String, Integer, ForeignKey, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from cricket_talent.core.config import ACCESS_CODE_MAX_LENGTH
from cricket_talent.db.session import Base

if TYPE_CHECKING:
    from cricket_talent.db.models.user import User


class AccessCode(Base):
    """
    Single-use code a player hands to a parent out-of-band.
    Redeemable while consumed_at and invalidated_at are both NULL and now < expires_at.
    """
    __tablename__ = "access_codes"
    __table_args__ = (
        # At most one unconsumed, non-invalidated code per player, whatever the interleaving of issuers
        Index(
            "uq_access_codes_one_outstanding",
            "owner_id",
            unique=True,
            sqlite_where=text("consumed_at IS NULL AND invalidated_at IS NULL"),
            postgresql_where=text("consumed_at IS NULL AND invalidated_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Always stored upper-case, lookups normalise the input
    code: Mapped[str] = mapped_column(String(ACCESS_CODE_MAX_LENGTH), unique=True, index=True, nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    consumed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    consumed_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)

    # Set when the owner issues a newer code
    invalidated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id])

    def is_redeemable(self, now: datetime) -> bool:
        return self.consumed_at is None and self.invalidated_at is None and now < self.expires_at

    def __repr__(self):
        return f"AccessCode(id={self.id}, owner_id={self.owner_id}, expires_at={self.expires_at})"
