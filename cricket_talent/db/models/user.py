from sqlalchemy import String, Integer, DateTime, Enum as SqEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
import enum
from cricket_talent.db.session import Base


class Role(str, enum.Enum):
    PLAYER = "player"
    PARENT = "parent"
    COACH = "coach"
    ADMIN = "admin"


REVIEWER_ROLES = {Role.ADMIN, Role.COACH}


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[Role] = mapped_column(SqEnum(Role), default=Role.PLAYER, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES

    def __repr__(self):
        return f"User(id={self.id}, email='{self.email}', role={self.role.value})"
