from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Literal
from cricket_talent.db.models.user import Role


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=8)
    # Coaches and admins are created by an admin, not self-registered
    role: Literal["player", "parent"] = "player"


class AdminUserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=8)
    role: Role


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: Role
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class PlayerSummary(BaseModel):
    """What a guardian gets to see about the player they just linked to."""
    id: int
    name: str

    class Config:
        from_attributes = True
