from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session
from cricket_talent.db.session import get_db
from cricket_talent.db.models.user import User
from cricket_talent.schemas.user import AdminUserCreate, UserOut
from cricket_talent.core.deps import require_admin
from cricket_talent.core.security import hash_password

router = APIRouter(prefix="/admin", tags=["Admin"])


# -----------------------
# Users
# -----------------------
@router.get("/users", response_model=list[UserOut])
def list_users(current_user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id).all()


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(
    data: AdminUserCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email is already registered")

    user = User(
        email=email,
        name=data.name.strip(),
        hashed_password=hash_password(data.password),
        role=data.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
