from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session
from cricket_talent.schemas.user import UserCreate, UserLogin, UserOut
from cricket_talent.db.session import get_db
from cricket_talent.db.models.user import User, Role
from cricket_talent.core.security import hash_password, verify_password, create_access_token
from cricket_talent.core.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db)):
    email = user.email.lower()

    # 1. Email must be free
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email is already registered")

    # 2. Create user (players and parents only, staff accounts come from an admin)
    new_user = User(
        email=email,
        name=user.name.strip(),
        hashed_password=hash_password(user.password),
        role=Role(user.role),
    )
    db.add(new_user)
    db.commit()

    return {"message": "User created successfully"}


@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == user.email.lower()).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    # Role travels in the token for the frontend only, the backend re-reads it from the DB
    token = create_access_token({
        "sub": str(db_user.id),
        "role": db_user.role.value,
        "name": db_user.name,
    })
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
