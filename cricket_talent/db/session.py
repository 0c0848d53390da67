from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from cricket_talent.core.config import settings


def build_engine(url: str):
    """Engine with pool_pre_ping so dead pooled connections are replaced before use."""
    connect_args = {}
    if url.startswith("sqlite"):
        # SQLite + FastAPI: a request may run on a different thread than the one that opened the connection
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
