import os

# Must be set before the application modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from cricket_talent.core.security import create_access_token, hash_password
from cricket_talent.db.session import Base, get_db
from cricket_talent.db.models import _all  # noqa: F401
from cricket_talent.db.models.user import User, Role
from cricket_talent.schemas.achievement import AchievementSubmit
from cricket_talent.services import achievement_stats
from cricket_talent.services.clock import Clock, get_clock

T0 = datetime(2025, 3, 1, 10, 0, 0)


class FrozenClock(Clock):
    """Deterministic time and, when queued, deterministic codes."""

    def __init__(self, now: datetime):
        self.current = now
        self.codes = []

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def queue_codes(self, *codes: str) -> None:
        self.codes.extend(codes)

    def new_code(self, length: int) -> str:
        if self.codes:
            return self.codes.pop(0)
        return super().new_code(length)


def _sqlite_engine(path, immediate: bool = False):
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    if immediate:
        # Every transaction takes the write lock up front, so concurrent
        # writers queue up instead of failing with "database is locked"
        @event.listens_for(engine, "connect")
        def _no_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def engine(tmp_path):
    engine = _sqlite_engine(tmp_path / "test.db")
    yield engine
    engine.dispose()


@pytest.fixture
def serialized_engine(tmp_path):
    engine = _sqlite_engine(tmp_path / "race.db", immediate=True)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture(autouse=True)
def _fresh_stats_cache():
    achievement_stats.clear_cache()
    yield
    achievement_stats.clear_cache()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: Role = Role.PLAYER, name: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role.value}{counter['n']}@crickettalent.lk",
            name=name or f"{role.value.title()} {counter['n']}",
            hashed_password=hash_password("password123"),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def player(make_user):
    return make_user(Role.PLAYER, "Kusal Perera")


@pytest.fixture
def parent(make_user):
    return make_user(Role.PARENT, "Nimal Perera")


@pytest.fixture
def coach(make_user):
    return make_user(Role.COACH, "Coach Silva")


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, "Admin")


@pytest.fixture
def make_submission():
    def _make(**overrides) -> AchievementSubmit:
        data = {
            "title": "Century",
            "description": "Scored 104 against Trinity College",
            "category": "Batting",
            "tier": "Gold",
            "achievement_date": (T0 - timedelta(days=3)).date(),
            "opponent": "Trinity College",
            "venue": "Asgiriya",
            "value": 104,
        }
        data.update(overrides)
        return AchievementSubmit(**data)

    return _make


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(session_factory, clock):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
