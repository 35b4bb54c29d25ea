import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on path for `rewardapi` imports
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MIRROR_ENABLED", "false")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rewardapi.config import Settings
from rewardapi.models import Base, PokemonPool, Teacher
from rewardapi.providers.events.dispatcher import create_event_dispatcher
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.student_repository import StudentRepository


class FakeRedis:
    """Hash 명령만 지원하는 인메모리 Redis 대역"""

    def __init__(self):
        self.store = {}

    def ping(self):
        return True

    def hget(self, name, key):
        return self.store.get(name, {}).get(key)

    def hset(self, name, key, value):
        self.store.setdefault(name, {})[key] = value
        return 1

    def hdel(self, name, key):
        return 1 if self.store.get(name, {}).pop(key, None) is not None else 0

    def hgetall(self, name):
        return dict(self.store.get(name, {}))

    def close(self):
        pass


class BrokenRedis(FakeRedis):
    """모든 명령이 연결 오류를 내는 Redis 대역"""

    def _fail(self, *args, **kwargs):
        raise ConnectionError("redis is down")

    ping = hget = hset = hdel = hgetall = _fail


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        MIRROR_ENABLED=True,
        MIRROR_KEY_PREFIX="test:mirror",
        STARTING_TEACHER_CREDITS=100,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def mirror(test_settings, fake_redis):
    return LocalMirror(test_settings, client=fake_redis)


@pytest.fixture
def dispatcher(session_factory):
    return create_event_dispatcher(session_factory)


@pytest.fixture
def make_student(db_session):
    def _make(coins: int = 0, username: str = "student"):
        return StudentRepository(db_session).create_student(username=username, coins=coins)

    return _make


@pytest.fixture
def make_teacher(db_session):
    def _make(username: str = "teacher", is_owner: bool = False, display_name: str = None):
        teacher = Teacher(username=username, display_name=display_name, is_owner=is_owner)
        db_session.add(teacher)
        db_session.commit()
        return teacher.id

    return _make


@pytest.fixture
def make_pokemon(db_session):
    def _make(name: str = "Pikachu", price: int = 15, rarity: str = "common"):
        pokemon = PokemonPool(name=name, type_1="electric", rarity=rarity, price=price)
        db_session.add(pokemon)
        db_session.commit()
        return pokemon.id

    return _make


@pytest.fixture
def broken_mirror(test_settings):
    return LocalMirror(test_settings, client=BrokenRedis())
