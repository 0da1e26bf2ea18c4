import os
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import Text, create_engine, select, type_coerce
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from swiftnotes.dependencies import get_db
from swiftnotes.main import app
from swiftnotes.models import Base, UserProfile
from swiftnotes.utils.jwt import create_access_token


@pytest.fixture()
def database_path(tmp_path: Path) -> Path:
    return tmp_path / "swiftnotes-test.db"


@pytest.fixture()
def sync_engine(database_path: Path) -> Iterator[Engine]:
    """Synchronous engine on the same file, for schema setup and seeding."""
    engine = create_engine(f"sqlite:///{database_path}")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(database_path: Path, sync_engine: Engine) -> async_sessionmaker:
    # NullPool: no connection outlives the event loop that opened it
    async_engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    return async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db(session_factory: async_sessionmaker):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def seed_profile(sync_engine: Engine) -> Callable[..., str]:
    """Insert a profile row directly. ``preferences`` is stored exactly as given."""

    def _seed(preferences: Any = None, user_id: Optional[str] = None, **fields: Any) -> str:
        user_id = user_id or str(uuid.uuid4())
        fields.setdefault("email", f"{user_id[:8]}@example.com")
        with Session(sync_engine) as session:
            session.add(
                UserProfile(
                    user_id=user_id,
                    preferences={} if preferences is None else preferences,
                    **fields,
                )
            )
            session.commit()
        return user_id

    return _seed


@pytest.fixture()
def stored_text(sync_engine: Engine) -> Callable[[str], Optional[str]]:
    """Raw JSON text of a profile's preferences column."""

    def _read(user_id: str) -> Optional[str]:
        with Session(sync_engine) as session:
            return session.execute(
                select(type_coerce(UserProfile.preferences, Text)).where(UserProfile.user_id == user_id)
            ).scalar_one_or_none()

    return _read


@pytest.fixture()
def stored_profile(sync_engine: Engine) -> Callable[[str], Optional[UserProfile]]:
    def _read(user_id: str) -> Optional[UserProfile]:
        with Session(sync_engine, expire_on_commit=False) as session:
            return session.get(UserProfile, user_id)

    return _read


@pytest.fixture()
def auth_headers() -> Callable[..., Dict[str, str]]:
    def _headers(user_id: str, **claims: Any) -> Dict[str, str]:
        token = create_access_token({"sub": user_id, **claims})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def override_db(session_factory: async_sessionmaker) -> Iterator[None]:
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def api_client(override_db: None) -> Iterator[TestClient]:
    # Not used as a context manager: the lifespan would connect to DATABASE_URL
    client = TestClient(app)
    try:
        yield client
    finally:
        client.close()
