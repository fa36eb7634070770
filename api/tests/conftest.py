import os

os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite://')

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from rightsline.main import app
from rightsline.db.database import Base, get_db
from rightsline.models.user import User
from rightsline.models.post import Post
from rightsline.services.ledger_service import LedgerService
import rightsline.models  # noqa: F401


# In-memory SQLite, one shared connection per test
TEST_DATABASE_URL = 'sqlite+aiosqlite://'


def _make_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={'check_same_thread': False},
    )

    # Let SQLAlchemy drive BEGIN so SAVEPOINTs behave, and enforce foreign keys
    @event.listens_for(engine.sync_engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(engine.sync_engine, 'begin')
    def _on_begin(conn):
        conn.exec_driver_sql('BEGIN')

    return engine


@pytest.fixture
async def engine():
    """Fresh database per test."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    """Async HTTP client for testing, bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def db_session(session_factory):
    """Database session for service-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def make_user(db: AsyncSession, username: str, country: str | None = 'UA') -> User:
    user = User(username=username, country=country)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def make_post(db: AsyncSession, author: User, content: str = 'Report from the ground') -> Post:
    post = Post(user_id=author.id, content=content)
    db.add(post)
    await db.flush()
    await db.refresh(post)
    return post


async def api_user(client: AsyncClient, username: str) -> dict:
    resp = await client.post('/api/users', json={'username': username, 'country': 'UA'})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def grant_points(
    session_factory, user_id: int, points: int, description: str = 'test reward',
) -> None:
    """Credit earned points the way a reward trigger would, outside the HTTP API."""
    async with session_factory() as db:
        await LedgerService(db).award(user_id, points, description)
        await db.commit()


async def api_post(client: AsyncClient, author_id: int, content: str = 'Report from the ground') -> dict:
    resp = await client.post(f'/api/posts?user_id={author_id}', json={'content': content})
    assert resp.status_code == 201, resp.text
    return resp.json()
