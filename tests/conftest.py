"""Shared pytest fixtures for the haul stylist API.

Provides:
- Environment needed by app settings (set before any app import)
- In-memory SQLite database with the full schema
- Sample outfit ideas shared by writer, reader and API tests
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
os.environ["CHANNEL3_API_KEY"] = "test-channel3-key"

from typing import AsyncGenerator, List

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.schemas.outfit import OutfitIdea, OutfitItemIdea, PriceRange
from app.core.database import Base
from tests.helpers import make_product


# Database fixtures
@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test, shared by every connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy emit BEGIN so SAVEPOINTs work, and enforce foreign keys
    # Reference: https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#serializable-isolation-savepoints-transactional-ddl
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Database session for testing."""
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def sample_outfit_ideas() -> List[OutfitIdea]:
    """Two outfits sharing one product, with variants on some items."""
    office = OutfitIdea(
        name="Office Polish",
        occasion="Work",
        stylist_blurb="Crisp lines balanced by soft textures.",
        items=[
            OutfitItemIdea(
                category="top",
                reasoning="Silk reads polished",
                is_main=True,
                product=make_product("p-blouse", 80),
                variants=[make_product("p-blouse-alt1", 70), make_product("p-blouse-alt2", 95)],
            ),
            OutfitItemIdea(
                category="bottom",
                reasoning="Tailored trousers anchor the look",
                is_main=True,
                product=make_product("p-trousers", 120),
            ),
            OutfitItemIdea(
                category="shoes",
                reasoning="Low block heel",
                is_main=False,
                product=make_product("p-loafers", 110),
                variants=[make_product("p-loafers-alt", 90)],
            ),
            OutfitItemIdea(
                category="bag",
                reasoning="Structured tote",
                is_main=False,
                product=make_product("p-tote", 150),
            ),
        ],
        total_price=460,
        price_range=PriceRange(min=70, max=150),
    )
    weekend = OutfitIdea(
        name="Weekend Ease",
        occasion="Brunch",
        stylist_blurb=None,
        items=[
            OutfitItemIdea(
                category="dress",
                reasoning="Easy midi",
                is_main=True,
                product=make_product("p-dress", 90),
            ),
            OutfitItemIdea(
                category="shoes",
                reasoning="Same loafers, dressed down",
                is_main=False,
                product=make_product("p-loafers", 110),
            ),
        ],
        total_price=200,
        price_range=None,
    )
    return [office, weekend]
