from sqlmodel import SQLModel, Session
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy import create_engine as create_sync_engine

from matchday_backend.core.config import settings

# SQLite needs this when sessions cross FastAPI worker threads
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

# --- Engines ---
engine = create_async_engine(settings.async_database_url, future=True)                      # Async (tick loop)
sync_engine = create_sync_engine(settings.database_url, connect_args=connect_args, future=True)  # Sync (routes/seeding)

# --- Async session maker (background tick) ---
async_session_maker = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# --- Initialize DB tables ---
async def init_db():
    """Create tables asynchronously if they don't exist."""
    # Import models so every table is registered on SQLModel.metadata
    from matchday_backend import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


# --- Sync session (used in routes) ---
def get_session():
    with Session(sync_engine) as session:
        yield session
