import os
from sqlalchemy import (MetaData, Table, Column, String, Text, DateTime, Boolean, ForeignKey, UniqueConstraint)
from sqlalchemy.ext.asyncio import create_async_engine
from databases import Database
import config  # noqa: F401  loads .env before the variables below are read

DB_PATH = os.getenv("DATABASE_PATH")
if not DB_PATH:
    # default to ./pastes/pastes.db
    DB_PATH = os.path.abspath(os.path.join(os.getcwd(), "pastes", "pastes.db"))
# ensure folder exists before any DB IO
os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)

DB_URL = os.getenv("DB_URL", f"sqlite+aiosqlite:///{DB_PATH}")

metadata = MetaData()

pastes = Table(
    "pastes",
    metadata,
    Column("id", String, primary_key=True),
    Column("created_at", DateTime, nullable=False),
    Column("title", String, nullable=False, default=""),
    Column("owner_id", String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True),
    Column("private", Boolean, nullable=False, default=False),
)

pasties = Table(
    "pasties",
    metadata,
    Column("id", String, primary_key=True),
    Column("paste_id", String, ForeignKey("pastes.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("title", String, nullable=False, default=""),
    Column("content", Text, nullable=False),
    Column("language", String, nullable=False, default="Text"),
)

users = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),
    Column("created_at", DateTime, nullable=False),
    Column("username", String, unique=True, index=True, nullable=False),
    Column("avatar_url", String, nullable=False, default=""),
    Column("provider_name", String, nullable=False),
    Column("provider_id", String, nullable=False),
    UniqueConstraint("provider_name", "provider_id", name="user_provider"),
)

# Use 'databases' for async query execution
database = Database(DB_URL)


async def init_db(url: str = DB_URL):
    """Create tables using SQLAlchemy async engine. Call this at application startup."""
    async_engine = create_async_engine(url, echo=False)
    async with async_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    await async_engine.dispose()
