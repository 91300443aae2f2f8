"""Shared fixtures: an in-memory database with the full schema."""

import aiosqlite
import pytest_asyncio

from companypulse.db.database import create_schema
from companypulse.db.store import SQLiteRecordStore


@pytest_asyncio.fixture
async def db():
    conn = await aiosqlite.connect(":memory:")
    await create_schema(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store(db):
    return SQLiteRecordStore(db)
