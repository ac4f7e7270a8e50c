"""Shared pytest configuration.

Settings are read once at import time, so the environment is pinned here
before any ``trustreport`` module is imported.
"""

import os

os.environ["APP_ENV"] = "test"
os.environ["ENABLE_CACHE"] = "false"
os.environ["ENABLE_METRICS"] = "false"
os.environ["OPENAI_API_KEY"] = ""
os.environ.pop("ADJUSTMENT_SERVICE_URL", None)

import pytest
from unittest.mock import AsyncMock, Mock
from contextlib import asynccontextmanager


@pytest.fixture
def mock_db():
    """Mock data access facade with the MongoDBOperations surface."""
    db = Mock()
    db.find_one = AsyncMock(return_value=None)
    db.find = AsyncMock(return_value=[])
    db.insert_one = AsyncMock(return_value="inserted-id")
    db.update_one = AsyncMock(return_value=True)
    db.update_many = AsyncMock(return_value=0)
    db.delete_many = AsyncMock(return_value=0)
    db.aggregate = AsyncMock(return_value=[])

    @asynccontextmanager
    async def transaction():
        yield None

    db.transaction = transaction
    return db


@pytest.fixture
def mock_cache():
    """Mock Redis cache manager that always misses."""
    cache = Mock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=0)

    async def get_or_set(key, func, ttl=None, force_refresh=False):
        return await func()

    cache.get_or_set = AsyncMock(side_effect=get_or_set)
    return cache
