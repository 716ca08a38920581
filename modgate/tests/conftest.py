"""Shared fixtures for modgate tests."""

from __future__ import annotations

import os

# Settings are read at import time by modgate.models.database.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("ADMIN_IDS", "111111111111111111")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from modgate.config import Settings
from modgate.models.database import Base
from modgate.models.tables import Application
from modgate.services.application_store import ApplicationStore
from modgate.services.review_service import ReviewService
from modgate.tests.fakes import ADMIN_ID, GUILD_ID, LOG_CHANNEL_ID, ROLE_ID, FakeAuditLog, FakeNotifier


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        SESSION_SECRET="test-session-secret",
        ADMIN_IDS=ADMIN_ID,
        DISCORD_GUILD_ID=GUILD_ID,
        MOD_ROLE_ID=ROLE_ID,
        LOG_CHANNEL_ID=LOG_CHANNEL_ID,
        discord_call_timeout=0.5,
    )


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> ApplicationStore:
    return ApplicationStore(session_factory)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def audit_log() -> FakeAuditLog:
    return FakeAuditLog()


@pytest.fixture
def service(store, notifier, audit_log, settings) -> ReviewService:
    return ReviewService(store, notifier, audit_log, settings)


@pytest.fixture
def submit(store):
    """Insert a pending application and return it."""

    async def _submit(**overrides) -> Application:
        fields = {
            "discord_id": "555666777888",
            "discord_username": "Alice",
            "score": "7/8",
            "total_questions": 8,
            "correct_answers": 7,
            "wrong_answers": 1,
            "conversation_log": "Q1: hey i wanna join\nA1: what's your age?",
        }
        fields.update(overrides)
        return await store.insert(fields)

    return _submit
