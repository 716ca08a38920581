"""Shared service clients: single instances reused across the app."""

from __future__ import annotations

from functools import lru_cache

from modgate.config import get_settings
from modgate.models.database import async_session
from modgate.models.tables import ModRole, QuizQuestion, TestQuestion
from modgate.services.application_store import ApplicationStore
from modgate.services.audit_log import AuditLog
from modgate.services.catalog_store import CatalogStore
from modgate.services.discord_client import DiscordNotifier
from modgate.services.review_service import ReviewService


@lru_cache
def get_notifier() -> DiscordNotifier:
    """Return the cached singleton Discord bot session."""
    settings = get_settings()
    return DiscordNotifier(settings.discord_bot_token, default_footer=settings.team_name)


@lru_cache
def get_audit_log() -> AuditLog:
    settings = get_settings()
    return AuditLog(
        get_notifier(),
        channel_id=settings.log_channel_id,
        webhook_url=settings.discord_webhook_url,
        timeout=settings.discord_call_timeout,
    )


@lru_cache
def get_application_store() -> ApplicationStore:
    return ApplicationStore(async_session)


@lru_cache
def get_review_service() -> ReviewService:
    """Single ReviewService so its per-application locks are shared by all requests."""
    return ReviewService(
        get_application_store(),
        get_notifier(),
        get_audit_log(),
        get_settings(),
    )


@lru_cache
def get_test_question_store() -> CatalogStore[TestQuestion]:
    return CatalogStore(async_session, TestQuestion, order_by=TestQuestion.id)


@lru_cache
def get_quiz_question_store() -> CatalogStore[QuizQuestion]:
    return CatalogStore(async_session, QuizQuestion, order_by=QuizQuestion.question_number)


@lru_cache
def get_mod_role_store() -> CatalogStore[ModRole]:
    return CatalogStore(async_session, ModRole, order_by=ModRole.id)
