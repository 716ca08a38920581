"""Tests for config and settings loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from modgate.config import Settings

DB_URL = "postgresql+asyncpg://localhost/test"


def test_settings_defaults():
    """Settings should have sensible defaults even without optional env vars."""
    s = Settings(DATABASE_URL=DB_URL, SESSION_SECRET="secret")
    assert s.discord_call_timeout == 5.0
    assert s.default_rejection_reason == "No reason provided"
    assert s.default_total_questions == 8
    assert s.reapply_days == 30
    assert s.session_cookie_secure is True


def test_missing_secrets_fail_fast():
    with pytest.raises(ValidationError, match="SESSION_SECRET"):
        Settings(DATABASE_URL=DB_URL, SESSION_SECRET="")


def test_admin_id_set_parses_comma_list():
    s = Settings(
        DATABASE_URL=DB_URL,
        SESSION_SECRET="secret",
        ADMIN_IDS=" 111111111111111111, 222222222222222222 ,,",
    )
    assert s.admin_id_set == frozenset({"111111111111111111", "222222222222222222"})


def test_role_automation_needs_guild_and_role():
    s = Settings(DATABASE_URL=DB_URL, SESSION_SECRET="secret", DISCORD_GUILD_ID=1, MOD_ROLE_ID=0)
    assert s.role_automation_configured is False

    s = Settings(DATABASE_URL=DB_URL, SESSION_SECRET="secret", DISCORD_GUILD_ID=1, MOD_ROLE_ID=2)
    assert s.role_automation_configured is True


def test_settings_override():
    """Settings can be overridden via constructor."""
    s = Settings(
        DATABASE_URL=DB_URL,
        SESSION_SECRET="secret",
        discord_call_timeout=1.5,
        team_name="Night Owls",
    )
    assert s.discord_call_timeout == 1.5
    assert s.team_name == "Night Owls"
