"""Centralized settings: all env vars and magic numbers live here."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# Load .env before anything reads os.getenv
load_dotenv(Path(__file__).resolve().parent / ".env")


class Settings(BaseSettings):
    """Application settings. Values come from environment variables, then defaults."""

    # ── Database (Supabase Postgres) ──
    database_url: str = Field(default="", alias="DATABASE_URL")

    # ── Sessions ──
    session_secret: str = Field(default="", alias="SESSION_SECRET")
    session_cookie_name: str = "modgate_session"
    session_ttl_seconds: int = 7 * 24 * 3600
    session_cookie_secure: bool = Field(default=True, alias="SESSION_COOKIE_SECURE")

    # ── Discord OAuth ──
    discord_client_id: str = Field(default="", alias="DISCORD_CLIENT_ID")
    discord_client_secret: str = Field(default="", alias="DISCORD_CLIENT_SECRET")
    discord_redirect_uri: str = Field(default="", alias="REDIRECT_URI")
    admin_ids: str = Field(default="", alias="ADMIN_IDS")
    admin_dashboard_url: str = Field(default="/admin/api/applications", alias="ADMIN_DASHBOARD_URL")
    frontend_url: str = Field(
        default="https://hunterahead71-hash.github.io/void.training/",
        alias="FRONTEND_URL",
    )

    # ── Discord bot ──
    discord_bot_token: str = Field(default="", alias="DISCORD_BOT_TOKEN")
    discord_guild_id: int = Field(default=0, alias="DISCORD_GUILD_ID")
    mod_role_id: int = Field(default=0, alias="MOD_ROLE_ID")
    log_channel_id: int = Field(default=0, alias="LOG_CHANNEL_ID")
    discord_webhook_url: str = Field(default="", alias="DISCORD_WEBHOOK_URL")

    # ── Server ──
    cors_origins: list[str] = Field(
        default=["https://hunterahead71-hash.github.io"],
        alias="CORS_ORIGINS",
    )

    # ── Review workflow ──
    discord_call_timeout: float = 5.0
    default_rejection_reason: str = "No reason provided"
    team_name: str = "Void Esports Mod Team"
    reapply_days: int = 30

    # ── Submission intake ──
    default_total_questions: int = 8
    conversation_preview_chars: int = 900

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def _check_required_secrets(self) -> "Settings":
        """Fail fast at startup if critical secrets are missing."""
        missing = [
            name for name, value in [
                ("DATABASE_URL", self.database_url),
                ("SESSION_SECRET", self.session_secret),
            ]
            if not value
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        return self

    @property
    def admin_id_set(self) -> frozenset[str]:
        """Discord user ids allowed into the admin panel (ADMIN_IDS, comma-separated)."""
        return frozenset(part.strip() for part in self.admin_ids.split(",") if part.strip())

    @property
    def role_automation_configured(self) -> bool:
        return bool(self.discord_guild_id and self.mod_role_id)


@lru_cache
def get_settings() -> Settings:
    """Return cached singleton settings instance."""
    return Settings()
