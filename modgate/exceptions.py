"""Typed exception hierarchy for modgate.

Raise these instead of bare HTTPException so that:
- Service code is testable without a FastAPI request context
- Error codes are declared in one place
- main.py's AppError handler converts them to consistent JSON responses
"""

from __future__ import annotations


class AppError(Exception):
    """Base application error, caught by FastAPI exception handler in main.py."""

    status_code: int = 500
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.detail
        super().__init__(self.detail)


class NotFoundError(AppError):
    """Resource does not exist."""

    status_code = 404
    detail = "Not found"


class ForbiddenError(AppError):
    """Authenticated user is not allowed to perform this action."""

    status_code = 403
    detail = "Forbidden"


class UnprocessableError(AppError):
    """Request body is structurally valid but semantically incorrect."""

    status_code = 422
    detail = "Unprocessable request"


class AuthError(AppError):
    """Session missing, expired, or invalid."""

    status_code = 401
    detail = "Authentication failed"


# ── Discord automation ─────────────────────────────────────────────────
# Raised by DiscordNotifier; the review service folds them into its outcome.


class AutomationError(AppError):
    """A Discord side effect could not be carried out."""

    status_code = 502
    detail = "Discord automation failed"


class BotUnavailableError(AutomationError):
    detail = "Bot not ready. Please check if bot is online and has proper intents enabled."


class GuildNotFoundError(AutomationError):
    detail = "Guild not found."


class MemberNotFoundError(AutomationError):
    detail = "User not found in the server."


class RoleNotFoundError(AutomationError):
    detail = "Mod role not found."


class MissingPermissionError(AutomationError):
    detail = "Bot lacks 'Manage Roles' permission."


class RoleHierarchyError(AutomationError):
    detail = "Role hierarchy issue. Bot's role must be higher than the mod role."


class RateLimitedError(AppError):
    """An upstream API (Discord OAuth) asked us to back off."""

    status_code = 429
    detail = "Rate limited. Please try again later."
