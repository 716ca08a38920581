"""Authentication routes: Discord OAuth2 login and session inspection."""

import logging
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from modgate.api.auth import (
    decode_state_token,
    get_current_session,
    issue_session_token,
    issue_state_token,
)
from modgate.config import Settings, get_settings
from modgate.exceptions import AppError, AuthError, ForbiddenError, RateLimitedError, UnprocessableError
from modgate.schemas.pydantic import SessionUser

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])
limiter = Limiter(key_func=get_remote_address)

DISCORD_API_BASE = "https://discord.com/api"
LOGIN_INTENTS = {"admin", "test"}


async def fetch_discord_profile(code: str, settings: Settings) -> dict:
    """Exchange an OAuth code for an access token and return the Discord user."""
    async with httpx.AsyncClient(timeout=10) as client:
        token_resp = await client.post(
            f"{DISCORD_API_BASE}/oauth2/token",
            data={
                "client_id": settings.discord_client_id,
                "client_secret": settings.discord_client_secret,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": settings.discord_redirect_uri,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if token_resp.status_code == 429:
            retry_after = token_resp.headers.get("retry-after", "60")
            raise RateLimitedError(
                f"Too many authentication attempts. Please wait {retry_after} seconds before trying again."
            )
        token_resp.raise_for_status()
        access_token = token_resp.json()["access_token"]

        user_resp = await client.get(
            f"{DISCORD_API_BASE}/users/@me",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        user_resp.raise_for_status()
        return user_resp.json()


def _with_session_cookie(response: RedirectResponse, user: SessionUser, settings: Settings) -> RedirectResponse:
    response.set_cookie(
        settings.session_cookie_name,
        issue_session_token(user, settings),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/discord")
@limiter.limit("10/hour")
async def discord_login(request: Request, intent: str = "test") -> RedirectResponse:
    """Redirect to Discord's consent screen. ``intent`` is ``admin`` or ``test``."""
    settings = get_settings()
    if intent not in LOGIN_INTENTS:
        raise UnprocessableError(f"Unknown login intent: {intent}")
    if not settings.discord_client_id or not settings.discord_redirect_uri:
        raise AppError("Discord OAuth is not configured")

    params = {
        "client_id": settings.discord_client_id,
        "redirect_uri": settings.discord_redirect_uri,
        "response_type": "code",
        "scope": "identify",
        "state": issue_state_token(intent, settings),
    }
    return RedirectResponse(f"{DISCORD_API_BASE}/oauth2/authorize?{urlencode(params)}")


@router.get("/discord/callback")
@limiter.limit("10/hour")
async def discord_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
) -> RedirectResponse:
    """Finish the OAuth flow, start a session and route the user by intent."""
    settings = get_settings()
    if not code:
        raise UnprocessableError("No code provided")
    intent = decode_state_token(state, settings) if state else "test"

    try:
        profile = await fetch_discord_profile(code, settings)
    except httpx.HTTPError as e:
        logger.error("Discord token exchange failed: %s", e)
        raise AuthError("Discord authentication failed")

    user = SessionUser(
        discord_id=str(profile["id"]),
        username=profile["username"],
        global_name=profile.get("global_name"),
        is_admin=str(profile["id"]) in settings.admin_id_set,
    )
    logger.info("Discord user authenticated: %s (admin=%s, intent=%s)", user.username, user.is_admin, intent)

    if intent == "admin":
        if not user.is_admin:
            logger.info("Non-admin %s tried to open the admin panel", user.username)
            raise ForbiddenError("You don't have administrator privileges.")
        return _with_session_cookie(RedirectResponse(settings.admin_dashboard_url), user, settings)

    query = urlencode({
        "startTest": 1,
        "discord_username": user.username,
        "discord_id": user.discord_id,
    })
    return _with_session_cookie(
        RedirectResponse(f"{settings.frontend_url}?{query}"), user, settings
    )


@router.get("/me")
async def me(user: SessionUser = Depends(get_current_session)) -> dict:
    return {
        "authenticated": True,
        "user": user.model_dump(by_alias=True),
        "isAdmin": user.is_admin,
    }


@router.post("/logout")
async def logout() -> RedirectResponse:
    settings = get_settings()
    response = RedirectResponse(settings.frontend_url, status_code=303)
    response.delete_cookie(settings.session_cookie_name)
    return response
