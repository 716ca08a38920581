"""Signed session cookies and the admin gate.

Sessions are HS256 JWTs issued after Discord OAuth and stored in an
HttpOnly cookie; a Bearer header carrying the same token is accepted too.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from modgate.config import Settings, get_settings
from modgate.exceptions import AuthError, ForbiddenError
from modgate.schemas.pydantic import SessionUser

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_AUDIENCE = "modgate-session"
STATE_AUDIENCE = "modgate-oauth-state"
STATE_TTL = timedelta(minutes=10)

security = HTTPBearer(auto_error=False)


def issue_session_token(user: SessionUser, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.discord_id,
        "username": user.username,
        "global_name": user.global_name,
        "adm": user.is_admin,
        "aud": SESSION_AUDIENCE,
        "iat": now,
        "exp": now + timedelta(seconds=settings.session_ttl_seconds),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=ALGORITHM)


def decode_session_token(token: str, settings: Settings | None = None) -> SessionUser:
    """Verify a session token and return its user. Raises AuthError."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token, settings.session_secret, algorithms=[ALGORITHM], audience=SESSION_AUDIENCE
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Session expired")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Unauthorized: {e}")

    sub = payload.get("sub")
    username = payload.get("username")
    if not sub or not username:
        raise AuthError("Unauthorized")
    return SessionUser(
        discord_id=sub,
        username=username,
        global_name=payload.get("global_name"),
        # Admin rights follow ADMIN_IDS, not just the flag captured at login.
        is_admin=bool(payload.get("adm")) and sub in settings.admin_id_set,
    )


def issue_state_token(intent: str, settings: Settings | None = None) -> str:
    """Signed OAuth ``state`` carrying the login intent (admin or test)."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {"intent": intent, "aud": STATE_AUDIENCE, "iat": now, "exp": now + STATE_TTL}
    return jwt.encode(payload, settings.session_secret, algorithm=ALGORITHM)


def decode_state_token(state: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            state, settings.session_secret, algorithms=[ALGORITHM], audience=STATE_AUDIENCE
        )
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid OAuth state: {e}")
    return payload.get("intent", "test")


async def get_current_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> SessionUser:
    """Return the logged-in Discord user or raise AuthError (HTTP 401)."""
    settings = get_settings()
    token = request.cookies.get(settings.session_cookie_name)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise AuthError("Not authenticated")
    return decode_session_token(token, settings)


async def get_current_admin(user: SessionUser = Depends(get_current_session)) -> SessionUser:
    """Require an admin session (HTTP 403 otherwise)."""
    if not user.is_admin:
        logger.warning("Unauthorized admin access attempt by %s (%s)", user.username, user.discord_id)
        raise ForbiddenError("Admin access required")
    return user
