"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

from modgate.api.routes import admin, auth, catalog, submissions  # noqa: E402
from modgate.clients import get_application_store, get_audit_log, get_notifier
from modgate.config import get_settings
from modgate.exceptions import AppError

settings = get_settings()
logger.info("CORS origins: %s", settings.cors_origins)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_notifier().close()


app = FastAPI(title="modgate", version="0.1.0", lifespan=lifespan)

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


class SecurityHeadersMiddleware:
    """Add security headers to all responses (pure ASGI, so it composes with CORSMiddleware)."""

    _HEADERS = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"strict-transport-security", b"max-age=31536000; includeSubDomains"),
        (b"referrer-policy", b"strict-origin-when-cross-origin"),
    ]

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", [])) + self._HEADERS
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

app.include_router(submissions.router)
app.include_router(admin.router)
app.include_router(catalog.router)
app.include_router(auth.router)


@app.get("/")
async def root():
    return {"name": "modgate", "version": "0.1.0", "docs": "/docs"}


@app.get("/health")
async def health():
    """Database and Discord status. Always 200; reports ``degraded`` instead of failing."""
    db_ok = await get_application_store().ping()
    bot = get_notifier().describe()
    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "error",
        "discordBot": bot,
        "discordGuild": bool(settings.discord_guild_id),
        "modRole": bool(settings.mod_role_id),
        "logChannel": get_audit_log().enabled,
    }
