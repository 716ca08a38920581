"""One-way audit trail of review activity, mirrored to Discord.

Posts to the configured log channel through the bot, or to the incoming
webhook when no channel is set. Never raises: an unreachable sink only
costs a log line.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Iterable

import httpx

from modgate.services.discord_client import DiscordNotifier

logger = logging.getLogger(__name__)


class AuditLog:
    def __init__(
        self,
        notifier: DiscordNotifier | None,
        *,
        channel_id: int = 0,
        webhook_url: str = "",
        timeout: float = 5.0,
    ) -> None:
        self._notifier = notifier
        self._channel_id = channel_id
        self._webhook_url = webhook_url
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool((self._channel_id and self._notifier) or self._webhook_url)

    async def record(
        self,
        title: str,
        description: str,
        color: int,
        fields: Iterable[tuple[str, str, bool]] = (),
        footer: str | None = None,
    ) -> bool:
        fields = list(fields)
        if self._channel_id and self._notifier is not None:
            try:
                return await asyncio.wait_for(
                    self._notifier.send_channel_message(
                        self._channel_id, title, description, color, fields, footer=footer
                    ),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Log channel %s timed out", self._channel_id)
                return False
        if self._webhook_url:
            return await self._post_webhook(title, description, color, fields, footer)
        logger.debug("Audit log disabled, dropping %r", title)
        return False

    async def _post_webhook(
        self,
        title: str,
        description: str,
        color: int,
        fields: list[tuple[str, str, bool]],
        footer: str | None = None,
    ) -> bool:
        embed = {
            "title": title,
            "description": description,
            "color": color,
            "fields": [{"name": n, "value": v, "inline": i} for n, v, i in fields],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if footer:
            embed["footer"] = {"text": footer}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._webhook_url, json={"embeds": [embed]})
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Webhook error: %s", exc)
            return False
        return True
