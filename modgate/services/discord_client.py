"""Discord bot session used for role grants, DMs and log-channel messages.

The bot only talks to Discord's HTTP API: ``login()`` is enough to fetch
guilds, members and roles, add roles and open DM channels, so no gateway
connection is held. Connection state is owned here; callers go through
``ensure_ready()`` and never inspect the client directly.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

import discord

from modgate.exceptions import (
    BotUnavailableError,
    GuildNotFoundError,
    MemberNotFoundError,
    MissingPermissionError,
    RoleHierarchyError,
    RoleNotFoundError,
)
from modgate.models.tables import STATUS_ACCEPTED

logger = logging.getLogger(__name__)

# Discord JSON error code for "Cannot send messages to this user".
DMS_DISABLED_CODE = 50007

# Embed colours used across the service.
COLOR_SUCCESS = 0x3BA55C
COLOR_DANGER = 0xED4245

# How far back the log channel is searched for a submission announcement.
SUBMISSION_SCAN_LIMIT = 100


def _default_client_factory() -> discord.Client:
    intents = discord.Intents.default()
    intents.members = True
    return discord.Client(intents=intents)


def submission_footer(application_id: int) -> str:
    return f"Application #{application_id}"


def build_embed(
    title: str,
    description: str,
    color: int,
    *,
    footer: str | None = None,
    fields: Iterable[tuple[str, str, bool]] = (),
) -> discord.Embed:
    embed = discord.Embed(
        title=title,
        description=description,
        color=discord.Colour(color),
        timestamp=datetime.now(timezone.utc),
    )
    for name, value, inline in fields:
        embed.add_field(name=name, value=value, inline=inline)
    if footer:
        embed.set_footer(text=footer)
    return embed


class DiscordNotifier:
    """Lazily connected Discord bot session with reconnect-on-demand."""

    def __init__(
        self,
        token: str,
        *,
        default_footer: str | None = None,
        client_factory: Callable[[], Any] = _default_client_factory,
    ) -> None:
        self._token = token
        self._default_footer = default_footer
        self._client_factory = client_factory
        self._client: Any | None = None
        self._lock = asyncio.Lock()
        self._last_error: str | None = None

    @property
    def configured(self) -> bool:
        return bool(self._token)

    def is_connected(self) -> bool:
        client = self._client
        return client is not None and not client.is_closed() and client.user is not None

    async def reconnect(self) -> bool:
        """Log the bot in. Safe to call concurrently and repeatedly."""
        async with self._lock:
            if self.is_connected():
                return True
            if not self._token:
                logger.warning("DISCORD_BOT_TOKEN not set, bot features disabled")
                return False

            if self._client is not None:
                await self._close_client()
            client = self._client_factory()
            logger.info("Logging in Discord bot...")
            try:
                await client.login(self._token)
            except discord.LoginFailure as exc:
                self._last_error = "Invalid bot token"
                logger.error("Bot login failed: %s", exc)
                await self._discard(client)
                return False
            except (discord.HTTPException, OSError) as exc:
                self._last_error = str(exc)
                logger.error("Bot login failed: %s", exc)
                await self._discard(client)
                return False

            self._client = client
            self._last_error = None
            logger.info("Bot logged in as %s", client.user)
            return True

    async def ensure_ready(self) -> bool:
        if self.is_connected():
            return True
        logger.info("Bot not ready, attempting to reconnect...")
        return await self.reconnect()

    async def close(self) -> None:
        async with self._lock:
            await self._close_client()

    async def _close_client(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await self._discard(client)

    @staticmethod
    async def _discard(client: Any) -> None:
        """Close a client and its HTTP session, logging instead of raising."""
        if not client.is_closed():
            try:
                await client.close()
            except (discord.HTTPException, OSError) as exc:
                logger.warning("Error closing Discord client: %s", exc)

    async def _require_client(self) -> Any:
        if not await self.ensure_ready():
            raise BotUnavailableError()
        return self._client

    def describe(self) -> dict:
        """Connection summary for the health endpoint."""
        if not self.configured:
            return {"connected": False, "detail": "DISCORD_BOT_TOKEN not set"}
        if self.is_connected():
            return {"connected": True, "detail": f"connected as {self._client.user}"}
        return {"connected": False, "detail": self._last_error or "not connected"}

    # ── Resolution ──

    async def resolve_guild(self, guild_id: int) -> discord.Guild:
        client = await self._require_client()
        try:
            return await client.fetch_guild(guild_id)
        except discord.HTTPException as exc:
            logger.error("Could not fetch guild %s: %s", guild_id, exc)
            raise GuildNotFoundError() from exc

    async def resolve_member(self, guild_id: int, discord_id: str | int) -> discord.Member:
        guild = await self.resolve_guild(guild_id)
        try:
            member = await guild.fetch_member(int(discord_id))
        except (ValueError, discord.HTTPException) as exc:
            logger.warning("Could not fetch member %s: %s", discord_id, exc)
            raise MemberNotFoundError() from exc
        logger.info("Found member %s (%s)", member, member.id)
        return member

    async def resolve_role(self, guild_id: int, role_id: int) -> discord.Role:
        guild = await self.resolve_guild(guild_id)
        role = guild.get_role(role_id)
        if role is None:
            try:
                roles = await guild.fetch_roles()
            except discord.HTTPException as exc:
                logger.error("Error fetching roles for guild %s: %s", guild_id, exc)
                raise RoleNotFoundError("Could not fetch role.") from exc
            role = next((r for r in roles if r.id == role_id), None)
        if role is None:
            logger.warning("Role %s not found in guild %s", role_id, guild_id)
            raise RoleNotFoundError()
        return role

    # ── Actions ──

    async def grant_role(self, member: discord.Member, role: discord.Role) -> bool:
        """Add ``role`` to ``member``.

        Returns False without calling Discord when the member already holds
        the role. Raises MissingPermissionError or RoleHierarchyError when
        the bot cannot manage the role.
        """
        client = await self._require_client()
        try:
            bot_member = await member.guild.fetch_member(client.user.id)
        except discord.HTTPException as exc:
            raise MissingPermissionError("Bot is not a member of the guild.") from exc

        if not bot_member.guild_permissions.manage_roles:
            logger.warning("Bot lacks ManageRoles permission")
            raise MissingPermissionError()
        if role.position >= bot_member.top_role.position:
            logger.warning(
                "Role hierarchy issue: %s (pos %s) is not below bot's top role %s (pos %s)",
                role.name, role.position, bot_member.top_role.name, bot_member.top_role.position,
            )
            raise RoleHierarchyError()
        if member.get_role(role.id) is not None:
            logger.info("Member %s already has role %s", member, role.name)
            return False

        try:
            await member.add_roles(role, reason="Moderator application accepted")
        except discord.Forbidden as exc:
            raise MissingPermissionError(f"Failed to assign role: {exc.text}") from exc
        logger.info("Assigned role %s to %s", role.name, member)
        return True

    async def send_direct_message(
        self,
        discord_id: str | int,
        title: str,
        body: str,
        color: int,
        footer: str | None = None,
    ) -> bool:
        """Send an embed DM. Returns False when it could not be delivered."""
        if not await self.ensure_ready():
            logger.warning("Bot not ready for DM")
            return False
        try:
            user = await self._client.fetch_user(int(discord_id))
        except (ValueError, discord.HTTPException) as exc:
            logger.warning("Could not fetch user %s: %s", discord_id, exc)
            return False

        embed = build_embed(title, body, color, footer=footer or self._default_footer)
        try:
            await user.send(embed=embed)
        except discord.Forbidden as exc:
            if exc.code == DMS_DISABLED_CODE:
                logger.info("User %s has DMs disabled", user)
            else:
                logger.warning("DM to %s forbidden: %s", user, exc)
            return False
        except discord.HTTPException as exc:
            logger.error("Failed to send DM to %s: %s", user, exc)
            return False
        logger.info("DM sent to %s (%s)", user, user.id)
        return True

    async def send_channel_message(
        self,
        channel_id: int,
        title: str,
        description: str,
        color: int,
        fields: Iterable[tuple[str, str, bool]] = (),
        footer: str | None = None,
    ) -> bool:
        if not await self.ensure_ready():
            logger.warning("Bot not ready, skipping log to channel")
            return False
        try:
            channel = await self._client.fetch_channel(channel_id)
            await channel.send(embed=build_embed(title, description, color, footer=footer, fields=fields))
        except discord.HTTPException as exc:
            logger.warning("Could not log to channel %s: %s", channel_id, exc)
            return False
        return True

    async def update_submission_message(
        self,
        channel_id: int,
        application_id: int,
        status: str,
        reviewer: str,
        reason: str | None = None,
    ) -> bool:
        """Mark the submission announcement for ``application_id`` as decided.

        Scans the most recent bot messages in the log channel for the embed
        whose footer is ``submission_footer(application_id)``, recolours it
        and adds the reviewer (and reason on rejection). Returns False when
        the message cannot be found or edited.
        """
        if not await self.ensure_ready():
            logger.warning("Bot not ready, cannot update submission message")
            return False
        footer = submission_footer(application_id)
        accepted = status == STATUS_ACCEPTED
        try:
            channel = await self._client.fetch_channel(channel_id)
            async for message in channel.history(limit=SUBMISSION_SCAN_LIMIT):
                if message.author.id != self._client.user.id or not message.embeds:
                    continue
                embed = message.embeds[0]
                if embed.footer.text != footer:
                    continue

                updated = embed.copy()
                updated.colour = discord.Colour(COLOR_SUCCESS if accepted else COLOR_DANGER)
                if updated.description:
                    updated.description = updated.description.replace(
                        "**Status:** Pending Review", f"**Status:** {status.capitalize()}"
                    )
                kept = [
                    f for f in embed.fields
                    if not any(word in f.name for word in ("Accepted", "Rejected", "Reason"))
                ]
                updated.clear_fields()
                for f in kept:
                    updated.add_field(name=f.name, value=f.value, inline=f.inline)
                updated.add_field(
                    name="✅ Accepted By" if accepted else "❌ Rejected By", value=reviewer, inline=True
                )
                if not accepted and reason:
                    updated.add_field(name="📝 Reason", value=reason[:100], inline=False)

                await message.edit(embed=updated)
                logger.info("Updated submission message %s for application %s", message.id, application_id)
                return True
        except discord.HTTPException as exc:
            logger.warning("Could not update submission message for %s: %s", application_id, exc)
            return False

        logger.warning(
            "No submission message for application %s in last %d messages",
            application_id, SUBMISSION_SCAN_LIMIT,
        )
        return False
