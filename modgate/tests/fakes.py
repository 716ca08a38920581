"""In-process doubles for the Discord side of the review workflow."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

from modgate.exceptions import MemberNotFoundError, RoleNotFoundError

ADMIN_ID = "111111111111111111"
GUILD_ID = 1351362266246680626
ROLE_ID = 1474079570641686000
LOG_CHANNEL_ID = 1351362268000000000


class FakeNotifier:
    """In-process stand-in for DiscordNotifier."""

    def __init__(self) -> None:
        self.connected = True
        self.can_reconnect = True
        self.reconnects = 0
        self.role: SimpleNamespace | None = SimpleNamespace(id=ROLE_ID, name="Moderator")
        self.member_roles: dict[str, set[int]] = {}
        self.missing_members: set[str] = set()
        self.grant_error: Exception | None = None
        self.grant_delay: float = 0.0
        self.dm_deliverable = True
        self.granted: list[str] = []
        self.dms: list[tuple[str, str, str]] = []
        self.submission_updates: list[tuple] = []
        self.update_error: Exception | None = None

    def is_connected(self) -> bool:
        return self.connected

    async def reconnect(self) -> bool:
        self.reconnects += 1
        if self.can_reconnect:
            self.connected = True
        return self.connected

    async def ensure_ready(self) -> bool:
        if self.connected:
            return True
        return await self.reconnect()

    async def resolve_member(self, guild_id: int, discord_id: str) -> SimpleNamespace:
        if discord_id in self.missing_members:
            raise MemberNotFoundError()
        roles = self.member_roles.setdefault(discord_id, set())
        return SimpleNamespace(id=int(discord_id), discord_id=discord_id, roles=roles)

    async def resolve_role(self, guild_id: int, role_id: int) -> SimpleNamespace:
        if self.role is None:
            raise RoleNotFoundError()
        return self.role

    async def grant_role(self, member: SimpleNamespace, role: SimpleNamespace) -> bool:
        if self.grant_delay:
            await asyncio.sleep(self.grant_delay)
        if self.grant_error is not None:
            raise self.grant_error
        if role.id in member.roles:
            return False
        member.roles.add(role.id)
        self.granted.append(member.discord_id)
        return True

    async def send_direct_message(self, discord_id, title, body, color, footer=None) -> bool:
        self.dms.append((discord_id, title, body))
        return self.dm_deliverable

    async def update_submission_message(self, channel_id, application_id, status, reviewer, reason=None) -> bool:
        if self.update_error is not None:
            raise self.update_error
        self.submission_updates.append((channel_id, application_id, status, reviewer, reason))
        return True


class FakeAuditLog:
    def __init__(self) -> None:
        self.records: list[tuple[str, str, str | None]] = []
        self.error: Exception | None = None

    async def record(self, title, description, color, fields=(), footer=None) -> bool:
        if self.error is not None:
            raise self.error
        self.records.append((title, description, footer))
        return True
