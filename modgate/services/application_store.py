"""Record store for moderator applications (Supabase Postgres via SQLAlchemy)."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from modgate.models.tables import STATUS_PENDING, Application, utcnow

logger = logging.getLogger(__name__)


class ApplicationStore:
    """Select/insert/update access to the ``applications`` table.

    Every call opens its own short session so the store can be shared by
    concurrent requests.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, application_id: int) -> Application | None:
        async with self._session_factory() as session:
            return await session.get(Application, application_id)

    async def insert(self, fields: dict[str, Any]) -> Application:
        now = utcnow()
        app = Application(
            **{"status": STATUS_PENDING, **fields},
            created_at=now,
            updated_at=now,
        )
        async with self._session_factory() as session:
            session.add(app)
            await session.commit()
            await session.refresh(app)
        return app

    async def update(self, application_id: int, fields: dict[str, Any]) -> Application | None:
        """Apply ``fields`` unconditionally. Returns None when the row does not exist."""
        return await self._update_where(application_id, fields, expected_status=None)

    async def transition(
        self,
        application_id: int,
        fields: dict[str, Any],
        expected_status: str = STATUS_PENDING,
    ) -> Application | None:
        """Compare-and-swap update: only applies while status == ``expected_status``.

        Returns None when another writer moved the row on first.
        """
        return await self._update_where(application_id, fields, expected_status=expected_status)

    async def _update_where(
        self,
        application_id: int,
        fields: dict[str, Any],
        expected_status: str | None,
    ) -> Application | None:
        values = {**fields, "updated_at": utcnow()}
        stmt = update(Application).where(Application.id == application_id)
        if expected_status is not None:
            stmt = stmt.where(Application.status == expected_status)
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            matched = result.rowcount
            await session.commit()
        if matched == 0:
            return None
        return await self.get(application_id)

    async def list_applications(self, status: str | None = None) -> list[Application]:
        """All applications, newest first, optionally filtered by status."""
        stmt = select(Application).order_by(Application.created_at.desc(), Application.id.desc())
        if status is not None:
            stmt = stmt.where(Application.status == status)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Database ping failed: %s", exc)
            return False
        return True
