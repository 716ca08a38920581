"""CRUD access to the dashboard-edited catalog tables.

``test_questions``, ``quiz_questions`` and ``mod_roles`` share one store
shape: list in a fixed order, create, partial update and delete by id.
Deployments that never ran the catalog migration still get a usable list,
so callers fall back to ``DEFAULT_TEST_QUESTIONS`` / ``DEFAULT_QUIZ_QUESTIONS``
when listing raises.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import InstrumentedAttribute

from modgate.models.database import Base

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=Base)


DEFAULT_TEST_QUESTIONS: list[dict[str, Any]] = [
    {"id": 1, "user_message": "hey i wanna join void esports, what do i need to do?", "username": "FortnitePlayer23",
     "avatar_color": "#5865f2", "keywords": ["age", "roster", "requirement"], "required_matches": 2,
     "explanation": "Ask for age and direct to #how-to-join-roster"},
    {"id": 2, "user_message": "i want to join as a pro player, i have earnings", "username": "CompPlayer99",
     "avatar_color": "#ed4245", "keywords": ["tracker", "earnings", "ping"], "required_matches": 2,
     "explanation": "Ask for tracker and ping @trapped"},
    {"id": 3, "user_message": "looking to join creative roster, i have clips", "username": "CreativeBuilder",
     "avatar_color": "#3ba55c", "keywords": ["clip", "freebuilding", "ping"], "required_matches": 2,
     "explanation": "Ask for at least 2 clips"},
    {"id": 4, "user_message": "can i join academy? i have 5k PR", "username": "AcademyGrinder",
     "avatar_color": "#f59e0b", "keywords": ["tracker", "username", "team.void"], "required_matches": 2,
     "explanation": "Ask for tracker and username change"},
    {"id": 5, "user_message": "im 14 is that old enough?", "username": "YoungPlayer14",
     "avatar_color": "#9146ff", "keywords": ["chief", "trapped", "ping"], "required_matches": 2,
     "explanation": "Ping senior staff for verification"},
    {"id": 6, "user_message": "i wanna be a void grinder, what's required?", "username": "GrinderAccount",
     "avatar_color": "#1da1f2", "keywords": ["username", "team.void", "proof"], "required_matches": 2,
     "explanation": "Ask for username change and proof"},
    {"id": 7, "user_message": "this server is trash, gonna report it all", "username": "ToxicUser123",
     "avatar_color": "#ff0000", "keywords": ["chief", "trapped", "ban"], "required_matches": 2,
     "explanation": "Ping senior staff immediately"},
    {"id": 8, "user_message": "i make youtube videos, can i join content team?", "username": "ContentCreatorYT",
     "avatar_color": "#ff0000", "keywords": ["social", "links", "contentdep"], "required_matches": 2,
     "explanation": "Ask for social links and ping contentdep"},
]

DEFAULT_QUIZ_QUESTIONS: list[dict[str, Any]] = [
    {"id": 1, "question_number": 1, "title": "General Roster Inquiry",
     "description": "A user creates a roster ticket asking how to join",
     "optimal_response": "Hello! What's your age and how may I assist you today?",
     "key_elements": ["age inquiry", "greeting", "direction"], "avoid": ["immediate approval"]},
    {"id": 2, "question_number": 2, "title": "Pro/Semi-Pro Application",
     "description": "User applies for Pro or Semi-Pro",
     "optimal_response": "Request Fortnite tracker and earnings verification",
     "key_elements": ["tracker", "earnings", "ping senior"], "avoid": ["approving without verification"]},
]


class CatalogStore(Generic[RowT]):
    """List/create/update/delete for one catalog table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: type[RowT],
        order_by: InstrumentedAttribute,
    ) -> None:
        self._session_factory = session_factory
        self._model = model
        self._order_by = order_by

    @property
    def table_name(self) -> str:
        return self._model.__tablename__

    async def list_rows(self) -> list[RowT]:
        stmt = select(self._model).order_by(self._order_by, self._model.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def create(self, fields: dict[str, Any]) -> RowT:
        row = self._model(**fields)
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        logger.info("Created %s row %s", self.table_name, row.id)
        return row

    async def update(self, row_id: int, fields: dict[str, Any]) -> RowT | None:
        """Apply ``fields`` to one row. Returns None when the row does not exist."""
        async with self._session_factory() as session:
            row = await session.get(self._model, row_id)
            if row is None:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            await session.commit()
            await session.refresh(row)
        return row

    async def delete(self, row_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(self._model).where(self._model.id == row_id))
            await session.commit()
        if result.rowcount:
            logger.info("Deleted %s row %s", self.table_name, row_id)
        return bool(result.rowcount)
