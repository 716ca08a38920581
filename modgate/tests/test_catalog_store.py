"""Tests for CatalogStore against an in-memory database."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from modgate.models.tables import ModRole, QuizQuestion
from modgate.services.catalog_store import CatalogStore


@pytest.fixture
def quiz_store(session_factory) -> CatalogStore:
    return CatalogStore(session_factory, QuizQuestion, order_by=QuizQuestion.question_number)


@pytest.fixture
def role_store(session_factory) -> CatalogStore:
    return CatalogStore(session_factory, ModRole, order_by=ModRole.id)


class TestCatalogStore:

    @pytest.mark.asyncio
    async def test_lists_in_configured_order(self, quiz_store):
        await quiz_store.create({"question_number": 2, "title": "Pro/Semi-Pro Application"})
        await quiz_store.create({"question_number": 1, "title": "General Roster Inquiry"})

        rows = await quiz_store.list_rows()

        assert [r.question_number for r in rows] == [1, 2]
        assert rows[0].key_elements == []

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_columns(self, quiz_store):
        row = await quiz_store.create({
            "question_number": 1,
            "title": "General Roster Inquiry",
            "avoid": ["immediate approval"],
        })

        updated = await quiz_store.update(row.id, {"title": "Roster ticket"})

        assert updated.title == "Roster ticket"
        assert updated.avoid == ["immediate approval"]

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, role_store):
        assert await role_store.update(404, {"role_name": "Trial Mod"}) is None

    @pytest.mark.asyncio
    async def test_delete(self, role_store):
        row = await role_store.create({"role_id": "1351362266246545479", "role_name": "Trial Mod"})

        assert await role_store.delete(row.id) is True
        assert await role_store.delete(row.id) is False
        assert await role_store.list_rows() == []

    @pytest.mark.asyncio
    async def test_missing_table_raises(self, role_store, session_factory):
        async with session_factory() as session:
            await session.execute(text("DROP TABLE mod_roles"))
            await session.commit()

        with pytest.raises(OperationalError):
            await role_store.list_rows()
