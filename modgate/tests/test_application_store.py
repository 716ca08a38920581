"""Tests for ApplicationStore against an in-memory database."""

import pytest
from sqlalchemy.exc import IntegrityError

from modgate.models.tables import STATUS_ACCEPTED, STATUS_PENDING, STATUS_REJECTED


class TestInsertAndGet:

    @pytest.mark.asyncio
    async def test_insert_defaults_to_pending(self, store, submit):
        app = await submit()

        assert app.id is not None
        assert app.status == STATUS_PENDING
        assert app.reviewed_by is None
        assert app.created_at is not None
        assert (await store.get(app.id)).discord_username == "Alice"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        assert await store.get(12345) is None

    @pytest.mark.asyncio
    async def test_blank_identity_is_rejected(self, submit):
        with pytest.raises(IntegrityError):
            await submit(discord_username="")

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, submit):
        with pytest.raises(IntegrityError):
            await submit(status="archived")


class TestTransition:

    @pytest.mark.asyncio
    async def test_applies_while_pending(self, store, submit):
        app = await submit()

        updated = await store.transition(app.id, {"status": STATUS_ACCEPTED, "reviewed_by": "AdminBob"})

        assert updated is not None
        assert updated.status == STATUS_ACCEPTED
        assert updated.reviewed_by == "AdminBob"

    @pytest.mark.asyncio
    async def test_skips_when_status_moved_on(self, store, submit):
        app = await submit()
        await store.transition(app.id, {"status": STATUS_REJECTED, "reviewed_by": "AdminBob"})

        result = await store.transition(app.id, {"status": STATUS_ACCEPTED, "reviewed_by": "AdminCarol"})

        assert result is None
        current = await store.get(app.id)
        assert current.status == STATUS_REJECTED
        assert current.reviewed_by == "AdminBob"

    @pytest.mark.asyncio
    async def test_missing_row_returns_none(self, store):
        assert await store.transition(777, {"status": STATUS_ACCEPTED}) is None

    @pytest.mark.asyncio
    async def test_update_is_unconditional(self, store, submit):
        app = await submit()
        await store.transition(app.id, {"status": STATUS_ACCEPTED})

        updated = await store.update(app.id, {"review_notes": "Role granted by hand"})

        assert updated.status == STATUS_ACCEPTED
        assert updated.review_notes == "Role granted by hand"


class TestListing:

    @pytest.mark.asyncio
    async def test_newest_first_and_filtered(self, store, submit):
        first = await submit(discord_id="100000000001", discord_username="Alice")
        second = await submit(discord_id="100000000002", discord_username="Bruno")
        await store.transition(first.id, {"status": STATUS_ACCEPTED})

        apps = await store.list_applications()
        pending = await store.list_applications(status=STATUS_PENDING)

        assert [a.id for a in apps] == [second.id, first.id]
        assert [a.id for a in pending] == [second.id]

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True
