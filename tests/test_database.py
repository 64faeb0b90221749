from unittest.mock import AsyncMock, MagicMock

import pytest

from scorecard.core import database


def _session_factory(in_transaction: bool):
    session = MagicMock()
    session.in_transaction.return_value = in_transaction
    session.rollback = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory, session


class TestGetDb:
    """The request session never leaves a transaction, or its locks, open."""

    @pytest.mark.asyncio
    async def test_open_transaction_rolled_back_on_exit(self, monkeypatch):
        factory, session = _session_factory(in_transaction=True)
        monkeypatch.setattr(database, "AsyncSessionLocal", factory)

        gen = database.get_db()
        assert await gen.__anext__() is session
        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()

        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_committed_session_left_alone(self, monkeypatch):
        factory, session = _session_factory(in_transaction=False)
        monkeypatch.setattr(database, "AsyncSessionLocal", factory)

        gen = database.get_db()
        await gen.__anext__()
        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()

        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollback_when_request_fails(self, monkeypatch):
        factory, session = _session_factory(in_transaction=True)
        monkeypatch.setattr(database, "AsyncSessionLocal", factory)

        gen = database.get_db()
        await gen.__anext__()
        with pytest.raises(RuntimeError):
            await gen.athrow(RuntimeError("handler failed"))

        session.rollback.assert_awaited_once()


def test_pool_sized_from_settings():
    assert database.engine.sync_engine.pool.size() == database.settings.DB_POOL_SIZE
