import pytest
from sqlalchemy.exc import OperationalError

from groupchat.services.retry import with_read_retry


class FakeSession:
    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


def flaky(failures):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        return "rows"

    return operation, calls


class TestReadRetry:

    @pytest.mark.asyncio
    async def test_success_without_retry(self):
        db = FakeSession()
        operation, calls = flaky(0)
        assert await with_read_retry(db, operation, retries=2) == "rows"
        assert calls["count"] == 1
        assert db.rollbacks == 0

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        db = FakeSession()
        operation, calls = flaky(2)
        assert await with_read_retry(db, operation, retries=2) == "rows"
        assert calls["count"] == 3
        assert db.rollbacks == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self):
        db = FakeSession()
        operation, calls = flaky(5)
        with pytest.raises(OperationalError):
            await with_read_retry(db, operation, retries=1)
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        db = FakeSession()

        async def broken():
            raise ValueError("bug")

        with pytest.raises(ValueError):
            await with_read_retry(db, broken, retries=3)
        assert db.rollbacks == 0
