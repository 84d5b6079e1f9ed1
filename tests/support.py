"""Test doubles and helpers shared by the test modules."""
import asyncio
from collections import Counter

from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import create_access_token
from app.repositories.transaction_store import TransactionStore


class FakeRedis:
    """
    In-memory stand-in for ``redis.asyncio.Redis`` (decode_responses=True).

    ``fail=True`` makes every command raise a connection error;
    ``delay`` makes every command sleep first, to trip the cache timeout.
    """

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.calls: Counter = Counter()
        self.fail = fail
        self.delay = delay

    async def _enter(self, command: str) -> None:
        self.calls[command] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RedisConnectionError("Error 111 connecting to localhost:6380. Connection refused.")

    async def ping(self) -> bool:
        await self._enter("ping")
        return True

    async def get(self, key: str) -> str | None:
        await self._enter("get")
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        await self._enter("set")
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        await self._enter("delete")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def aclose(self) -> None:
        self.calls["aclose"] += 1


class CountingStore(TransactionStore):
    """TransactionStore that records how often the owner query runs."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db)
        self.find_calls = 0

    async def find_by_owner(self, owner: str):
        self.find_calls += 1
        return await super().find_by_owner(owner)


def auth_headers(owner: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner)}"}


def break_session(session: AsyncSession) -> AsyncSession:
    """Make *session* fail every query and commit the way a lost database does."""

    async def _down(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    session.execute = _down
    session.commit = _down
    return session
