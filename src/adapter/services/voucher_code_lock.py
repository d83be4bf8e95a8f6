"""Voucher Code Lock Implementations

- PostgresAdvisoryCodeLock: pg_advisory_xact_lock on the hashed code,
  released by PostgreSQL at commit or rollback of the session transaction.
- InProcessCodeLock: keyed asyncio locks for databases without advisory
  locks (SQLite). Only serializes redemptions inside one process.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict
from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.voucher_code_lock import VoucherCodeLock

logger = logging.getLogger(__name__)


class PostgresAdvisoryCodeLock(VoucherCodeLock):

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def hold(self, code: str):
        # Transaction-scoped: the unit of work's commit/rollback releases it
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:code))"), {"code": code}
        )
        yield


class KeyedLockRegistry:
    """
    One asyncio.Lock per key, dropped again once nobody holds or waits for it
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class InProcessCodeLock(VoucherCodeLock):

    def __init__(self, registry: KeyedLockRegistry):
        self.registry = registry

    @asynccontextmanager
    async def hold(self, code: str):
        async with self.registry.acquire(code):
            yield


def create_voucher_code_lock(session: AsyncSession, registry: KeyedLockRegistry) -> VoucherCodeLock:
    """
    Pick the lock implementation matching the session's database

    Args:
        session: Session of the redemption unit of work
        registry: Process-wide registry used when advisory locks are unavailable
    """
    bind = session.bind
    dialect = bind.dialect.name if bind is not None else ""
    if dialect == "postgresql":
        return PostgresAdvisoryCodeLock(session)
    return InProcessCodeLock(registry)
