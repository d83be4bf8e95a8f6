"""Unit of Work Interface

Transaction boundary shared by the repositories of one use case.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class UnitOfWork(ABC):
    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

    @abstractmethod
    def savepoint(self) -> AsyncContextManager:
        """
        Open a nested transaction (SAVEPOINT)

        A failure inside the block rolls back only the work done in the
        block and re-raises; the enclosing unit of work stays usable.
        Used for best-effort writes such as audit rows.
        """
        pass
