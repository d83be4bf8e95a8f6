"""Balance Transaction Repository Interface

Defines the contract for balance transaction persistence.
Transactions are append-only: there is no update or delete.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.balance_transaction import BalanceTransaction, BalanceTransactionType


class BalanceTransactionRepository(ABC):

    @abstractmethod
    async def create(self, transaction: BalanceTransaction) -> BalanceTransaction:
        """
        Append a balance transaction

        Args:
            transaction: BalanceTransaction entity to persist

        Returns:
            Created BalanceTransaction with generated ID
        """
        pass

    @abstractmethod
    async def get_by_balance_id(
        self,
        balance_id: int,
        limit: int = 20,
        offset: int = 0,
        transaction_type: Optional[BalanceTransactionType] = None,
    ) -> Tuple[List[BalanceTransaction], int]:
        """
        Retrieve transactions of a balance, newest first

        Returns:
            Tuple of (transactions page, total count)
        """
        pass
