"""Merchant Balance Repository Interface

Defines the contract for merchant balance persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional
from src.domain.merchant_balance import MerchantBalance


class MerchantBalanceRepository(ABC):
    """
    Repository interface for MerchantBalance persistence

    Methods use pessimistic locking (SELECT FOR UPDATE) to ensure
    consistency during concurrent balance operations.
    """

    @abstractmethod
    async def get_by_merchant_id(self, merchant_id: int, for_update: bool = False) -> Optional[MerchantBalance]:
        """
        Retrieve balance by merchant ID

        Args:
            merchant_id: Merchant identifier
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            MerchantBalance if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, balance: MerchantBalance) -> MerchantBalance:
        """
        Create a new merchant balance

        Args:
            balance: MerchantBalance entity to persist

        Returns:
            Created MerchantBalance with generated ID
        """
        pass

    @abstractmethod
    async def update_balance(
        self, balance_id: int, new_balance: Decimal, topped_up_at: Optional[datetime] = None
    ) -> None:
        """
        Update balance amount

        Args:
            balance_id: Balance ID
            new_balance: New balance value
            topped_up_at: Set last_topup_at when the mutation is a credit
        """
        pass
