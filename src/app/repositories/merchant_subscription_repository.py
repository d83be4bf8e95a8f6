"""Merchant Subscription Repository Interface

Defines the contract for merchant subscription persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.merchant_subscription import MerchantSubscription


class DuplicateSubscriptionError(Exception):
    """The merchant already has a subscription row"""


class MerchantSubscriptionRepository(ABC):
    """
    Repository interface for MerchantSubscription persistence

    One row per merchant. Mutations happen on a row read with
    for_update=True inside the owning unit of work.
    """

    @abstractmethod
    async def get_by_merchant_id(
        self, merchant_id: int, for_update: bool = False
    ) -> Optional[MerchantSubscription]:
        """
        Retrieve subscription by merchant ID

        Args:
            merchant_id: Merchant identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            MerchantSubscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, subscription: MerchantSubscription) -> MerchantSubscription:
        """
        Create a new subscription

        Raises:
            DuplicateSubscriptionError: If the merchant already has a subscription
        """
        pass

    @abstractmethod
    async def update(self, subscription: MerchantSubscription) -> MerchantSubscription:
        """Persist changes made to a subscription entity"""
        pass
