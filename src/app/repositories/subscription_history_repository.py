"""Subscription History Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.subscription_history import SubscriptionHistory, SubscriptionEventType


class SubscriptionHistoryRepository(ABC):

    @abstractmethod
    async def create(self, entry: SubscriptionHistory) -> SubscriptionHistory:
        pass

    @abstractmethod
    async def get_by_merchant_id(
        self,
        merchant_id: int,
        limit: int = 20,
        offset: int = 0,
        event_type: Optional[SubscriptionEventType] = None,
    ) -> Tuple[List[SubscriptionHistory], int]:
        """
        Retrieve history rows of a merchant, newest first

        Returns:
            Tuple of (history page, total count)
        """
        pass
