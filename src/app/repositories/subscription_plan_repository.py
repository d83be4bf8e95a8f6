"""Subscription Plan Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.subscription_plan import SubscriptionPlan


class SubscriptionPlanRepository(ABC):

    @abstractmethod
    async def get_active_plan(self) -> Optional[SubscriptionPlan]:
        """First active plan by ID, None if the catalog is empty"""
        pass
