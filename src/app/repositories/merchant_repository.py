"""Merchant Repository Interface

Read access to merchants plus the store-open flags billing may flip.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.merchant import Merchant


class MerchantRepository(ABC):

    @abstractmethod
    async def get_by_id(self, merchant_id: int) -> Optional[Merchant]:
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Merchant]:
        pass

    @abstractmethod
    async def set_store_open(self, merchant_id: int, is_open: bool, is_manual_override: bool) -> None:
        """
        Update the store visibility flags of a merchant

        Args:
            merchant_id: Merchant ID
            is_open: New open flag
            is_manual_override: New manual override flag
        """
        pass
