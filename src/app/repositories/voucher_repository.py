"""Voucher Repository Interface

Defines the contract for voucher persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.voucher import Voucher


class VoucherRepository(ABC):
    """
    Repository interface for Voucher persistence

    Redemption reads the voucher with SELECT FOR UPDATE so the usage
    counter is checked and incremented under the same row lock.
    """

    @abstractmethod
    async def get_by_code(self, code: str, for_update: bool = False) -> Optional[Voucher]:
        """
        Retrieve voucher by its normalized code

        Args:
            code: Normalized (upper-case, trimmed) voucher code
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Voucher if found, None otherwise
        """
        pass

    @abstractmethod
    async def increment_usage(self, voucher_id: int) -> None:
        """
        Increment current_usage by one

        Args:
            voucher_id: Voucher ID
        """
        pass
