"""Voucher Redemption Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.voucher_redemption import VoucherRedemption


class DuplicateRedemptionError(Exception):
    """The (voucher_id, merchant_id) pair already has a redemption row"""


class VoucherRedemptionRepository(ABC):
    """
    Repository interface for VoucherRedemption persistence

    Redemptions are append-only. The (voucher_id, merchant_id) pair is
    unique; only the auto-switch fields may be patched afterwards.
    """

    @abstractmethod
    async def exists_for(self, voucher_id: int, merchant_id: int) -> bool:
        """Whether the merchant already redeemed the voucher"""
        pass

    @abstractmethod
    async def create(self, redemption: VoucherRedemption) -> VoucherRedemption:
        """
        Create a new redemption row

        Raises:
            DuplicateRedemptionError: If the (voucher_id, merchant_id) pair already exists
        """
        pass

    @abstractmethod
    async def mark_auto_switch(
        self,
        redemption_id: int,
        previous_sub_type: Optional[str],
        new_sub_type: Optional[str],
    ) -> None:
        """Record that the redemption triggered a subscription auto-switch"""
        pass
