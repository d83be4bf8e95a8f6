"""Voucher Code Lock Interface

Keyed mutual exclusion scoped to a normalized voucher code.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class VoucherCodeLock(ABC):
    """
    Serializes redemptions of the same voucher code

    The lock must be held for the whole redemption unit of work (until
    commit or rollback), so concurrent redemptions of one code observe each
    other's usage increments. Different codes never block each other.
    """

    @abstractmethod
    def hold(self, code: str) -> AsyncContextManager:
        """
        Acquire the lock for a code for the duration of the block

        Args:
            code: Normalized voucher code
        """
        pass
