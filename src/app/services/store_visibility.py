"""Store Visibility Controller

Opens or closes a merchant's store as a side effect of billing transitions.
Toggles are best-effort: a failure is logged and reported as "not toggled",
never propagated to the caller.
"""

import logging
from src.app.repositories.merchant_repository import MerchantRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.merchant import Merchant

logger = logging.getLogger(__name__)


class StoreVisibilityController:
    """
    Flips merchants.is_open / is_manual_override

    - reopen: only when the store is closed; sets is_open and clears the
      manual override so opening hours apply again
    - close: only when the store is open; clears is_open and sets the
      manual override so opening hours cannot reopen it
    Both return True when the flag was actually changed.
    """

    def __init__(self, uow: UnitOfWork, merchant_repo: MerchantRepository):
        self.uow = uow
        self.merchant_repo = merchant_repo

    async def reopen(self, merchant: Merchant) -> bool:
        if merchant.is_open:
            return False
        return await self._toggle(merchant, is_open=True, is_manual_override=False)

    async def close(self, merchant: Merchant) -> bool:
        if not merchant.is_open:
            return False
        return await self._toggle(merchant, is_open=False, is_manual_override=True)

    async def _toggle(self, merchant: Merchant, is_open: bool, is_manual_override: bool) -> bool:
        try:
            async with self.uow.savepoint():
                await self.merchant_repo.set_store_open(
                    merchant.id, is_open=is_open, is_manual_override=is_manual_override
                )
        except Exception as e:
            logger.warning(
                f"Store visibility toggle failed for merchant {merchant.id} (is_open={is_open}): {e}"
            )
            return False
        return True
