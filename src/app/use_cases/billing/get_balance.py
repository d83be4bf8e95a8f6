"""Get Balance Use Case

Retrieves a merchant's current deposit balance.
"""

from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.repositories.merchant_repository import MerchantRepository
from src.app.repositories.merchant_balance_repository import MerchantBalanceRepository
from src.domain.currency import DEFAULT_CURRENCY
from src.app.use_cases.billing.dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Read-only operation. A merchant that never received a credit has no
    balance row yet and reads as zero; the row is only created by the
    first credit.
    """

    def __init__(self, merchant_repo: MerchantRepository, balance_repo: MerchantBalanceRepository):
        """
        Initialize GetBalance use case

        Args:
            merchant_repo: Repository for accessing merchants
            balance_repo: Repository for accessing merchant balances
        """
        self.merchant_repo = merchant_repo
        self.balance_repo = balance_repo

    async def execute(self, merchant_id: int) -> Result[BalanceResponseDTO]:
        """
        Execute get balance operation

        Args:
            merchant_id: The merchant identifier

        Returns:
            Result[BalanceResponseDTO]: Success with balance data or error

        Errors:
            MERCHANT_NOT_FOUND: Merchant does not exist
        """
        merchant = await self.merchant_repo.get_by_id(merchant_id)
        if not merchant:
            return Return.err(
                Error(
                    code="MERCHANT_NOT_FOUND",
                    message="Merchant not found",
                )
            )

        balance = await self.balance_repo.get_by_merchant_id(merchant_id)

        return Return.ok(
            BalanceResponseDTO(
                merchant_id=merchant_id,
                balance=balance.balance if balance else Decimal("0"),
                currency=(merchant.currency or "").strip() or DEFAULT_CURRENCY,
                last_topup_at=balance.last_topup_at if balance else None,
            )
        )
