"""
List Balance Transactions Use Case

Retrieves the balance ledger of a merchant with pagination.
"""
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.merchant_balance_repository import MerchantBalanceRepository
from src.app.repositories.balance_transaction_repository import BalanceTransactionRepository
from src.domain.balance_transaction import BalanceTransactionType
from .dtos import ListBalanceTransactionsResponseDTO, BalanceTransactionDTO, PaginationDTO

DEFAULT_PAGE_SIZE = 20


class ListBalanceTransactions:
    """
    Use case: View balance transactions

    Transactions are ordered by created_at DESC (most recent first).
    A merchant without a balance row has an empty ledger.
    """

    def __init__(
        self,
        balance_repo: MerchantBalanceRepository,
        transaction_repo: BalanceTransactionRepository,
    ):
        self.balance_repo = balance_repo
        self.transaction_repo = transaction_repo

    async def execute(
        self,
        merchant_id: int,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        transaction_type: Optional[BalanceTransactionType] = None,
    ) -> Result[ListBalanceTransactionsResponseDTO]:
        """
        List balance transactions for a merchant.

        Args:
            merchant_id: Merchant identifier
            limit: Page size, non-positive values fall back to 20
            offset: Number of transactions to skip
            transaction_type: Optional filter on transaction type

        Returns:
            Result[ListBalanceTransactionsResponseDTO]: Paginated transaction list
        """
        if limit <= 0:
            limit = DEFAULT_PAGE_SIZE
        offset = max(offset, 0)

        balance = await self.balance_repo.get_by_merchant_id(merchant_id)
        if balance is None:
            return Return.ok(
                ListBalanceTransactionsResponseDTO(
                    transactions=[],
                    pagination=PaginationDTO(total=0, limit=limit, offset=offset, has_more=False),
                )
            )

        transactions, total = await self.transaction_repo.get_by_balance_id(
            balance_id=balance.id,
            limit=limit,
            offset=offset,
            transaction_type=transaction_type,
        )

        return Return.ok(
            ListBalanceTransactionsResponseDTO(
                transactions=[BalanceTransactionDTO.from_entity(txn) for txn in transactions],
                pagination=PaginationDTO(
                    total=total,
                    limit=limit,
                    offset=offset,
                    has_more=offset + len(transactions) < total,
                ),
            )
        )
