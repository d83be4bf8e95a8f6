"""SQLAlchemy implementation of BalanceTransactionRepository

Balance transactions are append-only; the repository offers no update.
"""

from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.balance_transaction_repository import BalanceTransactionRepository
from src.domain.balance_transaction import BalanceTransaction, BalanceTransactionType


class SqlAlchemyBalanceTransactionRepository(BalanceTransactionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: BalanceTransaction) -> BalanceTransaction:
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_balance_id(
        self,
        balance_id: int,
        limit: int = 20,
        offset: int = 0,
        transaction_type: Optional[BalanceTransactionType] = None,
    ) -> Tuple[List[BalanceTransaction], int]:
        """
        Retrieve transactions of a balance with pagination

        Returns:
            Tuple of (list of BalanceTransaction, total count)
        """
        conditions = [BalanceTransaction.balance_id == balance_id]
        if transaction_type is not None:
            conditions.append(BalanceTransaction.type == transaction_type)

        # Get total count
        count_stmt = select(func.count()).select_from(BalanceTransaction).where(*conditions)
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar()

        # Newest first, id breaks ties within one timestamp
        stmt = (
            select(BalanceTransaction)
            .where(*conditions)
            .order_by(BalanceTransaction.created_at.desc(), BalanceTransaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        transactions = list(result.scalars().all())

        return transactions, total
