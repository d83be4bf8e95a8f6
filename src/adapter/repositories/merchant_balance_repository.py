"""SQLAlchemy implementation of MerchantBalanceRepository

Provides persistence for MerchantBalance entities with pessimistic locking
support to prevent lost updates during concurrent credits.
"""

from typing import Optional
from decimal import Decimal
from datetime import datetime
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.merchant_balance_repository import MerchantBalanceRepository
from src.domain.merchant_balance import MerchantBalance


class SqlAlchemyMerchantBalanceRepository(MerchantBalanceRepository):
    """
    SQLAlchemy implementation of MerchantBalanceRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Lazy creation of the balance row on first credit
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_merchant_id(self, merchant_id: int, for_update: bool = False) -> Optional[MerchantBalance]:
        """
        Retrieve balance by merchant ID with optional row-level locking

        Args:
            merchant_id: Merchant identifier
            for_update: If True, locks the row with SELECT FOR UPDATE (prevents concurrent modifications)

        Returns:
            MerchantBalance if found, None otherwise
        """
        stmt = select(MerchantBalance).where(MerchantBalance.merchant_id == merchant_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, balance: MerchantBalance) -> MerchantBalance:
        self.session.add(balance)
        await self.session.flush()
        await self.session.refresh(balance)
        return balance

    async def update_balance(
        self, balance_id: int, new_balance: Decimal, topped_up_at: Optional[datetime] = None
    ) -> None:
        """
        Update balance amount and updated_at timestamp

        Note:
            Should be called within a transaction with the balance already locked
        """
        stmt = select(MerchantBalance).where(MerchantBalance.id == balance_id)
        result = await self.session.execute(stmt)
        balance = result.scalar_one_or_none()
        if balance:
            balance.balance = new_balance
            balance.updated_at = datetime.utcnow()
            if topped_up_at is not None:
                balance.last_topup_at = topped_up_at
            self.session.add(balance)
            await self.session.flush()
