"""SQLAlchemy implementation of VoucherRepository

Vouchers are read with SELECT FOR UPDATE during redemption so the usage
check and the usage increment happen under one row lock.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.voucher_repository import VoucherRepository
from src.domain.voucher import Voucher


class SqlAlchemyVoucherRepository(VoucherRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_code(self, code: str, for_update: bool = False) -> Optional[Voucher]:
        """
        Retrieve voucher by normalized code with optional row-level locking

        Args:
            code: Normalized voucher code
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Voucher if found, None otherwise
        """
        stmt = select(Voucher).where(Voucher.code == code)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def increment_usage(self, voucher_id: int) -> None:
        """
        Increment current_usage in the database, not from the loaded value

        Note:
            Should be called within a transaction with the voucher already locked
        """
        stmt = (
            update(Voucher)
            .where(Voucher.id == voucher_id)
            .values(current_usage=Voucher.current_usage + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session="fetch")
        )
        await self.session.execute(stmt)
        await self.session.flush()
