"""SQLAlchemy implementation of MerchantRepository"""

from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.merchant_repository import MerchantRepository
from src.domain.merchant import Merchant


class SqlAlchemyMerchantRepository(MerchantRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, merchant_id: int) -> Optional[Merchant]:
        stmt = select(Merchant).where(Merchant.id == merchant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Optional[Merchant]:
        stmt = select(Merchant).where(Merchant.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_store_open(self, merchant_id: int, is_open: bool, is_manual_override: bool) -> None:
        """
        Flip the store flags with a single UPDATE

        Loaded Merchant instances in the session are synchronized.
        """
        stmt = (
            update(Merchant)
            .where(Merchant.id == merchant_id)
            .values(
                is_open=is_open,
                is_manual_override=is_manual_override,
                updated_at=datetime.utcnow(),
            )
        )
        await self.session.execute(stmt)
        await self.session.flush()
