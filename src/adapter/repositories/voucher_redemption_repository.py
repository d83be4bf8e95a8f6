"""SQLAlchemy implementation of VoucherRedemptionRepository

The unique (voucher_id, merchant_id) constraint is the last line of the
at-most-once guarantee; a violation surfaces as DuplicateRedemptionError.
"""

from typing import Optional
from sqlalchemy import update, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.voucher_redemption_repository import (
    VoucherRedemptionRepository,
    DuplicateRedemptionError,
)
from src.domain.voucher_redemption import VoucherRedemption


class SqlAlchemyVoucherRedemptionRepository(VoucherRedemptionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists_for(self, voucher_id: int, merchant_id: int) -> bool:
        stmt = (
            select(func.count())
            .select_from(VoucherRedemption)
            .where(
                VoucherRedemption.voucher_id == voucher_id,
                VoucherRedemption.merchant_id == merchant_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def create(self, redemption: VoucherRedemption) -> VoucherRedemption:
        """
        Create a new redemption row

        Raises:
            DuplicateRedemptionError: If the merchant already redeemed the voucher
        """
        self.session.add(redemption)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRedemptionError(
                f"Voucher {redemption.voucher_id} already redeemed by merchant {redemption.merchant_id}"
            ) from e
        await self.session.refresh(redemption)
        return redemption

    async def mark_auto_switch(
        self,
        redemption_id: int,
        previous_sub_type: Optional[str],
        new_sub_type: Optional[str],
    ) -> None:
        stmt = (
            update(VoucherRedemption)
            .where(VoucherRedemption.id == redemption_id)
            .values(
                triggered_auto_switch=True,
                previous_sub_type=previous_sub_type,
                new_sub_type=new_sub_type,
            )
        )
        await self.session.execute(stmt)
        await self.session.flush()
