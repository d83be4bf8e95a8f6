"""SQLAlchemy implementation of MerchantSubscriptionRepository"""

from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.merchant_subscription_repository import (
    MerchantSubscriptionRepository,
    DuplicateSubscriptionError,
)
from src.domain.merchant_subscription import MerchantSubscription


class SqlAlchemyMerchantSubscriptionRepository(MerchantSubscriptionRepository):
    """
    SQLAlchemy implementation of MerchantSubscriptionRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - merchant_id uniqueness violations raised as DuplicateSubscriptionError
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_merchant_id(
        self, merchant_id: int, for_update: bool = False
    ) -> Optional[MerchantSubscription]:
        stmt = select(MerchantSubscription).where(MerchantSubscription.merchant_id == merchant_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, subscription: MerchantSubscription) -> MerchantSubscription:
        self.session.add(subscription)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateSubscriptionError(
                f"Merchant {subscription.merchant_id} already has a subscription"
            ) from e
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: MerchantSubscription) -> MerchantSubscription:
        self.session.add(subscription)
        await self.session.flush()
        return subscription
