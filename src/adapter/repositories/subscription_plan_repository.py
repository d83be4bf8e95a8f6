"""SQLAlchemy implementation of SubscriptionPlanRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from src.domain.subscription_plan import SubscriptionPlan


class SqlAlchemySubscriptionPlanRepository(SubscriptionPlanRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_plan(self) -> Optional[SubscriptionPlan]:
        stmt = (
            select(SubscriptionPlan)
            .where(SubscriptionPlan.is_active == True)  # noqa: E712
            .order_by(SubscriptionPlan.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
