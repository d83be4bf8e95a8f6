"""SQLAlchemy implementation of SubscriptionHistoryRepository"""

from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_history_repository import SubscriptionHistoryRepository
from src.domain.subscription_history import SubscriptionHistory, SubscriptionEventType


class SqlAlchemySubscriptionHistoryRepository(SubscriptionHistoryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: SubscriptionHistory) -> SubscriptionHistory:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_by_merchant_id(
        self,
        merchant_id: int,
        limit: int = 20,
        offset: int = 0,
        event_type: Optional[SubscriptionEventType] = None,
    ) -> Tuple[List[SubscriptionHistory], int]:
        conditions = [SubscriptionHistory.merchant_id == merchant_id]
        if event_type is not None:
            conditions.append(SubscriptionHistory.event_type == event_type)

        count_stmt = select(func.count()).select_from(SubscriptionHistory).where(*conditions)
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar()

        stmt = (
            select(SubscriptionHistory)
            .where(*conditions)
            .order_by(SubscriptionHistory.created_at.desc(), SubscriptionHistory.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
