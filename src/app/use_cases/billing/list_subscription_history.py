"""List Subscription History Use Case"""
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.subscription_history_repository import SubscriptionHistoryRepository
from src.domain.subscription_history import SubscriptionEventType
from .dtos import ListSubscriptionHistoryResponseDTO, SubscriptionHistoryDTO, PaginationDTO

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ListSubscriptionHistory:
    """
    Use case: View subscription transitions of a merchant

    Newest first; the page size is capped at 100.
    """

    def __init__(self, history_repo: SubscriptionHistoryRepository):
        self.history_repo = history_repo

    async def execute(
        self,
        merchant_id: int,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        event_type: Optional[SubscriptionEventType] = None,
    ) -> Result[ListSubscriptionHistoryResponseDTO]:
        if limit <= 0:
            limit = DEFAULT_PAGE_SIZE
        limit = min(limit, MAX_PAGE_SIZE)
        offset = max(offset, 0)

        entries, total = await self.history_repo.get_by_merchant_id(
            merchant_id=merchant_id,
            limit=limit,
            offset=offset,
            event_type=event_type,
        )

        return Return.ok(
            ListSubscriptionHistoryResponseDTO(
                history=[SubscriptionHistoryDTO.from_entity(entry) for entry in entries],
                pagination=PaginationDTO(
                    total=total,
                    limit=limit,
                    offset=offset,
                    has_more=offset + len(entries) < total,
                ),
            )
        )
