"""Subscription History Recorder

Appends one SubscriptionHistory row per subscription transition.
History is an audit trail, not a consistency boundary: the insert runs in a
savepoint and a failure never undoes the transition that preceded it.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from src.app.repositories.subscription_history_repository import SubscriptionHistoryRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.subscription_history import SubscriptionHistory, SubscriptionEventType

logger = logging.getLogger(__name__)

SYSTEM_TRIGGER = "SYSTEM"


def encode_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    """JSON-encode history metadata; empty or unserializable metadata becomes None"""
    if not metadata:
        return None
    try:
        return json.dumps(metadata)
    except (TypeError, ValueError) as e:
        logger.warning(f"Dropping unserializable subscription history metadata: {e}")
        return None


class SubscriptionHistoryRecorder:

    def __init__(self, uow: UnitOfWork, history_repo: SubscriptionHistoryRepository):
        self.uow = uow
        self.history_repo = history_repo

    async def record(
        self,
        merchant_id: int,
        event_type: SubscriptionEventType,
        previous_type: Optional[str],
        previous_status: Optional[str],
        previous_balance: Optional[Decimal],
        previous_period_end: Optional[datetime],
        new_type: Optional[str],
        new_status: Optional[str],
        new_balance: Optional[Decimal],
        new_period_end: Optional[datetime],
        reason: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Record a transition

        Returns:
            True if the row was written, False if the insert failed
        """
        entry = SubscriptionHistory(
            merchant_id=merchant_id,
            event_type=event_type,
            previous_type=previous_type,
            previous_status=previous_status,
            previous_balance=previous_balance,
            previous_period_end=previous_period_end,
            new_type=new_type,
            new_status=new_status,
            new_balance=new_balance,
            new_period_end=new_period_end,
            reason=reason,
            metadata_json=encode_metadata(metadata),
            triggered_by=SYSTEM_TRIGGER,
        )

        try:
            async with self.uow.savepoint():
                await self.history_repo.create(entry)
        except Exception as e:
            logger.warning(
                f"Subscription history insert failed for merchant {merchant_id} "
                f"({event_type.value}): {e}"
            )
            return False
        return True
