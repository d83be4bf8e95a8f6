"""Unit tests for ListBalanceTransactions and ListSubscriptionHistory"""

import json
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.billing.list_balance_transactions import ListBalanceTransactions
from src.app.use_cases.billing.list_subscription_history import ListSubscriptionHistory
from src.domain.balance_transaction import BalanceTransaction, BalanceTransactionType
from src.domain.merchant_balance import MerchantBalance
from src.domain.subscription_history import SubscriptionHistory, SubscriptionEventType


def make_transaction(txn_id: int) -> BalanceTransaction:
    return BalanceTransaction(
        id=txn_id,
        balance_id=5,
        type=BalanceTransactionType.DEPOSIT,
        amount=Decimal("100"),
        balance_before=Decimal("0"),
        balance_after=Decimal("100"),
        description="Voucher redemption: TOPUP",
        created_at=datetime(2024, 6, 1),
    )


@pytest.fixture
def mock_balance_repo():
    repo = MagicMock()
    repo.get_by_merchant_id = AsyncMock(return_value=MerchantBalance(id=5, merchant_id=42, balance=Decimal("100")))
    return repo


@pytest.fixture
def mock_transaction_repo():
    return MagicMock()


@pytest.mark.asyncio
class TestListBalanceTransactions:

    async def test_page_with_more_results(self, mock_balance_repo, mock_transaction_repo):
        mock_transaction_repo.get_by_balance_id = AsyncMock(
            return_value=([make_transaction(3), make_transaction(2)], 5)
        )
        use_case = ListBalanceTransactions(mock_balance_repo, mock_transaction_repo)

        result = await use_case.execute(42, limit=2, offset=0)

        assert result.is_ok()
        page = result.value
        assert [txn.id for txn in page.transactions] == [3, 2]
        assert page.pagination.total == 5
        assert page.pagination.has_more is True
        mock_transaction_repo.get_by_balance_id.assert_awaited_once_with(
            balance_id=5, limit=2, offset=0, transaction_type=None
        )

    async def test_last_page(self, mock_balance_repo, mock_transaction_repo):
        mock_transaction_repo.get_by_balance_id = AsyncMock(return_value=([make_transaction(1)], 5))
        use_case = ListBalanceTransactions(mock_balance_repo, mock_transaction_repo)

        result = await use_case.execute(42, limit=2, offset=4)

        assert result.value.pagination.has_more is False

    async def test_invalid_paging_falls_back_to_defaults(self, mock_balance_repo, mock_transaction_repo):
        mock_transaction_repo.get_by_balance_id = AsyncMock(return_value=([], 0))
        use_case = ListBalanceTransactions(mock_balance_repo, mock_transaction_repo)

        result = await use_case.execute(42, limit=0, offset=-3)

        assert result.value.pagination.limit == 20
        assert result.value.pagination.offset == 0

    async def test_merchant_without_balance_has_empty_ledger(self, mock_balance_repo, mock_transaction_repo):
        mock_balance_repo.get_by_merchant_id = AsyncMock(return_value=None)
        use_case = ListBalanceTransactions(mock_balance_repo, mock_transaction_repo)

        result = await use_case.execute(42)

        assert result.value.transactions == []
        assert result.value.pagination.total == 0
        mock_transaction_repo.get_by_balance_id.assert_not_called()


@pytest.mark.asyncio
class TestListSubscriptionHistory:

    async def test_page_size_is_capped(self):
        history_repo = MagicMock()
        history_repo.get_by_merchant_id = AsyncMock(return_value=([], 0))

        result = await ListSubscriptionHistory(history_repo).execute(42, limit=500)

        assert result.value.pagination.limit == 100
        history_repo.get_by_merchant_id.assert_awaited_once_with(
            merchant_id=42, limit=100, offset=0, event_type=None
        )

    async def test_metadata_is_decoded(self):
        entry = SubscriptionHistory(
            id=1,
            merchant_id=42,
            event_type=SubscriptionEventType.AUTO_SWITCHED,
            previous_type="TRIAL",
            new_type="MONTHLY",
            reason="Trial expired, switched to Monthly",
            metadata_json=json.dumps({"periodTo": "2024-07-01T00:00:00"}),
            triggered_by="SYSTEM",
            created_at=datetime(2024, 6, 1),
        )
        history_repo = MagicMock()
        history_repo.get_by_merchant_id = AsyncMock(return_value=([entry], 1))

        result = await ListSubscriptionHistory(history_repo).execute(
            42, event_type=SubscriptionEventType.AUTO_SWITCHED
        )

        item = result.value.history[0]
        assert item.event_type == "AUTO_SWITCHED"
        assert item.metadata == {"periodTo": "2024-07-01T00:00:00"}
        assert item.model_dump(by_alias=True)["eventType"] == "AUTO_SWITCHED"
