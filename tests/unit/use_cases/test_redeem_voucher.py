"""Unit tests for RedeemVoucher use case

Tests cover:
- Ordered voucher validation
- BALANCE credit with ledger entry
- SUBSCRIPTION_DAYS extension without compounding
- At-most-once redemption per merchant
- Best-effort auto-switch after a balance credit
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return, Error
from src.app.repositories.voucher_redemption_repository import DuplicateRedemptionError
from src.app.use_cases.billing.redeem_voucher import RedeemVoucher
from src.app.use_cases.billing.dtos import AutoSwitchResultDTO, RedeemVoucherCommandDTO
from src.domain.balance_transaction import BalanceTransactionType
from src.domain.merchant import Merchant
from src.domain.merchant_balance import MerchantBalance
from src.domain.merchant_subscription import (
    MerchantSubscription,
    SubscriptionType,
    SubscriptionStatus,
)
from src.domain.voucher import Voucher, VoucherType

NOW = datetime(2024, 6, 15, 12, 0, 0)


def make_voucher(**overrides) -> Voucher:
    fields = dict(
        id=10,
        code="WELCOME100",
        type=VoucherType.BALANCE,
        value=Decimal("100000.00"),
        currency=None,
        max_usage=None,
        current_usage=0,
        is_active=True,
    )
    fields.update(overrides)
    return Voucher(**fields)


def make_subscription(**overrides) -> MerchantSubscription:
    fields = dict(
        id=3,
        merchant_id=42,
        type=SubscriptionType.MONTHLY,
        status=SubscriptionStatus.ACTIVE,
        current_period_start=NOW - timedelta(days=20),
        current_period_end=NOW + timedelta(days=10),
    )
    fields.update(overrides)
    return MerchantSubscription(**fields)


async def _assign_redemption_id(redemption):
    redemption.id = 99
    return redemption


@pytest.fixture
def merchant():
    return Merchant(id=42, code="kopi-senja", name="Kopi Senja", currency="IDR", is_open=True)


@pytest.fixture
def mock_code_lock():
    """Code lock whose hold() is an async context manager"""
    lock = MagicMock()
    held = MagicMock()
    held.__aenter__ = AsyncMock(return_value=None)
    held.__aexit__ = AsyncMock(return_value=False)
    lock.hold = MagicMock(return_value=held)
    return lock


@pytest.fixture
def repos(merchant):
    merchant_repo = MagicMock()
    merchant_repo.get_by_id = AsyncMock(return_value=merchant)

    voucher_repo = MagicMock()
    voucher_repo.get_by_code = AsyncMock(return_value=make_voucher())
    voucher_repo.increment_usage = AsyncMock()

    redemption_repo = MagicMock()
    redemption_repo.exists_for = AsyncMock(return_value=False)
    redemption_repo.create = AsyncMock(side_effect=_assign_redemption_id)
    redemption_repo.mark_auto_switch = AsyncMock()

    balance_repo = MagicMock()
    balance_repo.get_by_merchant_id = AsyncMock(return_value=None)
    balance_repo.create = AsyncMock(
        return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
    )
    balance_repo.update_balance = AsyncMock()

    transaction_repo = MagicMock()
    transaction_repo.create = AsyncMock()

    subscription_repo = MagicMock()
    subscription_repo.get_by_merchant_id = AsyncMock(return_value=None)
    subscription_repo.create = AsyncMock()
    subscription_repo.update = AsyncMock()

    return dict(
        merchant_repo=merchant_repo,
        voucher_repo=voucher_repo,
        redemption_repo=redemption_repo,
        balance_repo=balance_repo,
        transaction_repo=transaction_repo,
        subscription_repo=subscription_repo,
    )


@pytest.fixture
def mock_auto_switch():
    auto_switch = MagicMock()
    auto_switch.execute = AsyncMock(
        return_value=Return.ok(AutoSwitchResultDTO(action="NO_CHANGE", reason="Trial still valid"))
    )
    return auto_switch


@pytest.fixture
def redeem_use_case(mock_uow, mock_code_lock, repos, mock_auto_switch):
    return RedeemVoucher(
        uow=mock_uow,
        code_lock=mock_code_lock,
        auto_switch=mock_auto_switch,
        clock=lambda: NOW,
        **repos,
    )


def command(code: str = " welcome100 ") -> RedeemVoucherCommandDTO:
    return RedeemVoucherCommandDTO(merchant_id=42, actor_user_id=7, code=code)


@pytest.mark.asyncio
class TestRedeemVoucherInput:

    async def test_empty_code_is_rejected_before_locking(self, redeem_use_case, mock_code_lock):
        """
        Given: A whitespace-only code
        When: Redeeming
        Then: VALIDATION_ERROR and the code lock is never taken
        """
        result = await redeem_use_case.execute(command("   "))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        assert result.error.message == "Voucher code is required"
        mock_code_lock.hold.assert_not_called()

    async def test_lock_is_keyed_by_normalized_code(self, redeem_use_case, mock_code_lock, repos):
        await redeem_use_case.execute(command(" welcome100 "))

        mock_code_lock.hold.assert_called_once_with("WELCOME100")
        repos["voucher_repo"].get_by_code.assert_awaited_once_with("WELCOME100", for_update=True)

    async def test_unknown_merchant(self, redeem_use_case, repos, mock_uow):
        repos["merchant_repo"].get_by_id = AsyncMock(return_value=None)

        result = await redeem_use_case.execute(command())

        assert result.error.code == "MERCHANT_NOT_FOUND"
        mock_uow.rollback.assert_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_unknown_voucher(self, redeem_use_case, repos, mock_uow):
        repos["voucher_repo"].get_by_code = AsyncMock(return_value=None)

        result = await redeem_use_case.execute(command("NOPE"))

        assert result.error.code == "VOUCHER_NOT_FOUND"
        mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
class TestRedeemVoucherValidationOrder:

    @pytest.mark.parametrize(
        "overrides, expected_code",
        [
            # inactive beats every other failure
            (dict(is_active=False, currency="AUD", max_usage=1, current_usage=1), "VOUCHER_INACTIVE"),
            (dict(currency="AUD", valid_until=NOW - timedelta(days=1)), "CURRENCY_MISMATCH"),
            (dict(valid_from=NOW + timedelta(days=1), max_usage=1, current_usage=1), "VOUCHER_NOT_STARTED"),
            (dict(valid_until=NOW - timedelta(seconds=1), max_usage=1, current_usage=1), "VOUCHER_EXPIRED"),
            (dict(max_usage=5, current_usage=5), "VOUCHER_LIMIT_REACHED"),
        ],
    )
    async def test_first_failing_rule_wins(
        self, redeem_use_case, repos, mock_uow, overrides, expected_code
    ):
        repos["voucher_repo"].get_by_code = AsyncMock(return_value=make_voucher(**overrides))

        result = await redeem_use_case.execute(command())

        assert result.is_err()
        assert result.error.code == expected_code
        repos["redemption_repo"].create.assert_not_awaited()
        repos["voucher_repo"].increment_usage.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_currency_mismatch_message(self, redeem_use_case, repos):
        repos["voucher_repo"].get_by_code = AsyncMock(return_value=make_voucher(currency="AUD"))

        result = await redeem_use_case.execute(command())

        assert result.error.message == "This voucher is only valid for AUD merchants"

    async def test_voucher_is_valid_at_its_boundaries(self, redeem_use_case, repos):
        repos["voucher_repo"].get_by_code = AsyncMock(
            return_value=make_voucher(valid_from=NOW, valid_until=NOW)
        )

        result = await redeem_use_case.execute(command())

        assert result.is_ok()

    async def test_already_redeemed_by_this_merchant(self, redeem_use_case, repos, mock_uow):
        """
        Given: The merchant already has a redemption of this voucher
        When: Redeeming again
        Then: ALREADY_REDEEMED and nothing is written
        """
        repos["redemption_repo"].exists_for = AsyncMock(return_value=True)

        result = await redeem_use_case.execute(command())

        assert result.error.code == "ALREADY_REDEEMED"
        assert result.error.message == "You have already used this voucher"
        repos["balance_repo"].update_balance.assert_not_awaited()
        mock_uow.rollback.assert_awaited()

    async def test_unique_violation_maps_to_already_redeemed(self, redeem_use_case, repos, mock_uow):
        repos["redemption_repo"].create = AsyncMock(side_effect=DuplicateRedemptionError("dup"))

        result = await redeem_use_case.execute(command())

        assert result.error.code == "ALREADY_REDEEMED"
        repos["voucher_repo"].increment_usage.assert_not_awaited()
        mock_uow.rollback.assert_awaited()
        mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
class TestRedeemBalanceVoucher:

    async def test_credit_existing_balance(self, redeem_use_case, repos, mock_uow):
        """
        Given: Merchant balance 50 and a BALANCE voucher of 100000
        When: Redeeming
        Then: Balance 100050, one DEPOSIT transaction, usage incremented, commit
        """
        before = MerchantBalance(id=5, merchant_id=42, balance=Decimal("50"))
        after = MerchantBalance(id=5, merchant_id=42, balance=Decimal("100050"))
        repos["balance_repo"].get_by_merchant_id = AsyncMock(side_effect=[before, after])

        result = await redeem_use_case.execute(command())

        assert result.is_ok()
        response = result.value
        assert response.redemption_id == 99
        assert response.message == "Successfully added Rp 100.000 to your balance"
        assert response.data.voucher_type == "BALANCE"
        assert response.data.balance == Decimal("100050")
        assert response.data.auto_switch_triggered is False

        repos["balance_repo"].update_balance.assert_awaited_once_with(
            5, Decimal("100050.00"), topped_up_at=NOW
        )
        txn = repos["transaction_repo"].create.call_args[0][0]
        assert txn.type == BalanceTransactionType.DEPOSIT
        assert txn.amount == Decimal("100000.00")
        assert txn.balance_before == Decimal("50")
        assert txn.balance_after == Decimal("100050.00")
        assert txn.description == "Voucher redemption: WELCOME100"
        assert txn.created_by_user_id == 7

        redemption = repos["redemption_repo"].create.call_args[0][0]
        assert redemption.balance_before == Decimal("50")
        assert redemption.balance_after == Decimal("100050.00")
        repos["voucher_repo"].increment_usage.assert_awaited_once_with(10)
        mock_uow.commit.assert_awaited_once()

    async def test_balance_row_is_created_when_missing(self, redeem_use_case, repos):
        created = MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        repos["balance_repo"].create = AsyncMock(return_value=created)

        result = await redeem_use_case.execute(command())

        assert result.is_ok()
        repos["balance_repo"].create.assert_awaited_once()
        repos["balance_repo"].update_balance.assert_awaited_once_with(
            8, Decimal("100000.00"), topped_up_at=NOW
        )

    async def test_aud_label(self, redeem_use_case, repos, merchant):
        merchant.currency = "AUD"
        repos["voucher_repo"].get_by_code = AsyncMock(return_value=make_voucher(value=Decimal("12.5")))
        repos["balance_repo"].create = AsyncMock(
            return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        )

        result = await redeem_use_case.execute(command())

        assert result.value.message == "Successfully added A$12.50 to your balance"

    async def test_auto_switch_is_flagged_on_the_redemption(
        self, redeem_use_case, repos, mock_uow, mock_auto_switch
    ):
        """
        Given: Auto-switch moves the merchant from TRIAL to DEPOSIT
        When: A BALANCE voucher is redeemed
        Then: Redemption is flagged and response reports the switch
        """
        repos["balance_repo"].create = AsyncMock(
            return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        )
        mock_auto_switch.execute = AsyncMock(
            return_value=Return.ok(
                AutoSwitchResultDTO(
                    action="AUTO_SWITCHED",
                    reason="Trial expired, switched to Deposit (has balance)",
                    previous_type="TRIAL",
                    previous_status="ACTIVE",
                    new_type="DEPOSIT",
                    new_status="ACTIVE",
                    store_opened=True,
                )
            )
        )

        result = await redeem_use_case.execute(command())

        assert result.is_ok()
        data = result.value.data
        assert data.auto_switch_triggered is True
        assert data.previous_sub_type == "TRIAL"
        assert data.new_sub_type == "DEPOSIT"
        mock_auto_switch.execute.assert_awaited_once_with(42)
        repos["redemption_repo"].mark_auto_switch.assert_awaited_once_with(99, "TRIAL", "DEPOSIT")
        assert mock_uow.commit.await_count == 2

    async def test_auto_switch_failure_does_not_fail_redemption(
        self, redeem_use_case, repos, mock_auto_switch
    ):
        repos["balance_repo"].create = AsyncMock(
            return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        )
        mock_auto_switch.execute = AsyncMock(
            return_value=Return.err(Error(code="AUTO_SWITCH_FAILED", message="boom"))
        )

        result = await redeem_use_case.execute(command())

        assert result.is_ok()
        assert result.value.data.auto_switch_triggered is False
        repos["redemption_repo"].mark_auto_switch.assert_not_awaited()

    async def test_reactivation_is_not_reported_as_switch(
        self, redeem_use_case, repos, mock_auto_switch
    ):
        repos["balance_repo"].create = AsyncMock(
            return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        )
        mock_auto_switch.execute = AsyncMock(
            return_value=Return.ok(
                AutoSwitchResultDTO(
                    action="REACTIVATED",
                    reason="Reactivated as Deposit (balance available)",
                    previous_type="DEPOSIT",
                    new_type="DEPOSIT",
                )
            )
        )

        result = await redeem_use_case.execute(command())

        assert result.value.data.auto_switch_triggered is False
        repos["redemption_repo"].mark_auto_switch.assert_not_awaited()


@pytest.mark.asyncio
class TestRedeemSubscriptionDaysVoucher:

    @pytest.fixture(autouse=True)
    def days_voucher(self, repos):
        repos["voucher_repo"].get_by_code = AsyncMock(
            return_value=make_voucher(code="DAYS30", type=VoucherType.SUBSCRIPTION_DAYS, value=Decimal("30"))
        )

    async def test_extends_from_current_period_end(self, redeem_use_case, repos, mock_auto_switch):
        """
        Given: MONTHLY subscription ending in 10 days
        When: A 30-day voucher is redeemed
        Then: Period end moves to now + 40 days
        """
        subscription = make_subscription()
        repos["subscription_repo"].get_by_merchant_id = AsyncMock(return_value=subscription)

        result = await redeem_use_case.execute(command("days30"))

        assert result.is_ok()
        assert subscription.current_period_end == NOW + timedelta(days=40)
        repos["subscription_repo"].update.assert_awaited_once_with(subscription)
        assert result.value.message == (
            "Successfully added 30 days to your subscription (valid until 7/25/2024)"
        )
        mock_auto_switch.execute.assert_not_awaited()

    async def test_expired_period_extends_from_now(self, redeem_use_case, repos):
        """
        Given: Subscription period ended 10 days ago
        When: A 30-day voucher is redeemed
        Then: Period end is now + 30 days (lost days are not compounded)
        """
        subscription = make_subscription(
            status=SubscriptionStatus.SUSPENDED,
            current_period_end=NOW - timedelta(days=10),
            suspended_at=NOW - timedelta(days=9),
            suspend_reason="expired",
        )
        repos["subscription_repo"].get_by_merchant_id = AsyncMock(return_value=subscription)

        result = await redeem_use_case.execute(command("days30"))

        assert result.is_ok()
        assert subscription.current_period_end == NOW + timedelta(days=30)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.suspended_at is None
        assert subscription.suspend_reason is None
        redemption = repos["redemption_repo"].create.call_args[0][0]
        assert redemption.subscription_end_before == NOW - timedelta(days=10)
        assert redemption.subscription_end_after == NOW + timedelta(days=30)

    async def test_trial_is_converted_to_monthly(self, redeem_use_case, repos):
        subscription = make_subscription(
            type=SubscriptionType.TRIAL,
            trial_ends_at=NOW + timedelta(days=5),
            current_period_start=None,
            current_period_end=None,
        )
        repos["subscription_repo"].get_by_merchant_id = AsyncMock(return_value=subscription)

        result = await redeem_use_case.execute(command("days30"))

        assert subscription.type == SubscriptionType.MONTHLY
        assert subscription.current_period_start == NOW
        assert subscription.current_period_end == NOW + timedelta(days=30)
        data = result.value.data
        assert data.auto_switch_triggered is True
        assert data.previous_sub_type == "TRIAL"
        assert data.new_sub_type == "MONTHLY"

    async def test_missing_subscription_is_created_as_monthly(self, redeem_use_case, repos):
        result = await redeem_use_case.execute(command("days30"))

        assert result.is_ok()
        created = repos["subscription_repo"].create.call_args[0][0]
        assert created.type == SubscriptionType.MONTHLY
        assert created.status == SubscriptionStatus.ACTIVE
        assert created.current_period_end == NOW + timedelta(days=30)
        assert result.value.data.previous_sub_type == "NONE"
        assert result.value.data.new_sub_type == "MONTHLY"

    async def test_less_than_one_day_is_invalid(self, redeem_use_case, repos, mock_uow):
        repos["voucher_repo"].get_by_code = AsyncMock(
            return_value=make_voucher(type=VoucherType.SUBSCRIPTION_DAYS, value=Decimal("0.5"))
        )

        result = await redeem_use_case.execute(command("days30"))

        assert result.error.code == "VOUCHER_INVALID"
        mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
class TestRedeemVoucherFailures:

    async def test_unexpected_error_rolls_back(self, redeem_use_case, repos, mock_uow):
        repos["voucher_repo"].increment_usage = AsyncMock(side_effect=RuntimeError("connection lost"))
        repos["balance_repo"].create = AsyncMock(
            return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        )

        result = await redeem_use_case.execute(command())

        assert result.is_err()
        assert result.error.code == "INTERNAL_ERROR"
        assert result.error.message == "Failed to redeem voucher"
        mock_uow.rollback.assert_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_snapshot_failure_still_returns_redemption(self, redeem_use_case, repos):
        repos["balance_repo"].create = AsyncMock(
            return_value=MerchantBalance(id=8, merchant_id=42, balance=Decimal("0"))
        )
        repos["subscription_repo"].get_by_merchant_id = AsyncMock(side_effect=RuntimeError("gone"))

        result = await redeem_use_case.execute(command())

        assert result.is_ok()
        assert result.value.data.subscription is None
