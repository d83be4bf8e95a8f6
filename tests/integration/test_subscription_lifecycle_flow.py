"""Integration tests for the subscription auto-switch engine

Tests cover:
- Expired trial switched to DEPOSIT by a welcome balance voucher
- Fresh merchant provisioned as TRIAL
- Suspended DEPOSIT reactivated by a top-up
- Expired trial without payment suspended on every evaluation
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from sqlmodel import select

from src.app.use_cases.billing.dtos import RedeemVoucherCommandDTO
from src.depends import build_evaluate_subscription, build_redeem_voucher
from src.domain.merchant import Merchant
from src.domain.merchant_balance import MerchantBalance
from src.domain.merchant_subscription import (
    MerchantSubscription,
    SubscriptionType,
    SubscriptionStatus,
)
from src.domain.subscription_history import SubscriptionHistory, SubscriptionEventType
from src.domain.voucher import VoucherType
from src.domain.voucher_redemption import VoucherRedemption


async def redeem(session_factory, merchant_id: int, code: str):
    async with session_factory() as session:
        command = RedeemVoucherCommandDTO(merchant_id=merchant_id, actor_user_id=1, code=code)
        return await build_redeem_voucher(session).execute(command)


async def evaluate(session_factory, merchant_id: int):
    async with session_factory() as session:
        return await build_evaluate_subscription(session).execute(merchant_id)


async def load_all(session_factory, model, **filters):
    async with session_factory() as session:
        result = await session.execute(select(model).filter_by(**filters))
        return list(result.scalars().all())


async def load_one(session_factory, model, **filters):
    rows = await load_all(session_factory, model, **filters)
    assert len(rows) == 1
    return rows[0]


@pytest.mark.asyncio
class TestWelcomeVoucher:

    async def test_expired_trial_switches_to_deposit(self, seed, session_factory):
        """
        Given: Trial ended 10 days ago (past grace), store closed by suspension handling
        When: The merchant redeems WELCOME100 (BALANCE 100000)
        Then: Subscription is DEPOSIT/ACTIVE, trial cleared, store reopened,
              one AUTO_SWITCHED history row and the redemption is flagged
        """
        now = datetime.utcnow()
        merchant = await seed.merchant(is_open=False, is_manual_override=True)
        await seed.subscription(
            merchant,
            type=SubscriptionType.TRIAL,
            status=SubscriptionStatus.ACTIVE,
            trial_started_at=now - timedelta(days=40),
            trial_ends_at=now - timedelta(days=10),
        )
        await seed.voucher("WELCOME100", VoucherType.BALANCE, Decimal("100000"), currency="IDR")

        result = await redeem(session_factory, merchant.id, "welcome100")

        assert result.is_ok()
        data = result.value.data
        assert data.auto_switch_triggered is True
        assert data.previous_sub_type == "TRIAL"
        assert data.new_sub_type == "DEPOSIT"
        assert data.balance == Decimal("100000")
        assert data.subscription.type == "DEPOSIT"

        subscription = await load_one(session_factory, MerchantSubscription, merchant_id=merchant.id)
        assert subscription.type == SubscriptionType.DEPOSIT
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.trial_ends_at is None

        stored_merchant = await load_one(session_factory, Merchant, id=merchant.id)
        assert stored_merchant.is_open is True
        assert stored_merchant.is_manual_override is False

        history = await load_all(session_factory, SubscriptionHistory, merchant_id=merchant.id)
        assert [entry.event_type for entry in history] == [
            SubscriptionEventType.SUSPENDED,
            SubscriptionEventType.SUSPENDED,
        ]
        assert history[0].event_type == SubscriptionEventType.AUTO_SWITCHED
        assert history[0].previous_type == "TRIAL"
        assert history[0].new_type == "DEPOSIT"
        assert history[0].reason == "Trial expired, switched to Deposit"

        redemption = await load_one(session_factory, VoucherRedemption, merchant_id=merchant.id)
        assert redemption.triggered_auto_switch is True
        assert redemption.previous_sub_type == "TRIAL"
        assert redemption.new_sub_type == "DEPOSIT"

    async def test_fresh_merchant_gets_trial(self, seed, session_factory):
        """
        Given: Merchant without any subscription
        When: WELCOME100 is redeemed
        Then: Balance is credited and a TRIAL subscription is provisioned
        """
        now = datetime.utcnow()
        merchant = await seed.merchant()
        await seed.voucher("WELCOME100", VoucherType.BALANCE, Decimal("100000"))

        result = await redeem(session_factory, merchant.id, "WELCOME100")

        assert result.is_ok()
        assert result.value.data.new_sub_type == "TRIAL"
        subscription = await load_one(session_factory, MerchantSubscription, merchant_id=merchant.id)
        assert subscription.type == SubscriptionType.TRIAL
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert abs(subscription.trial_ends_at - (now + timedelta(days=30))) < timedelta(minutes=1)
        balance = await load_one(session_factory, MerchantBalance, merchant_id=merchant.id)
        assert balance.balance == Decimal("100000")


@pytest.mark.asyncio
class TestReactivation:

    async def test_topup_reactivates_suspended_deposit(self, seed, session_factory):
        """
        Given: SUSPENDED DEPOSIT merchant with zero balance and closed store
        When: A BALANCE voucher of 50 is redeemed
        Then: REACTIVATED to ACTIVE with one history row, store reopened;
              evaluating again changes nothing
        """
        now = datetime.utcnow()
        merchant = await seed.merchant(is_open=False, is_manual_override=True)
        await seed.balance(merchant, Decimal("0"))
        await seed.subscription(
            merchant,
            type=SubscriptionType.DEPOSIT,
            status=SubscriptionStatus.SUSPENDED,
            suspended_at=now - timedelta(days=2),
            suspend_reason="Deposit balance depleted",
        )
        await seed.voucher("TOPUP50", VoucherType.BALANCE, Decimal("50"))

        result = await redeem(session_factory, merchant.id, "TOPUP50")

        assert result.is_ok()
        # Reactivation is not a type switch
        assert result.value.data.auto_switch_triggered is False

        subscription = await load_one(session_factory, MerchantSubscription, merchant_id=merchant.id)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.suspended_at is None
        assert subscription.suspend_reason is None
        stored_merchant = await load_one(session_factory, Merchant, id=merchant.id)
        assert stored_merchant.is_open is True

        second = await evaluate(session_factory, merchant.id)

        assert second.value.action == "NO_CHANGE"
        history = await load_all(session_factory, SubscriptionHistory, merchant_id=merchant.id)
        assert [entry.event_type for entry in history] == [SubscriptionEventType.REACTIVATED]


@pytest.mark.asyncio
class TestSuspension:

    async def test_expired_trial_without_payment_is_suspended_on_each_evaluation(
        self, seed, session_factory
    ):
        """
        Given: Open store, trial ended 10 days ago, no balance, no period
        When: Evaluated twice
        Then: Both evaluations suspend, the store is closed and two
              SUSPENDED history rows are written
        """
        now = datetime.utcnow()
        merchant = await seed.merchant(is_open=True)
        await seed.subscription(
            merchant,
            type=SubscriptionType.TRIAL,
            status=SubscriptionStatus.ACTIVE,
            trial_started_at=now - timedelta(days=40),
            trial_ends_at=now - timedelta(days=10),
        )

        first = await evaluate(session_factory, merchant.id)
        second = await evaluate(session_factory, merchant.id)

        assert first.value.action == "SUSPENDED"
        assert second.value.action == "SUSPENDED"
        assert second.value.previous_status == "SUSPENDED"

        subscription = await load_one(session_factory, MerchantSubscription, merchant_id=merchant.id)
        assert subscription.status == SubscriptionStatus.SUSPENDED
        assert subscription.suspend_reason == "Trial expired - no payment method available"
        stored_merchant = await load_one(session_factory, Merchant, id=merchant.id)
        assert stored_merchant.is_open is False
        assert stored_merchant.is_manual_override is True
        history = await load_all(session_factory, SubscriptionHistory, merchant_id=merchant.id)
        assert len(history) == 1

    async def test_trial_within_grace_is_untouched(self, seed, session_factory):
        now = datetime.utcnow()
        merchant = await seed.merchant()
        await seed.subscription(
            merchant,
            type=SubscriptionType.TRIAL,
            status=SubscriptionStatus.ACTIVE,
            trial_started_at=now - timedelta(days=31),
            trial_ends_at=now - timedelta(days=1),
        )

        result = await evaluate(session_factory, merchant.id)

        assert result.value.action == "NO_CHANGE"
        assert await load_all(session_factory, SubscriptionHistory, merchant_id=merchant.id) == []
