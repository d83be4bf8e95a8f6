"""Get Subscription State Use Case

Reports the billing standing of a merchant as shown on the dashboard.
The auto-switch engine runs first so the state read is never stale.
"""

import logging
import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional, Tuple
from libs.result import Result, Return, Error
from src.app.repositories.merchant_repository import MerchantRepository
from src.app.repositories.merchant_balance_repository import MerchantBalanceRepository
from src.app.repositories.merchant_subscription_repository import MerchantSubscriptionRepository
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from src.domain.currency import DEFAULT_CURRENCY
from src.domain.merchant_subscription import (
    MerchantSubscription,
    SubscriptionType,
    SubscriptionStatus,
    NO_SUBSCRIPTION,
)
from src.domain.subscription_plan import DEFAULT_GRACE_PERIOD_DAYS, resolve_grace_period_days
from .dtos import SubscriptionStateDTO
from .evaluate_subscription import EvaluateSubscription

logger = logging.getLogger(__name__)

PENDING_SUSPENSION_REASONS = {
    SubscriptionType.DEPOSIT: "DEPOSIT_DEPLETED",
    SubscriptionType.MONTHLY: "MONTHLY_EXPIRED",
    SubscriptionType.TRIAL: "TRIAL_EXPIRED",
}


def days_until(end: datetime, now: datetime) -> int:
    """Whole days left until end, rounded up; negative once end has passed"""
    return math.ceil((end - now).total_seconds() / 86400)


class GetSubscriptionState:
    """
    Get Subscription State Use Case

    Validity rules:
    - TRIAL / MONTHLY: valid while the trial or period end is ahead; an
      ACTIVE subscription stays valid through the grace period after it
    - DEPOSIT: an ACTIVE deposit is valid while the balance is positive
    - pendingSuspension flags an ACTIVE subscription that is no longer
      valid and outside any grace period, i.e. waiting for the sweep
    """

    def __init__(
        self,
        merchant_repo: MerchantRepository,
        subscription_repo: MerchantSubscriptionRepository,
        balance_repo: MerchantBalanceRepository,
        plan_repo: SubscriptionPlanRepository,
        auto_switch: Optional[EvaluateSubscription] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        default_grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS,
    ):
        self.merchant_repo = merchant_repo
        self.subscription_repo = subscription_repo
        self.balance_repo = balance_repo
        self.plan_repo = plan_repo
        self.auto_switch = auto_switch
        self.clock = clock
        self.default_grace_period_days = default_grace_period_days

    async def execute(self, merchant_id: int) -> Result[SubscriptionStateDTO]:
        merchant = await self.merchant_repo.get_by_id(merchant_id)
        if not merchant:
            return Return.err(Error(code="MERCHANT_NOT_FOUND", message="Merchant not found"))
        currency = (merchant.currency or "").strip() or DEFAULT_CURRENCY

        if self.auto_switch is not None:
            switch_result = await self.auto_switch.execute(merchant_id)
            if switch_result.is_err():
                logger.warning(
                    f"Auto-switch before subscription read failed for merchant {merchant_id}: "
                    f"{switch_result.error.reason or switch_result.error.message}"
                )

        subscription = await self.subscription_repo.get_by_merchant_id(merchant_id)
        if subscription is None:
            return Return.ok(
                SubscriptionStateDTO(
                    type=NO_SUBSCRIPTION,
                    status=SubscriptionStatus.SUSPENDED.value,
                    is_valid=False,
                    days_remaining=0,
                    suspend_reason="No active subscription",
                    currency=currency,
                )
            )

        now = self.clock()
        grace_period_days = await self._grace_period_days()
        is_active = subscription.status == SubscriptionStatus.ACTIVE

        is_valid = False
        in_grace_period = False
        days_remaining = 0
        balance_amount: Optional[Decimal] = None

        period_end = self._validity_end(subscription)
        if period_end is not None:
            days_remaining, is_valid, in_grace_period = self._assess_period(
                period_end, now, is_active, grace_period_days
            )

        if subscription.type == SubscriptionType.DEPOSIT:
            balance = await self.balance_repo.get_by_merchant_id(merchant_id)
            balance_amount = Decimal(balance.balance) if balance else Decimal("0")
            if is_active:
                is_valid = balance_amount > 0

        pending_suspension = is_active and not is_valid and not in_grace_period

        return Return.ok(
            SubscriptionStateDTO(
                type=subscription.type.value,
                status=subscription.status.value,
                is_valid=is_valid,
                days_remaining=days_remaining,
                trial_ends_at=subscription.trial_ends_at,
                current_period_end=subscription.current_period_end,
                suspend_reason=subscription.suspend_reason,
                pending_suspension=pending_suspension,
                pending_suspension_reason=(
                    PENDING_SUSPENSION_REASONS.get(subscription.type) if pending_suspension else None
                ),
                balance=balance_amount,
                currency=currency,
            )
        )

    def _validity_end(self, subscription: MerchantSubscription) -> Optional[datetime]:
        if subscription.type == SubscriptionType.TRIAL:
            return subscription.trial_ends_at
        if subscription.type == SubscriptionType.MONTHLY:
            return subscription.current_period_end
        return None

    def _assess_period(
        self, period_end: datetime, now: datetime, is_active: bool, grace_period_days: int
    ) -> Tuple[int, bool, bool]:
        """(days remaining, valid, in grace period)"""
        remaining = days_until(period_end, now)
        if remaining > 0:
            return remaining, True, False

        in_grace = is_active and period_end + timedelta(days=grace_period_days) > now
        return 0, in_grace, in_grace

    async def _grace_period_days(self) -> int:
        plan = await self.plan_repo.get_active_plan()
        return resolve_grace_period_days(plan, self.default_grace_period_days)
