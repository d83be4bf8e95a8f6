"""Subscription Auto-Switch Policy

Pure decision function for the subscription state machine. Given the current
subscription row, the merchant balance and the clock it decides whether the
billing state must change. It performs no I/O; EvaluateSubscription applies
the returned decision.

States are {TRIAL, DEPOSIT, MONTHLY} x {ACTIVE, SUSPENDED}:

- SUSPENDED: reactivate first when the type's payment condition holds again
  (MONTHLY period in the future, DEPOSIT balance > 0, TRIAL end in the
  future), otherwise fall through to the type rules below.
- TRIAL: nothing happens until trial end + grace period has passed. Then the
  merchant moves to MONTHLY (active period), DEPOSIT (balance) or is
  suspended. A trial that is still suspended is suspended again.
- DEPOSIT: an exhausted balance with an active period moves to MONTHLY.
  Without one the merchant stays ACTIVE until the nightly suspension sweep.
- MONTHLY: never changed here.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel
from src.domain.merchant_subscription import (
    MerchantSubscription,
    SubscriptionStatus,
    SubscriptionType,
)
from src.domain.subscription_history import SubscriptionEventType


TRIAL_EXPIRED_REASON = "Trial expired - no payment method available"


class SwitchAction(str, Enum):
    NO_CHANGE = "NO_CHANGE"
    AUTO_SWITCHED = "AUTO_SWITCHED"
    SUSPENDED = "SUSPENDED"
    REACTIVATED = "REACTIVATED"


class StoreEffect(str, Enum):
    NONE = "NONE"
    OPEN = "OPEN"
    CLOSE = "CLOSE"


class SwitchDecision(BaseModel):
    """Outcome of one auto-switch evaluation"""

    action: SwitchAction
    reason: str
    previous_type: Optional[str] = None
    previous_status: Optional[str] = None
    new_type: Optional[str] = None
    new_status: Optional[str] = None
    clear_trial: bool = False
    store_effect: StoreEffect = StoreEffect.NONE
    event_type: Optional[SubscriptionEventType] = None
    history_reason: Optional[str] = None

    @property
    def is_change(self) -> bool:
        return self.action != SwitchAction.NO_CHANGE


def _no_change(reason: str) -> SwitchDecision:
    return SwitchDecision(action=SwitchAction.NO_CHANGE, reason=reason)


def _switch_to(
    subscription: MerchantSubscription,
    new_type: SubscriptionType,
    reason: str,
    history_reason: str,
    clear_trial: bool,
) -> SwitchDecision:
    return SwitchDecision(
        action=SwitchAction.AUTO_SWITCHED,
        reason=reason,
        previous_type=subscription.type.value,
        previous_status=subscription.status.value,
        new_type=new_type.value,
        new_status=SubscriptionStatus.ACTIVE.value,
        clear_trial=clear_trial,
        store_effect=StoreEffect.OPEN,
        event_type=SubscriptionEventType.AUTO_SWITCHED,
        history_reason=history_reason,
    )


def _try_reactivate(
    subscription: MerchantSubscription, balance: Decimal, now: datetime
) -> Optional[SwitchDecision]:
    if subscription.type == SubscriptionType.MONTHLY:
        should_reactivate = subscription.has_active_period(now)
        reason = "Reactivated as Monthly (days added)"
    elif subscription.type == SubscriptionType.DEPOSIT:
        should_reactivate = balance > 0
        reason = "Reactivated as Deposit (balance available)"
    elif subscription.type == SubscriptionType.TRIAL:
        should_reactivate = subscription.trial_ends_at is not None and subscription.trial_ends_at > now
        reason = "Reactivated as Trial (trial still valid)"
    else:
        return None

    if not should_reactivate:
        return None

    return SwitchDecision(
        action=SwitchAction.REACTIVATED,
        reason=reason,
        previous_type=subscription.type.value,
        previous_status=SubscriptionStatus.SUSPENDED.value,
        new_type=subscription.type.value,
        new_status=SubscriptionStatus.ACTIVE.value,
        store_effect=StoreEffect.OPEN,
        event_type=SubscriptionEventType.REACTIVATED,
        history_reason=reason,
    )


def _decide_trial(
    subscription: MerchantSubscription, balance: Decimal, now: datetime, grace_period_days: int
) -> SwitchDecision:
    if subscription.trial_ends_at is None:
        return _no_change("Trial has no end date")

    grace_end = subscription.trial_ends_at + timedelta(days=grace_period_days)
    if now <= grace_end:
        return _no_change("Trial still valid")

    if subscription.has_active_period(now):
        return _switch_to(
            subscription,
            SubscriptionType.MONTHLY,
            reason="Trial expired, switched to Monthly (has active period)",
            history_reason="Trial expired, switched to Monthly",
            clear_trial=True,
        )

    if balance > 0:
        return _switch_to(
            subscription,
            SubscriptionType.DEPOSIT,
            reason="Trial expired, switched to Deposit (has balance)",
            history_reason="Trial expired, switched to Deposit",
            clear_trial=True,
        )

    return SwitchDecision(
        action=SwitchAction.SUSPENDED,
        reason=TRIAL_EXPIRED_REASON,
        previous_type=subscription.type.value,
        previous_status=subscription.status.value,
        new_type=subscription.type.value,
        new_status=SubscriptionStatus.SUSPENDED.value,
        store_effect=StoreEffect.CLOSE,
        event_type=SubscriptionEventType.SUSPENDED,
        history_reason=TRIAL_EXPIRED_REASON,
    )


def _decide_deposit(
    subscription: MerchantSubscription, balance: Decimal, now: datetime
) -> SwitchDecision:
    if balance > 0:
        return _no_change("Deposit balance available")

    if subscription.has_active_period(now):
        return _switch_to(
            subscription,
            SubscriptionType.MONTHLY,
            reason="Deposit balance exhausted, switched to Monthly (has active period)",
            history_reason="Deposit balance exhausted, switched to Monthly",
            clear_trial=False,
        )

    # Suspension of exhausted deposits belongs to the nightly sweep
    return _no_change("Deposit balance exhausted; awaiting nightly suspension")


def decide_auto_switch(
    subscription: MerchantSubscription,
    balance: Decimal,
    now: datetime,
    grace_period_days: int,
) -> SwitchDecision:
    """
    Decide the next billing state of an existing subscription

    Args:
        subscription: Current subscription row (not modified)
        balance: Current merchant balance (0 when no balance row exists)
        now: Evaluation time (naive UTC)
        grace_period_days: Days after trial end before the trial is switched

    Returns:
        SwitchDecision describing the transition, or NO_CHANGE
    """
    if subscription.status == SubscriptionStatus.SUSPENDED:
        reactivation = _try_reactivate(subscription, balance, now)
        if reactivation is not None:
            return reactivation

    if subscription.type == SubscriptionType.TRIAL:
        return _decide_trial(subscription, balance, now, grace_period_days)
    if subscription.type == SubscriptionType.DEPOSIT:
        return _decide_deposit(subscription, balance, now)
    if subscription.type == SubscriptionType.MONTHLY:
        return _no_change("Monthly subscription still valid")
    return _no_change("Unknown subscription type")


def build_period_metadata(
    previous_period_end: Optional[datetime], new_period_end: Optional[datetime]
) -> Optional[dict]:
    """periodFrom/periodTo/daysDelta for a history row, None without period bounds"""
    if previous_period_end is None and new_period_end is None:
        return None

    metadata = {}
    if previous_period_end is not None:
        metadata["periodFrom"] = previous_period_end.isoformat()
    if new_period_end is not None:
        metadata["periodTo"] = new_period_end.isoformat()
    if previous_period_end is not None and new_period_end is not None:
        delta = new_period_end - previous_period_end
        metadata["daysDelta"] = round(delta.total_seconds() / 86400)
    return metadata
