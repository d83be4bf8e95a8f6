"""EvaluateSubscription Use Case

Runs the subscription auto-switch engine for one merchant and applies the
resulting transition: subscription row update, store visibility toggle and
history row, all in one unit of work.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.store_visibility import StoreVisibilityController
from src.app.services.subscription_history_recorder import SubscriptionHistoryRecorder
from src.app.repositories.merchant_repository import MerchantRepository
from src.app.repositories.merchant_balance_repository import MerchantBalanceRepository
from src.app.repositories.merchant_subscription_repository import (
    MerchantSubscriptionRepository,
    DuplicateSubscriptionError,
)
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from src.domain.merchant import Merchant
from src.domain.merchant_subscription import (
    MerchantSubscription,
    SubscriptionType,
    SubscriptionStatus,
    NO_SUBSCRIPTION,
)
from src.domain.subscription_history import SubscriptionEventType
from src.domain.subscription_plan import (
    SubscriptionPlan,
    DEFAULT_TRIAL_DAYS,
    DEFAULT_GRACE_PERIOD_DAYS,
    resolve_trial_days,
    resolve_grace_period_days,
)
from src.domain.subscription_policy import (
    SwitchAction,
    SwitchDecision,
    StoreEffect,
    decide_auto_switch,
    build_period_metadata,
)
from .dtos import AutoSwitchResultDTO

logger = logging.getLogger(__name__)


class EvaluateSubscription:
    """
    Use Case: Evaluate and apply the subscription auto-switch

    Business Rules:
    1. A merchant without a subscription is provisioned as TRIAL/ACTIVE
       with the plan's trial length
    2. The transition itself is decided by decide_auto_switch (pure)
    3. The subscription row is mutated under a row lock
    4. Store visibility and history are best-effort: their failures are
       logged and never undo the subscription mutation
    5. Re-evaluating an unchanged state is a NO_CHANGE (idempotent)

    Flow:
    1. Load merchant
    2. Load subscription with lock (provision TRIAL if absent)
    3. Load balance and plan grace period
    4. Decide transition
    5. Apply transition, toggle store, record history
    6. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        merchant_repo: MerchantRepository,
        subscription_repo: MerchantSubscriptionRepository,
        balance_repo: MerchantBalanceRepository,
        plan_repo: SubscriptionPlanRepository,
        store_visibility: StoreVisibilityController,
        history_recorder: SubscriptionHistoryRecorder,
        clock: Callable[[], datetime] = datetime.utcnow,
        default_trial_days: int = DEFAULT_TRIAL_DAYS,
        default_grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS,
    ):
        self.uow = uow
        self.merchant_repo = merchant_repo
        self.subscription_repo = subscription_repo
        self.balance_repo = balance_repo
        self.plan_repo = plan_repo
        self.store_visibility = store_visibility
        self.history_recorder = history_recorder
        self.clock = clock
        self.default_trial_days = default_trial_days
        self.default_grace_period_days = default_grace_period_days

    async def execute(self, merchant_id: int) -> Result[AutoSwitchResultDTO]:
        """
        Execute auto-switch evaluation

        Args:
            merchant_id: Merchant to evaluate

        Returns:
            Result[AutoSwitchResultDTO]: Applied action or error
        """
        try:
            # Step 1: Merchant must exist
            merchant = await self.merchant_repo.get_by_id(merchant_id)
            if not merchant:
                return Return.err(
                    Error(
                        code="MERCHANT_NOT_FOUND",
                        message=f"Merchant {merchant_id} not found",
                    )
                )

            now = self.clock()
            plan = await self.plan_repo.get_active_plan()

            # Step 2: Get subscription with pessimistic lock
            subscription = await self.subscription_repo.get_by_merchant_id(
                merchant_id, for_update=True
            )
            if subscription is None:
                result = await self._provision_trial(merchant_id, plan, now)
                await self.uow.commit()
                self._log_result(merchant_id, result)
                return Return.ok(result)

            # Step 3: Inputs of the decision
            balance = await self._current_balance(merchant_id)
            grace_period_days = self._grace_period_days(plan)

            # Step 4: Decide
            decision = decide_auto_switch(subscription, balance, now, grace_period_days)
            if not decision.is_change:
                await self.uow.commit()
                return Return.ok(
                    AutoSwitchResultDTO(
                        action=decision.action.value,
                        reason=decision.reason,
                        previous_type=subscription.type.value,
                        previous_status=subscription.status.value,
                        new_type=subscription.type.value,
                        new_status=subscription.status.value,
                    )
                )

            # Step 5: Apply transition
            previous_period_end = subscription.current_period_end
            self._apply(subscription, decision, now)
            await self.subscription_repo.update(subscription)

            store_opened = await self._apply_store_effect(merchant, decision.store_effect)

            await self.history_recorder.record(
                merchant_id=merchant_id,
                event_type=decision.event_type,
                previous_type=decision.previous_type,
                previous_status=decision.previous_status,
                previous_balance=balance,
                previous_period_end=previous_period_end,
                new_type=decision.new_type,
                new_status=decision.new_status,
                new_balance=balance,
                new_period_end=subscription.current_period_end,
                reason=decision.history_reason or decision.reason,
                metadata=build_period_metadata(previous_period_end, subscription.current_period_end),
            )

            # Step 6: Commit
            await self.uow.commit()

            result = AutoSwitchResultDTO(
                action=decision.action.value,
                reason=decision.reason,
                previous_type=decision.previous_type,
                previous_status=decision.previous_status,
                new_type=decision.new_type,
                new_status=decision.new_status,
                store_opened=store_opened,
            )
            self._log_result(merchant_id, result)
            return Return.ok(result)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Subscription auto-switch failed for merchant {merchant_id}: {e}")
            return Return.err(
                Error(
                    code="AUTO_SWITCH_FAILED",
                    message="Failed to evaluate subscription",
                    reason=str(e),
                )
            )

    async def _provision_trial(
        self, merchant_id: int, plan: Optional[SubscriptionPlan], now: datetime
    ) -> AutoSwitchResultDTO:
        trial_ends_at = now + timedelta(days=self._trial_days(plan))
        subscription = MerchantSubscription(
            merchant_id=merchant_id,
            type=SubscriptionType.TRIAL,
            status=SubscriptionStatus.ACTIVE,
            trial_started_at=now,
            trial_ends_at=trial_ends_at,
            created_at=now,
            updated_at=now,
        )

        try:
            async with self.uow.savepoint():
                await self.subscription_repo.create(subscription)
        except DuplicateSubscriptionError:
            # Another request provisioned the merchant first
            return AutoSwitchResultDTO(
                action=SwitchAction.NO_CHANGE.value,
                reason="Subscription already exists",
            )

        reason = "No subscription found, started trial"
        await self.history_recorder.record(
            merchant_id=merchant_id,
            event_type=SubscriptionEventType.AUTO_SWITCHED,
            previous_type=NO_SUBSCRIPTION,
            previous_status=None,
            previous_balance=None,
            previous_period_end=None,
            new_type=SubscriptionType.TRIAL.value,
            new_status=SubscriptionStatus.ACTIVE.value,
            new_balance=None,
            new_period_end=None,
            reason=reason,
            metadata={"trialEndsAt": trial_ends_at.isoformat()},
        )

        return AutoSwitchResultDTO(
            action=SwitchAction.AUTO_SWITCHED.value,
            reason=reason,
            previous_type=NO_SUBSCRIPTION,
            new_type=SubscriptionType.TRIAL.value,
            new_status=SubscriptionStatus.ACTIVE.value,
        )

    async def _current_balance(self, merchant_id: int) -> Decimal:
        balance = await self.balance_repo.get_by_merchant_id(merchant_id)
        if balance is None:
            return Decimal("0")
        return Decimal(balance.balance)

    def _trial_days(self, plan: Optional[SubscriptionPlan]) -> int:
        return resolve_trial_days(plan, self.default_trial_days)

    def _grace_period_days(self, plan: Optional[SubscriptionPlan]) -> int:
        return resolve_grace_period_days(plan, self.default_grace_period_days)

    def _apply(self, subscription: MerchantSubscription, decision: SwitchDecision, now: datetime) -> None:
        subscription.type = SubscriptionType(decision.new_type)
        subscription.status = SubscriptionStatus(decision.new_status)
        if decision.clear_trial:
            subscription.trial_ends_at = None
        if subscription.status == SubscriptionStatus.SUSPENDED:
            subscription.suspended_at = now
            subscription.suspend_reason = decision.reason
        else:
            subscription.clear_suspension()
        subscription.updated_at = now

    async def _apply_store_effect(self, merchant: Merchant, effect: StoreEffect) -> bool:
        """Returns True only when the store was reopened"""
        if effect == StoreEffect.OPEN:
            return await self.store_visibility.reopen(merchant)
        if effect == StoreEffect.CLOSE:
            await self.store_visibility.close(merchant)
        return False

    def _log_result(self, merchant_id: int, result: AutoSwitchResultDTO) -> None:
        if result.action == SwitchAction.NO_CHANGE.value:
            return
        logger.info(
            f"billing.auto_switch merchant_id={merchant_id} action={result.action} "
            f"previous={result.previous_type}/{result.previous_status} "
            f"new={result.new_type}/{result.new_status} store_opened={result.store_opened} "
            f"reason={result.reason!r}"
        )
