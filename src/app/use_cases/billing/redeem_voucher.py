"""RedeemVoucher Use Case

Applies a BALANCE or SUBSCRIPTION_DAYS voucher to a merchant with
at-most-once semantics per (voucher, merchant).
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional
from pydantic import BaseModel
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.voucher_code_lock import VoucherCodeLock
from src.app.repositories.merchant_repository import MerchantRepository
from src.app.repositories.voucher_repository import VoucherRepository
from src.app.repositories.voucher_redemption_repository import (
    VoucherRedemptionRepository,
    DuplicateRedemptionError,
)
from src.app.repositories.merchant_balance_repository import MerchantBalanceRepository
from src.app.repositories.balance_transaction_repository import BalanceTransactionRepository
from src.app.repositories.merchant_subscription_repository import MerchantSubscriptionRepository
from src.domain.balance_transaction import BalanceTransaction, BalanceTransactionType
from src.domain.currency import format_currency_label
from src.domain.merchant_balance import MerchantBalance
from src.domain.merchant_subscription import (
    MerchantSubscription,
    SubscriptionType,
    SubscriptionStatus,
    NO_SUBSCRIPTION,
)
from src.domain.subscription_policy import SwitchAction
from src.domain.voucher import Voucher, VoucherType, normalize_voucher_code
from src.domain.voucher_redemption import VoucherRedemption
from .dtos import (
    RedeemVoucherCommandDTO,
    RedeemVoucherDataDTO,
    RedeemVoucherResponseDTO,
    SubscriptionDTO,
)
from .evaluate_subscription import EvaluateSubscription

logger = logging.getLogger(__name__)


def _reject(code: str, message: str) -> Result:
    return Return.err(Error(code=code, message=message))


class RedemptionOutcome(BaseModel):
    """Committed redemption, detached from the session that wrote it"""

    redemption_id: int
    merchant_id: int
    voucher_type: VoucherType
    value_applied: Decimal
    currency: Optional[str] = None
    subscription_end_after: Optional[datetime] = None
    triggered_auto_switch: bool = False
    previous_sub_type: Optional[str] = None
    new_sub_type: Optional[str] = None

    @classmethod
    def from_entity(cls, redemption: VoucherRedemption) -> "RedemptionOutcome":
        return cls(
            redemption_id=redemption.id,
            merchant_id=redemption.merchant_id,
            voucher_type=redemption.voucher_type,
            value_applied=redemption.value_applied,
            currency=redemption.currency,
            subscription_end_after=redemption.subscription_end_after,
            triggered_auto_switch=redemption.triggered_auto_switch,
            previous_sub_type=redemption.previous_sub_type,
            new_sub_type=redemption.new_sub_type,
        )


class RedeemVoucher:
    """
    Use Case: Redeem a voucher for a merchant

    Business Rules:
    1. Codes are case-insensitive (trimmed and upper-cased)
    2. Redemptions of one code are serialized by a per-code lock held for
       the whole unit of work
    3. A merchant redeems a voucher at most once
    4. A voucher is redeemed at most max_usage times across all merchants
    5. Day extensions start from the later of now and the current period
       end; days lost after expiry are never compounded
    6. All writes commit together or not at all
    7. BALANCE redemptions re-evaluate the subscription afterwards; that
       step is best-effort and never fails the redemption

    Flow:
    1. Normalize code, acquire code lock
    2. Load merchant and voucher (row lock)
    3. Validate voucher (first failing rule wins)
    4. Credit balance or extend subscription
    5. Insert redemption, increment usage, commit
    6. Auto-switch evaluation for BALANCE vouchers
    7. Build response with fresh subscription and balance snapshots
    """

    def __init__(
        self,
        uow: UnitOfWork,
        code_lock: VoucherCodeLock,
        merchant_repo: MerchantRepository,
        voucher_repo: VoucherRepository,
        redemption_repo: VoucherRedemptionRepository,
        balance_repo: MerchantBalanceRepository,
        transaction_repo: BalanceTransactionRepository,
        subscription_repo: MerchantSubscriptionRepository,
        auto_switch: Optional[EvaluateSubscription] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.code_lock = code_lock
        self.merchant_repo = merchant_repo
        self.voucher_repo = voucher_repo
        self.redemption_repo = redemption_repo
        self.balance_repo = balance_repo
        self.transaction_repo = transaction_repo
        self.subscription_repo = subscription_repo
        self.auto_switch = auto_switch
        self.clock = clock

    async def execute(self, command: RedeemVoucherCommandDTO) -> Result[RedeemVoucherResponseDTO]:
        """
        Execute voucher redemption

        Args:
            command: RedeemVoucherCommandDTO with merchant_id, actor_user_id, code

        Returns:
            Result[RedeemVoucherResponseDTO]: Success with redemption details or error
        """
        # Step 1: Client validation happens before any lock is taken
        code = normalize_voucher_code(command.code)
        if not code:
            return _reject("VALIDATION_ERROR", "Voucher code is required")

        try:
            async with self.code_lock.hold(code):
                result = await self._redeem_locked(command, code)
        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Voucher redemption failed for merchant {command.merchant_id} code {code}: {e}",
                exc_info=True,
            )
            return Return.err(
                Error(
                    code="INTERNAL_ERROR",
                    message="Failed to redeem voucher",
                    reason=str(e),
                )
            )

        if result.is_err():
            return result

        redemption = result.value

        # Step 6: Auto-switch runs in its own unit of work
        if redemption.voucher_type == VoucherType.BALANCE:
            await self._auto_switch_after_credit(redemption)

        return Return.ok(await self._build_response(redemption))

    async def _redeem_locked(
        self, command: RedeemVoucherCommandDTO, code: str
    ) -> Result[RedemptionOutcome]:
        now = self.clock()

        # Step 2: Merchant and voucher (row lock)
        merchant = await self.merchant_repo.get_by_id(command.merchant_id)
        if not merchant:
            await self.uow.rollback()
            return _reject("MERCHANT_NOT_FOUND", "Merchant not found")

        voucher = await self.voucher_repo.get_by_code(code, for_update=True)
        if not voucher:
            await self.uow.rollback()
            return _reject("VOUCHER_NOT_FOUND", "Voucher not found")

        # Step 3: Ordered validation
        rejection = await self._validate(voucher, merchant.id, merchant.currency, now)
        if rejection is not None:
            await self.uow.rollback()
            return rejection

        redemption = VoucherRedemption(
            voucher_id=voucher.id,
            merchant_id=merchant.id,
            redeemed_by_user_id=command.actor_user_id,
            voucher_code=voucher.code,
            voucher_type=voucher.type,
            value_applied=voucher.value,
            currency=merchant.currency,
            redeemed_at=now,
        )

        # Step 4: Apply voucher
        if voucher.type == VoucherType.BALANCE:
            await self._credit_balance(voucher, redemption, command.actor_user_id, now)
        elif voucher.type == VoucherType.SUBSCRIPTION_DAYS:
            days_to_add = voucher.days_to_add()
            if days_to_add <= 0:
                await self.uow.rollback()
                return _reject("VOUCHER_INVALID", "Voucher value must be greater than 0")
            await self._extend_subscription(merchant.id, days_to_add, redemption, now)
        else:
            await self.uow.rollback()
            return _reject("VOUCHER_INVALID", "Unsupported voucher type")

        # Step 5: Redemption row, usage counter, commit
        try:
            redemption = await self.redemption_repo.create(redemption)
        except DuplicateRedemptionError:
            await self.uow.rollback()
            return _reject("ALREADY_REDEEMED", "You have already used this voucher")

        await self.voucher_repo.increment_usage(voucher.id)
        await self.uow.commit()

        outcome = RedemptionOutcome.from_entity(redemption)
        logger.info(
            f"Voucher {voucher.code} ({voucher.type.value}) redeemed by merchant {merchant.id}, "
            f"redemption {outcome.redemption_id}"
        )
        return Return.ok(outcome)

    async def _validate(
        self, voucher: Voucher, merchant_id: int, merchant_currency: Optional[str], now: datetime
    ) -> Optional[Result]:
        if not voucher.is_active:
            return _reject("VOUCHER_INACTIVE", "This voucher is no longer active")

        if not voucher.matches_currency(merchant_currency):
            return _reject(
                "CURRENCY_MISMATCH",
                f"This voucher is only valid for {voucher.currency} merchants",
            )

        if voucher.valid_from is not None and now < voucher.valid_from:
            return _reject("VOUCHER_NOT_STARTED", "This voucher is not yet valid")

        if voucher.valid_until is not None and now > voucher.valid_until:
            return _reject("VOUCHER_EXPIRED", "This voucher has expired")

        if voucher.has_reached_limit():
            return _reject("VOUCHER_LIMIT_REACHED", "This voucher has reached its usage limit")

        if await self.redemption_repo.exists_for(voucher.id, merchant_id):
            return _reject("ALREADY_REDEEMED", "You have already used this voucher")

        return None

    async def _credit_balance(
        self,
        voucher: Voucher,
        redemption: VoucherRedemption,
        actor_user_id: Optional[int],
        now: datetime,
    ) -> None:
        amount = Decimal(voucher.value)

        balance = await self.balance_repo.get_by_merchant_id(redemption.merchant_id, for_update=True)
        if balance is None:
            balance = await self.balance_repo.create(
                MerchantBalance(
                    merchant_id=redemption.merchant_id,
                    balance=Decimal("0"),
                    created_at=now,
                    updated_at=now,
                )
            )

        balance_before = Decimal(balance.balance)
        balance_after = balance_before + amount

        await self.balance_repo.update_balance(balance.id, balance_after, topped_up_at=now)
        await self.transaction_repo.create(
            BalanceTransaction(
                balance_id=balance.id,
                type=BalanceTransactionType.DEPOSIT,
                amount=amount,
                balance_before=balance_before,
                balance_after=balance_after,
                description=f"Voucher redemption: {voucher.code}",
                created_by_user_id=actor_user_id,
                created_at=now,
            )
        )

        redemption.balance_before = balance_before
        redemption.balance_after = balance_after

    async def _extend_subscription(
        self, merchant_id: int, days_to_add: int, redemption: VoucherRedemption, now: datetime
    ) -> None:
        subscription = await self.subscription_repo.get_by_merchant_id(merchant_id, for_update=True)

        if subscription is None:
            new_period_end = now + timedelta(days=days_to_add)
            await self.subscription_repo.create(
                MerchantSubscription(
                    merchant_id=merchant_id,
                    type=SubscriptionType.MONTHLY,
                    status=SubscriptionStatus.ACTIVE,
                    current_period_start=now,
                    current_period_end=new_period_end,
                    created_at=now,
                    updated_at=now,
                )
            )
            redemption.subscription_end_after = new_period_end
            redemption.triggered_auto_switch = True
            redemption.previous_sub_type = NO_SUBSCRIPTION
            redemption.new_sub_type = SubscriptionType.MONTHLY.value
            return

        previous_type = subscription.type
        period_end_before = subscription.current_period_end

        # Extend from the later of now and the existing expiry
        base_date = period_end_before if subscription.has_active_period(now) else now
        new_period_end = base_date + timedelta(days=days_to_add)

        if previous_type == SubscriptionType.TRIAL:
            subscription.type = SubscriptionType.MONTHLY
            redemption.triggered_auto_switch = True

        subscription.status = SubscriptionStatus.ACTIVE
        if subscription.current_period_start is None:
            subscription.current_period_start = now
        subscription.current_period_end = new_period_end
        subscription.clear_suspension()
        subscription.updated_at = now
        await self.subscription_repo.update(subscription)

        redemption.subscription_end_before = period_end_before
        redemption.subscription_end_after = new_period_end
        redemption.previous_sub_type = previous_type.value
        redemption.new_sub_type = subscription.type.value

    async def _auto_switch_after_credit(self, redemption: RedemptionOutcome) -> None:
        if self.auto_switch is None:
            return

        result = await self.auto_switch.execute(redemption.merchant_id)
        if result.is_err():
            logger.warning(
                f"Auto-switch after redemption {redemption.redemption_id} failed: {result.error.message} "
                f"({result.error.reason})"
            )
            return

        switch = result.value
        if switch.action != SwitchAction.AUTO_SWITCHED.value:
            return

        redemption.triggered_auto_switch = True
        redemption.previous_sub_type = switch.previous_type
        redemption.new_sub_type = switch.new_type

        try:
            await self.redemption_repo.mark_auto_switch(
                redemption.redemption_id, switch.previous_type, switch.new_type
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.warning(f"Failed to flag auto-switch on redemption {redemption.redemption_id}: {e}")

    async def _build_response(self, redemption: RedemptionOutcome) -> RedeemVoucherResponseDTO:
        subscription_dto = None
        balance_value = Decimal("0")
        try:
            subscription = await self.subscription_repo.get_by_merchant_id(redemption.merchant_id)
            if subscription is not None:
                subscription_dto = SubscriptionDTO.from_entity(subscription)
            balance = await self.balance_repo.get_by_merchant_id(redemption.merchant_id)
            if balance is not None:
                balance_value = Decimal(balance.balance)
        except Exception as e:
            logger.warning(f"Failed to load billing snapshot after redemption {redemption.redemption_id}: {e}")

        triggered = redemption.triggered_auto_switch
        return RedeemVoucherResponseDTO(
            redemption_id=redemption.redemption_id,
            message=self._success_message(redemption),
            data=RedeemVoucherDataDTO(
                voucher_type=redemption.voucher_type.value,
                value_applied=redemption.value_applied,
                auto_switch_triggered=triggered,
                previous_sub_type=redemption.previous_sub_type if triggered else None,
                new_sub_type=redemption.new_sub_type if triggered else None,
                subscription=subscription_dto,
                balance=balance_value,
            ),
        )

    def _success_message(self, redemption: RedemptionOutcome) -> str:
        if redemption.voucher_type == VoucherType.BALANCE:
            label = format_currency_label(redemption.value_applied, redemption.currency)
            return f"Successfully added {label} to your balance"

        if (
            redemption.voucher_type == VoucherType.SUBSCRIPTION_DAYS
            and redemption.subscription_end_after is not None
        ):
            valid_until = redemption.subscription_end_after
            days = int(Decimal(redemption.value_applied) // 1)
            return (
                f"Successfully added {days} days to your subscription "
                f"(valid until {valid_until.month}/{valid_until.day}/{valid_until.year})"
            )

        return "Voucher redeemed successfully"
