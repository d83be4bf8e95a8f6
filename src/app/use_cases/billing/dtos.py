"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs. Response DTOs
serialize with camelCase keys, the format merchant dashboards consume.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from src.domain.balance_transaction import BalanceTransaction
from src.domain.merchant_subscription import MerchantSubscription
from src.domain.subscription_history import SubscriptionHistory

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RedeemVoucherCommandDTO(BaseModel):
    """
    Command DTO for redeeming a voucher

    Used as input to RedeemVoucher use case.
    """

    merchant_id: int = Field(
        ...,
        description="Merchant redeeming the voucher"
    )

    actor_user_id: Optional[int] = Field(
        default=None,
        description="Owner user performing the redemption"
    )

    code: str = Field(
        ...,
        description="Raw voucher code as typed by the user"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "merchant_id": 42,
                "actor_user_id": 7,
                "code": " welcome100 "
            }
        }


class SubscriptionDTO(CamelModel):
    """Snapshot of a merchant subscription row"""

    id: int
    merchant_id: int
    type: str
    status: str
    trial_started_at: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    suspended_at: Optional[datetime] = None
    suspend_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, subscription: MerchantSubscription) -> "SubscriptionDTO":
        return cls(
            id=subscription.id,
            merchant_id=subscription.merchant_id,
            type=subscription.type.value,
            status=subscription.status.value,
            trial_started_at=subscription.trial_started_at,
            trial_ends_at=subscription.trial_ends_at,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            suspended_at=subscription.suspended_at,
            suspend_reason=subscription.suspend_reason,
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        )


class RedeemVoucherDataDTO(CamelModel):
    """Payload of a successful redemption"""

    voucher_type: str
    value_applied: Decimal
    auto_switch_triggered: bool = False
    previous_sub_type: Optional[str] = None
    new_sub_type: Optional[str] = None
    subscription: Optional[SubscriptionDTO] = None
    balance: Decimal = Decimal("0")


class RedeemVoucherResponseDTO(BaseModel):
    """
    Response DTO for voucher redemption

    Returned by RedeemVoucher use case.
    """

    redemption_id: int
    message: str
    data: RedeemVoucherDataDTO


class AutoSwitchResultDTO(CamelModel):
    """
    Response DTO for subscription auto-switch evaluation

    Returned by EvaluateSubscription use case.
    """

    action: str
    reason: str
    previous_type: Optional[str] = None
    previous_status: Optional[str] = None
    new_type: Optional[str] = None
    new_status: Optional[str] = None
    store_opened: bool = False


class SubscriptionStateDTO(CamelModel):
    """Current billing standing of a merchant"""

    type: str
    status: str
    is_valid: bool
    days_remaining: Optional[int] = None
    trial_ends_at: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    suspend_reason: Optional[str] = None
    pending_suspension: bool = False
    pending_suspension_reason: Optional[str] = None
    balance: Optional[Decimal] = None
    currency: Optional[str] = None


class BalanceResponseDTO(CamelModel):
    """
    Response DTO for get balance operation

    Returned by GetBalance use case.
    """

    merchant_id: int
    balance: Decimal
    currency: str
    last_topup_at: Optional[datetime] = None


class PaginationDTO(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class BalanceTransactionDTO(CamelModel):
    """Single balance transaction in list responses"""

    id: int
    type: str
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: Optional[str] = None
    created_by_user_id: Optional[int] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, txn: BalanceTransaction) -> "BalanceTransactionDTO":
        return cls(
            id=txn.id,
            type=txn.type.value if hasattr(txn.type, "value") else txn.type,
            amount=txn.amount,
            balance_before=txn.balance_before,
            balance_after=txn.balance_after,
            description=txn.description,
            created_by_user_id=txn.created_by_user_id,
            created_at=txn.created_at,
        )


class ListBalanceTransactionsResponseDTO(CamelModel):
    transactions: List[BalanceTransactionDTO]
    pagination: PaginationDTO


class SubscriptionHistoryDTO(CamelModel):
    """Single subscription transition in list responses"""

    id: int
    event_type: str
    previous_type: Optional[str] = None
    previous_status: Optional[str] = None
    previous_balance: Optional[Decimal] = None
    previous_period_end: Optional[datetime] = None
    new_type: Optional[str] = None
    new_status: Optional[str] = None
    new_balance: Optional[Decimal] = None
    new_period_end: Optional[datetime] = None
    reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    triggered_by: str
    triggered_by_user_id: Optional[int] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: SubscriptionHistory) -> "SubscriptionHistoryDTO":
        return cls(
            id=entry.id,
            event_type=entry.event_type.value if hasattr(entry.event_type, "value") else entry.event_type,
            previous_type=entry.previous_type,
            previous_status=entry.previous_status,
            previous_balance=entry.previous_balance,
            previous_period_end=entry.previous_period_end,
            new_type=entry.new_type,
            new_status=entry.new_status,
            new_balance=entry.new_balance,
            new_period_end=entry.new_period_end,
            reason=entry.reason,
            metadata=_decode_metadata(entry),
            triggered_by=entry.triggered_by,
            triggered_by_user_id=entry.triggered_by_user_id,
            created_at=entry.created_at,
        )


def _decode_metadata(entry: SubscriptionHistory) -> Optional[Dict[str, Any]]:
    if not entry.metadata_json:
        return None
    try:
        decoded = json.loads(entry.metadata_json)
    except ValueError:
        logger.warning(f"Unreadable metadata on subscription history {entry.id}")
        return None
    return decoded if isinstance(decoded, dict) else None


class ListSubscriptionHistoryResponseDTO(CamelModel):
    history: List[SubscriptionHistoryDTO]
    pagination: PaginationDTO


class VoucherItemDTO(BaseModel):
    menu_id: Any = None
    subtotal: Decimal = Decimal("0")


class ValidateVoucherCommandDTO(BaseModel):
    """
    Command DTO for public order-voucher validation

    Used as input to ValidateVoucher use case.
    """

    merchant_code: str
    voucher_code: str
    order_type: str
    items: List[VoucherItemDTO] = Field(default_factory=list)


class VoucherValidationDTO(CamelModel):
    """Discount an order voucher would grant"""

    template_id: Optional[int] = None
    code_id: Optional[int] = None
    label: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    eligible_subtotal: Decimal
