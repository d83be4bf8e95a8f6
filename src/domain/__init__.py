from .base import BaseModel
from .merchant import Merchant
from .voucher import Voucher, VoucherType, normalize_voucher_code
from .voucher_redemption import VoucherRedemption
from .merchant_balance import MerchantBalance
from .balance_transaction import BalanceTransaction, BalanceTransactionType
from .merchant_subscription import (
    MerchantSubscription,
    SubscriptionType,
    SubscriptionStatus,
    NO_SUBSCRIPTION,
)
from .subscription_history import SubscriptionHistory, SubscriptionEventType
from .subscription_plan import SubscriptionPlan

__all__ = [
    "BaseModel",
    "Merchant",
    "Voucher",
    "VoucherType",
    "normalize_voucher_code",
    "VoucherRedemption",
    "MerchantBalance",
    "BalanceTransaction",
    "BalanceTransactionType",
    "MerchantSubscription",
    "SubscriptionType",
    "SubscriptionStatus",
    "NO_SUBSCRIPTION",
    "SubscriptionHistory",
    "SubscriptionEventType",
    "SubscriptionPlan",
]
