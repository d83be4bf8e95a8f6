from .merchant_repository import MerchantRepository
from .voucher_repository import VoucherRepository
from .voucher_redemption_repository import VoucherRedemptionRepository, DuplicateRedemptionError
from .merchant_balance_repository import MerchantBalanceRepository
from .balance_transaction_repository import BalanceTransactionRepository
from .merchant_subscription_repository import MerchantSubscriptionRepository, DuplicateSubscriptionError
from .subscription_history_repository import SubscriptionHistoryRepository
from .subscription_plan_repository import SubscriptionPlanRepository

__all__ = [
    "MerchantRepository",
    "VoucherRepository",
    "VoucherRedemptionRepository",
    "MerchantBalanceRepository",
    "BalanceTransactionRepository",
    "MerchantSubscriptionRepository",
    "SubscriptionHistoryRepository",
    "SubscriptionPlanRepository",
    "DuplicateRedemptionError",
    "DuplicateSubscriptionError",
]
