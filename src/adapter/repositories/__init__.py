from .merchant_repository import SqlAlchemyMerchantRepository
from .voucher_repository import SqlAlchemyVoucherRepository
from .voucher_redemption_repository import SqlAlchemyVoucherRedemptionRepository
from .merchant_balance_repository import SqlAlchemyMerchantBalanceRepository
from .balance_transaction_repository import SqlAlchemyBalanceTransactionRepository
from .merchant_subscription_repository import SqlAlchemyMerchantSubscriptionRepository
from .subscription_history_repository import SqlAlchemySubscriptionHistoryRepository
from .subscription_plan_repository import SqlAlchemySubscriptionPlanRepository

__all__ = [
    "SqlAlchemyMerchantRepository",
    "SqlAlchemyVoucherRepository",
    "SqlAlchemyVoucherRedemptionRepository",
    "SqlAlchemyMerchantBalanceRepository",
    "SqlAlchemyBalanceTransactionRepository",
    "SqlAlchemyMerchantSubscriptionRepository",
    "SqlAlchemySubscriptionHistoryRepository",
    "SqlAlchemySubscriptionPlanRepository",
]
