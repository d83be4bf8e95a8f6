from .unit_of_work import UnitOfWork
from .voucher_code_lock import VoucherCodeLock
from .discount_calculator import DiscountCalculator
from .store_visibility import StoreVisibilityController
from .subscription_history_recorder import SubscriptionHistoryRecorder

__all__ = [
    "UnitOfWork",
    "VoucherCodeLock",
    "DiscountCalculator",
    "StoreVisibilityController",
    "SubscriptionHistoryRecorder",
]
