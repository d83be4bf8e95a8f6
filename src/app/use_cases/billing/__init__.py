"""Billing domain use cases"""
from .evaluate_subscription import EvaluateSubscription
from .redeem_voucher import RedeemVoucher
from .get_subscription_state import GetSubscriptionState
from .get_balance import GetBalance
from .list_balance_transactions import ListBalanceTransactions
from .list_subscription_history import ListSubscriptionHistory
from .validate_voucher import ValidateVoucher
from .dtos import (
    RedeemVoucherCommandDTO,
    RedeemVoucherDataDTO,
    RedeemVoucherResponseDTO,
    SubscriptionDTO,
    AutoSwitchResultDTO,
    SubscriptionStateDTO,
    BalanceResponseDTO,
    PaginationDTO,
    BalanceTransactionDTO,
    ListBalanceTransactionsResponseDTO,
    SubscriptionHistoryDTO,
    ListSubscriptionHistoryResponseDTO,
    ValidateVoucherCommandDTO,
    VoucherItemDTO,
    VoucherValidationDTO,
)

__all__ = [
    "EvaluateSubscription",
    "RedeemVoucher",
    "GetSubscriptionState",
    "GetBalance",
    "ListBalanceTransactions",
    "ListSubscriptionHistory",
    "ValidateVoucher",
    "RedeemVoucherCommandDTO",
    "RedeemVoucherDataDTO",
    "RedeemVoucherResponseDTO",
    "SubscriptionDTO",
    "AutoSwitchResultDTO",
    "SubscriptionStateDTO",
    "BalanceResponseDTO",
    "PaginationDTO",
    "BalanceTransactionDTO",
    "ListBalanceTransactionsResponseDTO",
    "SubscriptionHistoryDTO",
    "ListSubscriptionHistoryResponseDTO",
    "ValidateVoucherCommandDTO",
    "VoucherItemDTO",
    "VoucherValidationDTO",
]
