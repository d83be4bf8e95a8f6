from .unit_of_work import SqlAlchemyUnitOfWork
from .voucher_code_lock import (
    PostgresAdvisoryCodeLock,
    InProcessCodeLock,
    KeyedLockRegistry,
    create_voucher_code_lock,
)
from .discount_calculator import HttpDiscountCalculator

__all__ = [
    "SqlAlchemyUnitOfWork",
    "PostgresAdvisoryCodeLock",
    "InProcessCodeLock",
    "KeyedLockRegistry",
    "create_voucher_code_lock",
    "HttpDiscountCalculator",
]
