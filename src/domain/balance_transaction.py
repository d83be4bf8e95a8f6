"""Balance Transaction Domain Entity

Immutable append-only audit trail of all balance mutations.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String
from src.domain.base import BaseModel, id_column, fk_column


class BalanceTransactionType(str, Enum):
    """Balance transaction types"""
    DEPOSIT = "DEPOSIT"            # Top-up or voucher credit
    ORDER_FEE = "ORDER_FEE"        # Per-order fee deducted from deposit
    SUBSCRIPTION = "SUBSCRIPTION"  # Monthly subscription payment
    REFUND = "REFUND"              # Money returned to the balance
    ADJUSTMENT = "ADJUSTMENT"      # Manual admin adjustment


class BalanceTransaction(BaseModel, table=True):
    """
    Balance Transaction - Immutable audit trail of balance mutations

    Domain Rules:
    - Transactions are immutable (append-only, never updated or deleted)
    - balance_after = balance_before + amount for credits
    - Linked to MerchantBalance via balance_id
    """

    __tablename__ = "balance_transactions"
    __table_args__ = (
        Index('ix_balance_transactions_balance_created', 'balance_id', 'created_at'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique transaction identifier (auto-increment)"
    )

    balance_id: int = Field(
        sa_column=fk_column("merchant_balances.id"),
        description="Foreign key to MerchantBalance"
    )

    type: BalanceTransactionType = Field(
        description="Type of transaction"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Transaction amount"
    )

    balance_before: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Balance before transaction"
    )

    balance_after: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Balance after transaction"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Human-readable description"
    )

    created_by_user_id: Optional[int] = Field(
        default=None,
        description="User who caused the mutation"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Transaction timestamp (immutable)"
    )
