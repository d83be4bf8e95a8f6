"""Merchant Balance Domain Entity

One balance row per merchant, created lazily on the first credit.
Balance changes are always mirrored by a BalanceTransaction.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Numeric
from src.domain.base import BaseModel, id_column, fk_column


class MerchantBalance(BaseModel, table=True):
    """
    Merchant Balance - deposit balance of a merchant

    Domain Rules:
    - One balance per merchant (merchant_id is unique)
    - Updated only under a row lock, together with a BalanceTransaction
    - last_topup_at tracks the most recent credit
    """

    __tablename__ = "merchant_balances"

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique balance identifier (auto-increment)"
    )

    merchant_id: int = Field(
        sa_column=fk_column("merchants.id", unique=True, index=True),
        description="Merchant ID (unique - one balance per merchant)"
    )

    balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Current balance"
    )

    last_topup_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the last credit"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Balance creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last balance update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "merchant_id": 42,
                "balance": "100000.00",
                "last_topup_at": "2024-01-01T00:00:00Z",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
