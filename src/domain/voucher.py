"""Voucher Domain Entity

Redeemable code granting either a balance credit or extra subscription days.
"""

import math
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric, String, Integer, Boolean
from src.domain.base import BaseModel, id_column


class VoucherType(str, Enum):
    """Voucher types"""
    BALANCE = "BALANCE"                      # Credits the merchant balance
    SUBSCRIPTION_DAYS = "SUBSCRIPTION_DAYS"  # Extends the monthly subscription period


def normalize_voucher_code(raw_code: Optional[str]) -> str:
    """Trim and upper-case a voucher code (codes are case-insensitive)"""
    return (raw_code or "").strip().upper()


class Voucher(BaseModel, table=True):
    """
    Voucher - Redeemable balance or subscription-days code

    Domain Rules:
    - code is unique and stored normalized (upper-case, trimmed)
    - current_usage only ever increases, by one per redemption
    - current_usage <= max_usage when max_usage is set
    - currency restricts redemption to merchants with the same currency
    """

    __tablename__ = "vouchers"
    __table_args__ = (
        CheckConstraint('current_usage >= 0', name='current_usage_non_negative'),
        CheckConstraint(
            'max_usage IS NULL OR current_usage <= max_usage',
            name='current_usage_within_max_usage',
        ),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique voucher identifier (auto-increment)"
    )

    code: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True, index=True),
        description="Normalized voucher code"
    )

    type: VoucherType = Field(
        description="Voucher type (BALANCE, SUBSCRIPTION_DAYS)"
    )

    value: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Balance amount or number of days"
    )

    currency: Optional[str] = Field(
        default=None,
        sa_column=Column(String(3), nullable=True),
        description="Optional currency restriction (ISO 4217)"
    )

    max_usage: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True),
        description="Maximum number of redemptions (None = unlimited)"
    )

    current_usage: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Number of successful redemptions"
    )

    valid_from: Optional[datetime] = Field(
        default=None,
        description="Voucher cannot be redeemed before this time"
    )

    valid_until: Optional[datetime] = Field(
        default=None,
        description="Voucher cannot be redeemed after this time"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Inactive vouchers are rejected"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Voucher creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    def days_to_add(self) -> int:
        """Number of whole days a SUBSCRIPTION_DAYS voucher grants"""
        return math.floor(Decimal(self.value))

    def has_reached_limit(self) -> bool:
        return self.max_usage is not None and self.current_usage >= self.max_usage

    def matches_currency(self, currency: Optional[str]) -> bool:
        if not self.currency:
            return True
        return self.currency.strip().upper() == (currency or "").strip().upper()

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "code": "WELCOME100",
                "type": "BALANCE",
                "value": "100000.00",
                "currency": "IDR",
                "max_usage": 500,
                "current_usage": 12,
                "valid_from": "2024-01-01T00:00:00Z",
                "valid_until": "2024-12-31T23:59:59Z",
                "is_active": True,
            }
        }
