"""Voucher Redemption Domain Entity

Immutable record of one merchant successfully applying one voucher.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import UniqueConstraint, Numeric, String, Boolean
from src.domain.base import BaseModel, id_column, fk_column
from src.domain.voucher import VoucherType


class VoucherRedemption(BaseModel, table=True):
    """
    Voucher Redemption - audit row of a successful redemption

    Domain Rules:
    - At most one row per (voucher_id, merchant_id): a merchant can never
      redeem the same voucher twice
    - Captures before/after snapshots of the balance or subscription end
    - Only the auto-switch fields may be patched after insert
    """

    __tablename__ = "voucher_redemptions"
    __table_args__ = (
        UniqueConstraint('voucher_id', 'merchant_id', name='uq_voucher_redemptions_voucher_merchant'),
        Index('ix_voucher_redemptions_merchant_id', 'merchant_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique redemption identifier (auto-increment)"
    )

    voucher_id: int = Field(
        sa_column=fk_column("vouchers.id"),
        description="Foreign key to Voucher"
    )

    merchant_id: int = Field(
        sa_column=fk_column("merchants.id"),
        description="Merchant that redeemed the voucher"
    )

    redeemed_by_user_id: Optional[int] = Field(
        default=None,
        description="User who performed the redemption"
    )

    voucher_code: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Voucher code at redemption time"
    )

    voucher_type: VoucherType = Field(
        description="Voucher type at redemption time"
    )

    value_applied: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Voucher value applied"
    )

    currency: Optional[str] = Field(
        default=None,
        sa_column=Column(String(3), nullable=True),
        description="Merchant currency at redemption time"
    )

    balance_before: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 2), nullable=True),
        description="Balance before a BALANCE redemption"
    )

    balance_after: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 2), nullable=True),
        description="Balance after a BALANCE redemption"
    )

    subscription_end_before: Optional[datetime] = Field(
        default=None,
        description="Period end before a SUBSCRIPTION_DAYS redemption"
    )

    subscription_end_after: Optional[datetime] = Field(
        default=None,
        description="Period end after a SUBSCRIPTION_DAYS redemption"
    )

    triggered_auto_switch: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether the redemption changed the subscription type"
    )

    previous_sub_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(20), nullable=True),
        description="Subscription type before the switch (NONE if absent)"
    )

    new_sub_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(20), nullable=True),
        description="Subscription type after the switch"
    )

    redeemed_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Redemption timestamp"
    )
