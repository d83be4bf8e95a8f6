"""Merchant Subscription Domain Entity

Current billing state of a merchant.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, id_column, fk_column


class SubscriptionType(str, Enum):
    """Billing model of a merchant"""
    TRIAL = "TRIAL"      # Free trial with a fixed end date
    DEPOSIT = "DEPOSIT"  # Pay-per-order from a prepaid balance
    MONTHLY = "MONTHLY"  # Paid period with a fixed end date


class SubscriptionStatus(str, Enum):
    """Subscription status types"""
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


# Placeholder used in results and audit rows when no subscription existed
NO_SUBSCRIPTION = "NONE"


class MerchantSubscription(BaseModel, table=True):
    """
    Merchant Subscription - billing state of a merchant

    Domain Rules:
    - Exactly one row per merchant once created (merchant_id is unique)
    - Absence of a row means the merchant was never provisioned
    - suspended_at / suspend_reason are set only while SUSPENDED
    - Mutated only under a row lock inside a unit of work
    """

    __tablename__ = "merchant_subscriptions"

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique subscription identifier (auto-increment)"
    )

    merchant_id: int = Field(
        sa_column=fk_column("merchants.id", unique=True, index=True),
        description="Merchant ID (unique - one subscription per merchant)"
    )

    type: SubscriptionType = Field(
        description="Subscription type (TRIAL, DEPOSIT, MONTHLY)"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.ACTIVE,
        description="Subscription status (ACTIVE, SUSPENDED)"
    )

    trial_started_at: Optional[datetime] = Field(default=None)
    trial_ends_at: Optional[datetime] = Field(default=None)
    current_period_start: Optional[datetime] = Field(default=None)
    current_period_end: Optional[datetime] = Field(default=None)
    suspended_at: Optional[datetime] = Field(default=None)

    suspend_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Why the subscription was suspended"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Subscription creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    def has_active_period(self, now: datetime) -> bool:
        return self.current_period_end is not None and self.current_period_end > now

    def clear_suspension(self) -> None:
        self.suspended_at = None
        self.suspend_reason = None

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "merchant_id": 42,
                "type": "TRIAL",
                "status": "ACTIVE",
                "trial_started_at": "2024-01-01T00:00:00Z",
                "trial_ends_at": "2024-01-31T00:00:00Z",
                "current_period_start": None,
                "current_period_end": None,
                "suspended_at": None,
                "suspend_reason": None
            }
        }
