"""Subscription History Domain Entity

Append-only audit log of subscription transitions.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text
from src.domain.base import BaseModel, id_column, fk_column


class SubscriptionEventType(str, Enum):
    """Subscription transition types"""
    AUTO_SWITCHED = "AUTO_SWITCHED"
    SUSPENDED = "SUSPENDED"
    REACTIVATED = "REACTIVATED"


class SubscriptionHistory(BaseModel, table=True):
    """
    Subscription History - one row per subscription transition

    Domain Rules:
    - Rows are immutable once written
    - Captures before/after type, status, balance and period end
    - metadata holds JSON (periodFrom, periodTo, daysDelta) or NULL
    - triggered_by is SYSTEM for automatic transitions
    """

    __tablename__ = "subscription_history"
    __table_args__ = (
        Index('ix_subscription_history_merchant_created', 'merchant_id', 'created_at'),
        Index('ix_subscription_history_event_type', 'event_type'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique history identifier (auto-increment)"
    )

    merchant_id: int = Field(
        sa_column=fk_column("merchants.id"),
        description="Merchant whose subscription changed"
    )

    event_type: SubscriptionEventType = Field(
        description="Transition type"
    )

    previous_type: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    previous_status: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    previous_balance: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(18, 2), nullable=True))
    previous_period_end: Optional[datetime] = Field(default=None)
    new_type: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    new_status: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    new_balance: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(18, 2), nullable=True))
    new_period_end: Optional[datetime] = Field(default=None)

    reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Human-readable reason"
    )

    metadata_json: Optional[str] = Field(
        default=None,
        sa_column=Column("metadata", Text, nullable=True),
        description="JSON metadata for additional context"
    )

    triggered_by: str = Field(
        default="SYSTEM",
        sa_column=Column(String(20), nullable=False, default="SYSTEM"),
        description="SYSTEM or ADMIN/MERCHANT for explicit actions"
    )

    triggered_by_user_id: Optional[int] = Field(default=None)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Transition timestamp"
    )
