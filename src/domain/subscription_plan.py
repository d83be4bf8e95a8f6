"""Subscription Plan Domain Entity

Plan catalog row. Managed elsewhere; billing only reads trial and grace lengths.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String, Integer, Boolean
from src.domain.base import BaseModel, id_column

DEFAULT_TRIAL_DAYS = 30
DEFAULT_GRACE_PERIOD_DAYS = 3


class SubscriptionPlan(BaseModel, table=True):
    __tablename__ = "subscription_plans"

    id: Optional[int] = Field(default=None, sa_column=id_column())

    name: str = Field(sa_column=Column(String(100), nullable=False))

    trial_days: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))

    grace_period_days: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))

    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))

    created_at: datetime = Field(default_factory=datetime.utcnow)


def resolve_trial_days(plan: Optional[SubscriptionPlan], default: int = DEFAULT_TRIAL_DAYS) -> int:
    if plan is not None and plan.trial_days and plan.trial_days > 0:
        return plan.trial_days
    return default


def resolve_grace_period_days(
    plan: Optional[SubscriptionPlan], default: int = DEFAULT_GRACE_PERIOD_DAYS
) -> int:
    """Plan grace length; a missing plan or a non-positive value uses the default"""
    if plan is not None and plan.grace_period_days and plan.grace_period_days > 0:
        return plan.grace_period_days
    return default
