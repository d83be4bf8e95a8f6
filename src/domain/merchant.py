"""Merchant Domain Entity

The merchant record is owned outside the billing core. Billing only reads
its currency and activity flags and flips the store-open flags as a side
effect of subscription transitions.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String, Boolean
from src.domain.base import BaseModel, id_column


class Merchant(BaseModel, table=True):
    """
    Merchant - store owner account consulted by billing

    Domain Rules:
    - code is unique and used by public endpoints
    - is_open / is_manual_override are toggled by store visibility changes
    - All other fields belong to the merchant management service
    """

    __tablename__ = "merchants"

    id: Optional[int] = Field(
        default=None,
        sa_column=id_column(),
        description="Unique merchant identifier (auto-increment)"
    )

    code: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True, index=True),
        description="Public merchant code"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Merchant display name"
    )

    currency: str = Field(
        default="IDR",
        sa_column=Column(String(3), nullable=False, default="IDR"),
        description="Currency code (ISO 4217)"
    )

    timezone: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="IANA timezone of the store"
    )

    is_open: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the store currently accepts orders"
    )

    is_manual_override: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether is_open was forced instead of following opening hours"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the merchant account is active"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Merchant creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
