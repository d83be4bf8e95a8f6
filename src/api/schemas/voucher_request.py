"""Request schemas for Voucher API

Pydantic models for validating incoming HTTP requests.
"""

from decimal import Decimal
from typing import Any, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RedeemVoucherRequestSchema(BaseModel):
    """
    Request schema for redeeming a voucher

    Used for POST /merchant/vouchers/redeem endpoint.
    """

    code: str = Field(
        ...,
        description="Voucher code (case-insensitive, surrounding spaces ignored)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "WELCOME100"
            }
        }
    )


class VoucherItemSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    menu_id: Any = Field(default=None, description="Menu item ID (number or numeric string)")
    subtotal: Decimal = Field(default=Decimal("0"), description="Line subtotal")


class ValidateVoucherRequestSchema(BaseModel):
    """
    Request schema for public order-voucher validation

    Used for POST /public/vouchers/validate endpoint.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "merchantCode": "KOPI01",
                "voucherCode": "HEMAT10",
                "orderType": "TAKEAWAY",
                "items": [{"menuId": 12, "subtotal": 45000}]
            }
        },
    )

    merchant_code: str = Field(default="", description="Public merchant code")
    voucher_code: str = Field(default="", description="Order voucher code")
    order_type: str = Field(default="", description="DINE_IN, TAKEAWAY or DELIVERY")
    items: List[VoucherItemSchema] = Field(default_factory=list)
