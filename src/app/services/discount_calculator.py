"""Discount Calculator Interface

Order-voucher eligibility and discount computation lives outside the
billing core. The public validation endpoint only delegates to it.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from libs.result import Result


class OrderItemInput(BaseModel):
    menu_id: int
    subtotal: Decimal


class DiscountParamsDTO(BaseModel):
    """Input handed to the discount calculator"""

    merchant_id: int
    merchant_currency: str
    merchant_timezone: str
    audience: str = "CUSTOMER"
    order_type: str
    subtotal: Decimal
    items: List[OrderItemInput] = Field(default_factory=list)
    voucher_code: str


class DiscountResultDTO(BaseModel):
    """Discount granted by an order voucher"""

    template_id: Optional[int] = None
    code_id: Optional[int] = None
    label: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    eligible_subtotal: Decimal


class DiscountCalculator(ABC):

    @abstractmethod
    async def compute(self, params: DiscountParamsDTO) -> Result[DiscountResultDTO]:
        """
        Compute the discount an order voucher grants

        Args:
            params: Merchant, order type, items and voucher code

        Returns:
            Result[DiscountResultDTO]: discount or a typed voucher error
            (e.g. VOUCHER_EXPIRED, VOUCHER_MIN_ORDER_NOT_MET)
        """
        pass
