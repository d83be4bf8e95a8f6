"""ValidateVoucher Use Case

Public check of an order voucher before checkout. Eligibility and the
discount itself are computed by the DiscountCalculator; this use case only
resolves the merchant and cleans the order lines.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from libs.result import Result, Return, Error
from src.app.repositories.merchant_repository import MerchantRepository
from src.app.services.discount_calculator import (
    DiscountCalculator,
    DiscountParamsDTO,
    OrderItemInput,
)
from src.domain.voucher import normalize_voucher_code
from .dtos import ValidateVoucherCommandDTO, VoucherValidationDTO

ORDER_TYPES = ("DINE_IN", "TAKEAWAY", "DELIVERY")
FALLBACK_CURRENCY = "AUD"
FALLBACK_TIMEZONE = "Australia/Sydney"


def parse_menu_id(value: Any) -> Optional[int]:
    """Menu IDs arrive as numbers or numeric strings; anything else is ignored"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        value = value.strip()
        if value.isdigit():
            return int(value)
        try:
            parsed = Decimal(value)
        except InvalidOperation:
            return None
        if parsed.is_finite() and parsed == parsed.to_integral_value():
            return int(parsed)
    return None


def _invalid(message: str) -> Result:
    return Return.err(Error(code="VALIDATION_ERROR", message=message))


class ValidateVoucher:
    """
    Use Case: Validate an order voucher for a public order

    Business Rules:
    1. merchantCode, voucherCode and a known orderType are required
    2. The merchant must exist and be active
    3. Lines with an unreadable menuId or a non-positive subtotal are skipped
    4. Discount errors are surfaced unchanged
    """

    def __init__(self, merchant_repo: MerchantRepository, discount_calculator: DiscountCalculator):
        self.merchant_repo = merchant_repo
        self.discount_calculator = discount_calculator

    async def execute(self, command: ValidateVoucherCommandDTO) -> Result[VoucherValidationDTO]:
        merchant_code = (command.merchant_code or "").strip()
        if not merchant_code:
            return _invalid("merchantCode is required")

        voucher_code = normalize_voucher_code(command.voucher_code)
        if not voucher_code:
            return _invalid("voucherCode is required")

        order_type = (command.order_type or "").strip().upper()
        if order_type not in ORDER_TYPES:
            return _invalid("orderType is required")

        merchant = await self.merchant_repo.get_by_code(merchant_code)
        if not merchant or not merchant.is_active:
            return Return.err(Error(code="MERCHANT_NOT_FOUND", message="Merchant not found"))

        items = []
        subtotal = Decimal("0")
        for item in command.items:
            menu_id = parse_menu_id(item.menu_id)
            if menu_id is None or item.subtotal <= 0:
                continue
            subtotal += item.subtotal
            items.append(OrderItemInput(menu_id=menu_id, subtotal=item.subtotal))

        params = DiscountParamsDTO(
            merchant_id=merchant.id,
            merchant_currency=(merchant.currency or "").strip() or FALLBACK_CURRENCY,
            merchant_timezone=(merchant.timezone or "").strip() or FALLBACK_TIMEZONE,
            order_type=order_type,
            subtotal=subtotal,
            items=items,
            voucher_code=voucher_code,
        )

        computed = await self.discount_calculator.compute(params)
        if computed.is_err():
            return computed

        discount = computed.value
        return Return.ok(
            VoucherValidationDTO(
                template_id=discount.template_id,
                code_id=discount.code_id,
                label=discount.label,
                discount_type=discount.discount_type,
                discount_value=discount.discount_value,
                discount_amount=discount.discount_amount,
                eligible_subtotal=discount.eligible_subtotal,
            )
        )
