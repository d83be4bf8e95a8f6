"""HTTP Discount Calculator

Delegates order-voucher computation to the discount service.
"""

import logging
from decimal import Decimal
from typing import Optional
import httpx
from libs.result import Result, Return, Error
from src.app.services.discount_calculator import (
    DiscountCalculator,
    DiscountParamsDTO,
    DiscountResultDTO,
)

logger = logging.getLogger(__name__)

UNAVAILABLE = "DISCOUNT_SERVICE_UNAVAILABLE"


class HttpDiscountCalculator(DiscountCalculator):
    """
    Discount calculator backed by an HTTP service

    POSTs the params as JSON to {base_url}/vouchers/compute. The service
    answers with the same envelope as this API: {"success": true, "data": {...}} or
    {"success": false, "error": CODE, "message": ...}; typed errors are
    returned unchanged.
    """

    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Discount service URL; None disables the calculator
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self.transport = transport

    async def compute(self, params: DiscountParamsDTO) -> Result[DiscountResultDTO]:
        if not self.base_url:
            return Return.err(
                Error(code=UNAVAILABLE, message="Voucher validation is not available")
            )

        payload = params.model_dump(mode="json")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/vouchers/compute", json=payload)
            body = response.json()
            if not isinstance(body, dict):
                raise ValueError("discount service returned a non-object body")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Discount service call failed for merchant {params.merchant_id}: {e}")
            return Return.err(
                Error(code=UNAVAILABLE, message="Voucher validation is not available", reason=str(e))
            )

        if response.is_success and body.get("success", True):
            data = body.get("data") or {}
            return Return.ok(
                DiscountResultDTO(
                    template_id=data.get("templateId"),
                    code_id=data.get("codeId"),
                    label=data.get("label"),
                    discount_type=data.get("discountType", ""),
                    discount_value=Decimal(str(data.get("discountValue", 0))),
                    discount_amount=Decimal(str(data.get("discountAmount", 0))),
                    eligible_subtotal=Decimal(str(data.get("eligibleSubtotal", 0))),
                )
            )

        code = body.get("error") or "VOUCHER_INVALID"
        return Return.err(
            Error(
                code=code,
                message=body.get("message") or "Voucher is not valid",
                details=body.get("details"),
            )
        )
