"""Voucher API Routes

Merchant voucher redemption and public order-voucher validation.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import AuthContext, get_auth_context, owner_merchant_id
from src.api.error import ClientError
from src.api.schemas.response import ApiResponse
from src.api.schemas.voucher_request import RedeemVoucherRequestSchema, ValidateVoucherRequestSchema
from src.app.use_cases.billing.dtos import (
    RedeemVoucherCommandDTO,
    RedeemVoucherDataDTO,
    ValidateVoucherCommandDTO,
    VoucherItemDTO,
    VoucherValidationDTO,
)
from src.app.use_cases.billing.validate_voucher import ValidateVoucher
from src.app.services.discount_calculator import DiscountCalculator
from src.adapter.repositories import SqlAlchemyMerchantRepository
from src.depends import (
    get_session,
    get_discount_calculator,
    build_redeem_voucher,
)

router = APIRouter(tags=["Vouchers"])

ERROR_EXAMPLE = {
    "description": "Voucher rejected",
    "content": {
        "application/json": {
            "example": {
                "success": False,
                "error": "ALREADY_REDEEMED",
                "message": "You have already used this voucher"
            }
        }
    }
}


@router.post(
    "/merchant/vouchers/redeem",
    response_model=ApiResponse[RedeemVoucherDataDTO],
    status_code=status.HTTP_200_OK,
    responses={400: ERROR_EXAMPLE, 403: {"description": "Owner access required"}},
)
async def redeem_voucher(
    request: RedeemVoucherRequestSchema,
    merchant_id: int = Depends(owner_merchant_id),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """
    Redeem a balance or subscription-days voucher for the caller's merchant.

    A merchant can redeem each voucher once. BALANCE vouchers credit the
    deposit balance, SUBSCRIPTION_DAYS vouchers extend the monthly period
    (a trial is converted to MONTHLY).

    **Example request:**
    ```json
    {"code": "WELCOME100"}
    ```

    **Returns:**
    - 200: Voucher applied, with fresh subscription and balance
    - 400: Validation error or voucher rejected (see error code)
    - 403: Caller is not the merchant owner
    - 404: Merchant or voucher not found
    """
    command = RedeemVoucherCommandDTO(
        merchant_id=merchant_id,
        actor_user_id=auth.user_id,
        code=request.code,
    )

    result = await build_redeem_voucher(session).execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return ApiResponse(message=result.value.message, data=result.value.data)


@router.post(
    "/public/vouchers/validate",
    response_model=ApiResponse[VoucherValidationDTO],
    status_code=status.HTTP_200_OK,
)
async def validate_voucher(
    request: ValidateVoucherRequestSchema,
    session: AsyncSession = Depends(get_session),
    discount_calculator: DiscountCalculator = Depends(get_discount_calculator),
):
    """
    Check an order voucher for a public (customer) order.

    Eligibility and the discount are computed by the discount service; its
    error codes are returned unchanged.
    """
    command = ValidateVoucherCommandDTO(
        merchant_code=request.merchant_code,
        voucher_code=request.voucher_code,
        order_type=request.order_type,
        items=[VoucherItemDTO(menu_id=item.menu_id, subtotal=item.subtotal) for item in request.items],
    )

    use_case = ValidateVoucher(SqlAlchemyMerchantRepository(session), discount_calculator)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return ApiResponse(message="Voucher valid", data=result.value)
