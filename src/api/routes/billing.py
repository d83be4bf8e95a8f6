"""Billing API Routes

Subscription state, subscription history and deposit balance of the
caller's merchant.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.auth import AuthContext, get_auth_context, owner_merchant_id, require_merchant
from src.api.error import ClientError
from src.api.schemas.response import ApiResponse
from src.app.use_cases.billing.dtos import (
    SubscriptionStateDTO,
    BalanceResponseDTO,
    ListBalanceTransactionsResponseDTO,
    ListSubscriptionHistoryResponseDTO,
)
from src.app.use_cases.billing.get_subscription_state import GetSubscriptionState
from src.app.use_cases.billing.get_balance import GetBalance
from src.app.use_cases.billing.list_balance_transactions import ListBalanceTransactions
from src.app.use_cases.billing.list_subscription_history import ListSubscriptionHistory
from src.adapter.repositories import (
    SqlAlchemyMerchantRepository,
    SqlAlchemyMerchantBalanceRepository,
    SqlAlchemyBalanceTransactionRepository,
    SqlAlchemyMerchantSubscriptionRepository,
    SqlAlchemySubscriptionHistoryRepository,
    SqlAlchemySubscriptionPlanRepository,
)
from src.depends import get_session, build_evaluate_subscription
from src.domain.balance_transaction import BalanceTransactionType
from src.domain.subscription_history import SubscriptionEventType
from config import ApplicationConfig

router = APIRouter(prefix="/merchant", tags=["Billing"])


@router.get(
    "/subscription",
    response_model=ApiResponse[SubscriptionStateDTO],
    status_code=status.HTTP_200_OK,
)
async def get_subscription(
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """
    Current subscription standing.

    Runs the auto-switch engine first, so an expired trial is switched or
    suspended before it is reported.
    """
    merchant_id = require_merchant(auth)

    use_case = GetSubscriptionState(
        merchant_repo=SqlAlchemyMerchantRepository(session),
        subscription_repo=SqlAlchemyMerchantSubscriptionRepository(session),
        balance_repo=SqlAlchemyMerchantBalanceRepository(session),
        plan_repo=SqlAlchemySubscriptionPlanRepository(session),
        auto_switch=build_evaluate_subscription(session),
        default_grace_period_days=ApplicationConfig.DEFAULT_GRACE_PERIOD_DAYS,
    )
    result = await use_case.execute(merchant_id)

    if result.is_err():
        raise ClientError(result.error)

    return ApiResponse(data=result.value)


@router.get(
    "/subscription/history",
    response_model=ApiResponse[ListSubscriptionHistoryResponseDTO],
    status_code=status.HTTP_200_OK,
)
async def list_subscription_history(
    limit: int = Query(20, description="Page size (max 100)"),
    offset: int = Query(0, ge=0, description="Number of rows to skip"),
    event_type: Optional[SubscriptionEventType] = Query(None, alias="eventType"),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
):
    """Subscription transitions of the merchant, newest first"""
    merchant_id = require_merchant(auth)

    use_case = ListSubscriptionHistory(SqlAlchemySubscriptionHistoryRepository(session))
    result = await use_case.execute(merchant_id, limit=limit, offset=offset, event_type=event_type)

    if result.is_err():
        raise ClientError(result.error)

    return ApiResponse(data=result.value)


@router.get(
    "/balance",
    response_model=ApiResponse[BalanceResponseDTO],
    status_code=status.HTTP_200_OK,
)
async def get_balance(
    merchant_id: int = Depends(owner_merchant_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Deposit balance of the merchant (owner only).

    **Returns:**
    - 200: Balance, zero when the merchant never received a credit
    - 403: Caller is not the merchant owner
    - 404: Merchant not found
    """
    use_case = GetBalance(
        SqlAlchemyMerchantRepository(session),
        SqlAlchemyMerchantBalanceRepository(session),
    )
    result = await use_case.execute(merchant_id)

    if result.is_err():
        raise ClientError(result.error)

    return ApiResponse(data=result.value)


@router.get(
    "/balance/transactions",
    response_model=ApiResponse[ListBalanceTransactionsResponseDTO],
    status_code=status.HTTP_200_OK,
)
async def list_balance_transactions(
    limit: int = Query(20, description="Page size"),
    offset: int = Query(0, ge=0, description="Number of rows to skip"),
    transaction_type: Optional[BalanceTransactionType] = Query(None, alias="type"),
    merchant_id: int = Depends(owner_merchant_id),
    session: AsyncSession = Depends(get_session),
):
    """Balance ledger of the merchant, newest first (owner only)"""
    use_case = ListBalanceTransactions(
        SqlAlchemyMerchantBalanceRepository(session),
        SqlAlchemyBalanceTransactionRepository(session),
    )
    result = await use_case.execute(
        merchant_id, limit=limit, offset=offset, transaction_type=transaction_type
    )

    if result.is_err():
        raise ClientError(result.error)

    return ApiResponse(data=result.value)
