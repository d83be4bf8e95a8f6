from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyMerchantRepository,
    SqlAlchemyVoucherRepository,
    SqlAlchemyVoucherRedemptionRepository,
    SqlAlchemyBalanceTransactionRepository,
    SqlAlchemyMerchantBalanceRepository,
    SqlAlchemyMerchantSubscriptionRepository,
    SqlAlchemySubscriptionHistoryRepository,
    SqlAlchemySubscriptionPlanRepository,
)
from src.adapter.services.discount_calculator import HttpDiscountCalculator
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.voucher_code_lock import KeyedLockRegistry, create_voucher_code_lock
from src.app.services.discount_calculator import DiscountCalculator
from src.app.services.store_visibility import StoreVisibilityController
from src.app.services.subscription_history_recorder import SubscriptionHistoryRecorder
from src.app.services.voucher_code_lock import VoucherCodeLock
from src.app.use_cases.billing.evaluate_subscription import EvaluateSubscription
from src.app.use_cases.billing.redeem_voucher import RedeemVoucher


def create_engine(db_uri: str) -> AsyncEngine:
    """
    Async engine for the configured database

    pysqlite/aiosqlite defer BEGIN until the first write, which breaks
    SAVEPOINT semantics; for SQLite the driver's transaction handling is
    turned off and BEGIN is emitted explicitly.
    """
    new_engine = create_async_engine(db_uri, echo=False, future=True)

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(new_engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return new_engine


engine = create_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Serializes redemptions per voucher code when the database has no advisory locks
voucher_lock_registry = KeyedLockRegistry()


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_voucher_code_lock(session: AsyncSession) -> VoucherCodeLock:
    return create_voucher_code_lock(session, voucher_lock_registry)


def get_discount_calculator() -> DiscountCalculator:
    return HttpDiscountCalculator(
        ApplicationConfig.DISCOUNT_SERVICE_URL,
        timeout=ApplicationConfig.DISCOUNT_SERVICE_TIMEOUT,
    )


def build_evaluate_subscription(session: AsyncSession) -> EvaluateSubscription:
    """Auto-switch engine bound to one session"""
    uow = SqlAlchemyUnitOfWork(session)
    merchant_repo = SqlAlchemyMerchantRepository(session)
    return EvaluateSubscription(
        uow=uow,
        merchant_repo=merchant_repo,
        subscription_repo=SqlAlchemyMerchantSubscriptionRepository(session),
        balance_repo=SqlAlchemyMerchantBalanceRepository(session),
        plan_repo=SqlAlchemySubscriptionPlanRepository(session),
        store_visibility=StoreVisibilityController(uow, merchant_repo),
        history_recorder=SubscriptionHistoryRecorder(
            uow, SqlAlchemySubscriptionHistoryRepository(session)
        ),
        default_trial_days=ApplicationConfig.DEFAULT_TRIAL_DAYS,
        default_grace_period_days=ApplicationConfig.DEFAULT_GRACE_PERIOD_DAYS,
    )


def build_redeem_voucher(session: AsyncSession) -> RedeemVoucher:
    """Voucher redemption bound to one session, followed by the auto-switch engine"""
    return RedeemVoucher(
        uow=SqlAlchemyUnitOfWork(session),
        code_lock=get_voucher_code_lock(session),
        merchant_repo=SqlAlchemyMerchantRepository(session),
        voucher_repo=SqlAlchemyVoucherRepository(session),
        redemption_repo=SqlAlchemyVoucherRedemptionRepository(session),
        balance_repo=SqlAlchemyMerchantBalanceRepository(session),
        transaction_repo=SqlAlchemyBalanceTransactionRepository(session),
        subscription_repo=SqlAlchemyMerchantSubscriptionRepository(session),
        auto_switch=build_evaluate_subscription(session),
    )
