import pytest
import pytest_asyncio
from datetime import datetime
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from src.depends import create_engine, get_session
from src.domain.merchant import Merchant
from src.domain.merchant_balance import MerchantBalance
from src.domain.merchant_subscription import MerchantSubscription
from src.domain.voucher import Voucher, VoucherType


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database, fresh for every test"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing_test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Session used to seed test data"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(session_factory):
    """API with the session dependency bound to the test database"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return app


@pytest_asyncio.fixture
async def client(app):
    """Test client; every request gets its own session like in production"""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def seed(db_session):
    """Factories that insert and commit billing rows"""

    class Seeder:

        async def add(self, entity):
            # No refresh: it would reopen a read transaction and hold the SQLite lock
            db_session.add(entity)
            await db_session.commit()
            return entity

        async def merchant(self, code: str = "kopi-senja", **fields) -> Merchant:
            fields.setdefault("name", "Kopi Senja")
            fields.setdefault("currency", "IDR")
            fields.setdefault("is_open", True)
            return await self.add(Merchant(code=code, **fields))

        async def voucher(
            self,
            code: str = "WELCOME100",
            voucher_type: VoucherType = VoucherType.BALANCE,
            value: Decimal = Decimal("100000"),
            **fields,
        ) -> Voucher:
            return await self.add(Voucher(code=code, type=voucher_type, value=value, **fields))

        async def balance(self, merchant: Merchant, amount: Decimal) -> MerchantBalance:
            now = datetime.utcnow()
            return await self.add(
                MerchantBalance(merchant_id=merchant.id, balance=amount, created_at=now, updated_at=now)
            )

        async def subscription(self, merchant: Merchant, **fields) -> MerchantSubscription:
            return await self.add(MerchantSubscription(merchant_id=merchant.id, **fields))

    return Seeder()
