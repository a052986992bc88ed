"""
Pytest configuration and fixtures.
"""

import os
from decimal import Decimal

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from landbook.auth.context import RequestContext
from landbook.models import Base, Tenant, User, UserRole
from landbook.services import inventory, payments

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# plot_number -> price
PLOT_PRICES = {
    "P-001": Decimal("600000"),
    "P-002": Decimal("350000"),
    "P-003": Decimal("350000"),
    "P-004": Decimal("800000"),
}


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def tenant(db_session):
    tenant = Tenant(name="Acme Land", slug="acme", is_active=True)
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest_asyncio.fixture
async def admin(db_session, tenant):
    user = User(
        tenant_id=tenant.id,
        username="acme-admin",
        display_name="Acme Admin",
        role=UserRole.ADMIN,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def ctx(admin):
    return RequestContext(tenant_id=admin.tenant_id, user_id=admin.id, role=admin.role)


@pytest_asyncio.fixture
async def plots(db_session, ctx):
    """One project with the plots in PLOT_PRICES, keyed by plot number."""
    project = await inventory.create_project(
        db_session, ctx, name="Kitengela Gardens", location="Kitengela", capacity=4
    )
    created = await inventory.add_plots(
        db_session,
        ctx,
        project.id,
        [inventory.PlotInput(plot_number=n, price=p) for n, p in PLOT_PRICES.items()],
    )
    await db_session.commit()
    return {plot.plot_number: plot for plot in created}


@pytest_asyncio.fixture
async def make_sale(db_session, ctx, plots):
    """Factory: register a client on a plot with an amount already paid."""

    async def _make(plot_number: str, paid: Decimal, email=None):
        client = await payments.register_client(
            db_session,
            ctx,
            plots[plot_number].id,
            name="Jane Wanjiku",
            phone="0712345678",
            email=email,
            initial_payment=paid,
            payment_method="M-Pesa",
            sales_agent="Peter",
        )
        await db_session.commit()
        return client

    return _make
