"""
Seed a demo tenant for local testing.

Usage:
    python scripts/seed_demo_tenant.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_demo_tenant.py

This script creates:
- A super-admin operator (if not exists)
- Tenant "demo" with an admin and a staff operator
- One project with ten plots
- Two clients, one with an initial payment

Prints a token for each operator.
"""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from landbook.auth import RequestContext, create_access_token
from landbook.db import get_db_context
from landbook.models import Tenant, User, UserRole
from landbook.services import inventory, payments, tenants


async def seed() -> None:
    async with get_db_context() as db:
        super_admin = (
            await db.execute(select(User).where(User.role == UserRole.SUPER_ADMIN))
        ).scalar_one_or_none()
        if not super_admin:
            super_admin = User(
                username="superadmin",
                display_name="Super Admin",
                role=UserRole.SUPER_ADMIN,
                is_active=True,
            )
            db.add(super_admin)
            await db.flush()
            print(f"Created super-admin {super_admin.id}")

        root_ctx = RequestContext(tenant_id=None, user_id=super_admin.id, role=UserRole.SUPER_ADMIN)

        existing = (await db.execute(select(Tenant).where(Tenant.slug == "demo"))).scalar_one_or_none()
        if existing:
            print("Tenant 'demo' already exists, nothing to do")
            return

        tenant = await tenants.create_tenant(db, root_ctx, name="Demo Land Co", slug="demo")
        admin = await tenants.add_user(db, root_ctx, tenant.id, "demo-admin", "Demo Admin", UserRole.ADMIN)
        staff = await tenants.add_user(db, root_ctx, tenant.id, "demo-staff", "Demo Staff", UserRole.STAFF)

        ctx = RequestContext(tenant_id=tenant.id, user_id=admin.id, role=UserRole.ADMIN)
        project = await inventory.create_project(
            db, ctx, name="Kitengela Gardens", location="Kitengela", capacity=10,
            buying_price=Decimal("2000000"),
        )
        plots = await inventory.add_plots(
            db,
            ctx,
            project.id,
            [
                inventory.PlotInput(plot_number=f"KG-{n:03d}", price=Decimal("350000"), size="50x100")
                for n in range(1, 11)
            ],
        )

        await payments.register_client(
            db, ctx, plots[0].id, name="Jane Wanjiku", phone="0712345678",
            initial_payment=Decimal("200000"), payment_method="M-Pesa", sales_agent="Peter",
        )
        await payments.register_client(
            db, ctx, plots[1].id, name="John Otieno", phone="0722000111",
            initial_payment=Decimal("350000"), payment_method="Bank Transfer", sales_agent="Peter",
        )

        print(f"Seeded tenant {tenant.id} ({tenant.slug}) with {len(plots)} plots")
        for user in (super_admin, admin, staff):
            token = create_access_token(user.id, user.tenant_id, user.role.value)
            print(f"{user.username}: {token}")


if __name__ == "__main__":
    asyncio.run(seed())
