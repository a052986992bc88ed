"""
Tenant provisioning console (super-admin only).
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import ActivityAction, Tenant, User, UserRole
from landbook.services.errors import ConflictError, TenantNotFoundError
from landbook.utils.audit import log_action

logger = logging.getLogger(__name__)


async def get_tenant(db: AsyncSession, tenant_id: int) -> Tenant:
    tenant = await db.get(Tenant, tenant_id)
    if not tenant:
        raise TenantNotFoundError(tenant_id)
    return tenant


async def create_tenant(db: AsyncSession, ctx: RequestContext, name: str, slug: str) -> Tenant:
    tenant = Tenant(name=name, slug=slug.lower(), is_active=True)
    db.add(tenant)
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError(f"Tenant slug already taken: {slug}") from e

    await log_action(
        db,
        ctx,
        ActivityAction.TENANT_CREATED,
        entity_type="tenant",
        entity_id=tenant.id,
        details={"name": name, "slug": tenant.slug},
        tenant_id=tenant.id,
    )
    logger.info(f"Created tenant {tenant.id} ({tenant.slug})")
    return tenant


async def list_tenants(db: AsyncSession, include_inactive: bool = True) -> Sequence[Tenant]:
    query = select(Tenant)
    if not include_inactive:
        query = query.where(Tenant.is_active.is_(True))
    result = await db.execute(query.order_by(Tenant.name))
    return result.scalars().all()


async def add_user(
    db: AsyncSession,
    ctx: RequestContext,
    tenant_id: int,
    username: str,
    display_name: str,
    role: UserRole = UserRole.STAFF,
) -> User:
    """Add an operator to a tenant. Super-admins are never tenant-bound."""
    tenant = await get_tenant(db, tenant_id)
    if role == UserRole.SUPER_ADMIN:
        raise ConflictError("Super-admins cannot belong to a tenant")

    user = User(
        tenant_id=tenant.id,
        username=username,
        display_name=display_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError(f"Username already taken: {username}") from e

    await log_action(
        db,
        ctx,
        ActivityAction.USER_CREATED,
        entity_type="user",
        entity_id=user.id,
        details={"username": username, "role": role.value},
        tenant_id=tenant.id,
    )
    logger.info(f"Added {role.value} {username} to tenant {tenant.id}")
    return user


async def deactivate_tenant(
    db: AsyncSession,
    ctx: RequestContext,
    tenant_id: int,
    reason: Optional[str] = None,
) -> Tenant:
    tenant = await get_tenant(db, tenant_id)
    tenant.is_active = False

    await log_action(
        db,
        ctx,
        ActivityAction.TENANT_DEACTIVATED,
        entity_type="tenant",
        entity_id=tenant.id,
        details={"reason": reason},
        tenant_id=tenant.id,
    )
    await db.flush()

    logger.warning(f"Deactivated tenant {tenant.id} ({tenant.slug})")
    return tenant
