"""Tenant provisioning console (super-admin)."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_super_admin
from landbook.db import get_db
from landbook.schemas import (
    TenantCreate,
    TenantDeactivate,
    TenantResponse,
    UserCreate,
    UserResponse,
)
from landbook.services import tenants
from landbook.services.errors import LandbookError

router = APIRouter(prefix="/admin/tenants", tags=["Admin"])


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    data: TenantCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_super_admin),
):
    try:
        tenant = await tenants.create_tenant(db, ctx, name=data.name, slug=data.slug)
    except LandbookError as e:
        raise http_error(e) from e
    await db.refresh(tenant)
    return TenantResponse.model_validate(tenant)


@router.get("", response_model=List[TenantResponse])
async def list_tenants(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_super_admin),
):
    items = await tenants.list_tenants(db)
    return [TenantResponse.model_validate(t) for t in items]


@router.post(
    "/{tenant_id}/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_user(
    tenant_id: int,
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_super_admin),
):
    """Add an operator (admin or staff) to a tenant."""
    try:
        user = await tenants.add_user(
            db,
            ctx,
            tenant_id,
            username=data.username,
            display_name=data.display_name,
            role=data.role,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return UserResponse.model_validate(user)


@router.post("/{tenant_id}/deactivate", response_model=TenantResponse)
async def deactivate_tenant(
    tenant_id: int,
    data: TenantDeactivate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_super_admin),
):
    """Block every operator of the tenant from signing in."""
    try:
        tenant = await tenants.deactivate_tenant(db, ctx, tenant_id, reason=data.reason)
    except LandbookError as e:
        raise http_error(e) from e
    return TenantResponse.model_validate(tenant)
