"""
FastAPI dependencies that turn a token into a RequestContext.
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.auth.jwt import get_token_from_request, verify_token
from landbook.db import get_db
from landbook.models import Tenant, User, UserRole


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """
    Resolve the acting operator.

    The user row is the source of truth for role and tenant; the token
    only identifies the user. Raises 401/403 as appropriate.
    """
    token = get_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = await db.get(User, payload["user_id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    if user.tenant_id is not None:
        tenant = await db.get(Tenant, user.tenant_id)
        if not tenant or not tenant.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Tenant is disabled",
            )

    return RequestContext(tenant_id=user.tenant_id, user_id=user.id, role=user.role)


async def require_tenant_user(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Any operator bound to a tenant (staff or admin)."""
    if ctx.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant access required",
        )
    return ctx


async def require_admin(
    ctx: RequestContext = Depends(require_tenant_user),
) -> RequestContext:
    """
    Require a tenant admin.

    Cancellations, transfers and refund updates go through here.
    """
    if ctx.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return ctx


async def require_super_admin(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    if not ctx.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super-admin access required",
        )
    return ctx
