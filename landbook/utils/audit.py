"""
Activity logging utilities.

Every payment, cancellation, transfer and refund is logged for review.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models.audit import ActivityAction, ActivityLog


def to_jsonable(value: Any) -> Any:
    """Convert Decimals and other scalars so the JSON column accepts them."""
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


async def log_action(
    db: AsyncSession,
    ctx: RequestContext,
    action: ActivityAction,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    tenant_id: Optional[int] = None,
) -> ActivityLog:
    """
    Log an auditable action.

    Args:
        db: Database session
        ctx: Operator performing the action
        action: Type of action being performed
        entity_type: Type of entity affected (e.g., "client", "plot")
        entity_id: ID of the affected entity
        details: Additional context about the action
        tenant_id: Overrides ctx.tenant_id (provisioning acts on other tenants)

    Returns:
        Created ActivityLog entry
    """
    log_entry = ActivityLog(
        tenant_id=tenant_id if tenant_id is not None else ctx.tenant_id,
        user_id=ctx.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=to_jsonable(details) if details is not None else None,
    )
    db.add(log_entry)
    # Note: commit should happen in the calling context
    return log_entry
