"""
Idempotency keys and workflow rows for multi-step reconciliation.

A workflow row is created at the start of a cancel/transfer/refund
request and completed at the end, in the same transaction as the
business writes. Replaying the same key returns the stored result.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.config import settings
from landbook.models import ReconciliationWorkflow, WorkflowKind, WorkflowStatus
from landbook.services.errors import DuplicateRequestError

logger = logging.getLogger(__name__)


def derive_idempotency_key(
    ctx: RequestContext,
    kind: WorkflowKind,
    *parts: object,
    now: Optional[datetime] = None,
    window_minutes: Optional[int] = None,
) -> str:
    """
    Deterministic key for callers that send no Idempotency-Key.

    Format: kind:sha256(tenant|kind|parts|operator|time bucket)

    Two submissions of the same action (same target ids, occupying sale
    and payload parts) by the same operator inside one time bucket map to
    the same key.
    """
    now = now or datetime.now(timezone.utc)
    window = window_minutes or settings.idempotency_window_minutes
    bucket = int(now.timestamp() // (window * 60))
    raw = "|".join(
        [
            str(ctx.tenant_id),
            kind.value,
            ",".join(str(p) for p in parts),
            str(ctx.user_id),
            str(bucket),
        ]
    )
    return f"{kind.value}:{hashlib.sha256(raw.encode()).hexdigest()[:40]}"


async def find_workflow(
    db: AsyncSession,
    tenant_id: int,
    idempotency_key: str,
) -> Optional[ReconciliationWorkflow]:
    result = await db.execute(
        select(ReconciliationWorkflow).where(
            ReconciliationWorkflow.tenant_id == tenant_id,
            ReconciliationWorkflow.idempotency_key == idempotency_key,
        )
    )
    return result.scalar_one_or_none()


async def last_cleared_sale(
    db: AsyncSession,
    ctx: RequestContext,
    kind: WorkflowKind,
    plot_id: int,
) -> Optional[int]:
    """
    Sale most recently taken off a plot by this operator.

    Used to rebuild a derived key for a retry that arrives after the
    plot was already released.
    """
    result = await db.execute(
        select(ReconciliationWorkflow.client_id)
        .where(
            ReconciliationWorkflow.tenant_id == ctx.tenant_id,
            ReconciliationWorkflow.kind == kind,
            ReconciliationWorkflow.plot_id == plot_id,
            ReconciliationWorkflow.requested_by == ctx.user_id,
            ReconciliationWorkflow.status == WorkflowStatus.COMPLETED,
        )
        .order_by(ReconciliationWorkflow.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def start_workflow(
    db: AsyncSession,
    ctx: RequestContext,
    kind: WorkflowKind,
    idempotency_key: str,
    plot_id: Optional[int] = None,
    client_id: Optional[int] = None,
) -> ReconciliationWorkflow:
    """
    Insert the workflow row and flush it so the unique key is claimed.

    Raises:
        DuplicateRequestError: another transaction holds the same key
    """
    workflow = ReconciliationWorkflow(
        tenant_id=ctx.tenant_id,
        kind=kind,
        idempotency_key=idempotency_key,
        status=WorkflowStatus.IN_PROGRESS,
        steps=[],
        requested_by=ctx.user_id,
        plot_id=plot_id,
        client_id=client_id,
    )
    db.add(workflow)
    try:
        await db.flush()
    except IntegrityError as e:
        # The session is unusable now; the request-scoped session rolls back
        logger.warning(f"Duplicate {kind.value} request for key {idempotency_key}")
        raise DuplicateRequestError(idempotency_key) from e
    return workflow


def complete_workflow(workflow: ReconciliationWorkflow, result: dict) -> None:
    workflow.status = WorkflowStatus.COMPLETED
    workflow.result = result
    logger.info(
        f"Workflow {workflow.id} ({workflow.kind.value}) completed: "
        f"{len(workflow.steps)} steps"
    )
