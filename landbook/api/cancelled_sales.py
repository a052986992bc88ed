"""Cancelled-sales endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error, idempotency_key_header
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_admin, require_tenant_user
from landbook.db import get_db
from landbook.models import OutcomeType, RefundStatus
from landbook.schemas import CancelledSaleResponse, ReconciliationResponse, RefundUpdateRequest
from landbook.services import reconciliation, reports
from landbook.services.errors import LandbookError

router = APIRouter(prefix="/cancelled-sales", tags=["Cancelled Sales"])


@router.get("", response_model=List[CancelledSaleResponse])
async def list_cancelled_sales(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
    refund_status: Optional[RefundStatus] = Query(None),
    outcome_type: Optional[OutcomeType] = Query(None),
):
    sales = await reports.list_cancelled_sales(
        db, ctx, refund_status=refund_status, outcome_type=outcome_type
    )
    return [CancelledSaleResponse.model_validate(s) for s in sales]


@router.patch("/{cancelled_sale_id}/refund", response_model=ReconciliationResponse)
async def update_refund(
    cancelled_sale_id: int,
    data: RefundUpdateRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
):
    """
    Revise the refund on a cancelled sale.

    Moving into a refunded status records the refund expense once;
    later increases record only the difference.
    """
    try:
        result = await reconciliation.update_refund(
            db,
            ctx,
            cancelled_sale_id,
            refund_amount=data.refund_amount,
            cancellation_fee=data.cancellation_fee,
            refund_status=data.refund_status,
            notes=data.notes,
            idempotency_key=idempotency_key,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return ReconciliationResponse.model_validate(result)
