"""
Plot endpoints: listing, returning to stock, cancel and transfer.

Cancel and transfer honour the Idempotency-Key header; a retried
request gets the original result back with ``replayed: true``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error, idempotency_key_header
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_admin, require_tenant_user
from landbook.db import get_db
from landbook.models import PlotStatus
from landbook.schemas import (
    CancelSaleRequest,
    PlotResponse,
    ReconciliationResponse,
    TransferSaleRequest,
)
from landbook.services import inventory, reconciliation
from landbook.services.errors import LandbookError

router = APIRouter(prefix="/plots", tags=["Plots"])


@router.get("", response_model=List[PlotResponse])
async def list_plots(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
    project_id: Optional[int] = Query(None),
    status: Optional[PlotStatus] = Query(None),
):
    plots = await inventory.list_plots(db, ctx, project_id=project_id, status=status)
    return [PlotResponse.model_validate(p) for p in plots]


@router.post("/{plot_id}/return", response_model=PlotResponse)
async def return_plot(
    plot_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    """Return a plot to stock after the client defaulted."""
    try:
        plot = await inventory.return_plot(db, ctx, plot_id)
    except LandbookError as e:
        raise http_error(e) from e
    return PlotResponse.model_validate(plot)


@router.post("/{plot_id}/cancel", response_model=ReconciliationResponse)
async def cancel_sale(
    plot_id: int,
    data: CancelSaleRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
):
    """Cancel the sale on a plot, record the refund decision, free the plot."""
    try:
        result = await reconciliation.cancel_sale(
            db,
            ctx,
            plot_id,
            refund_amount=data.refund_amount,
            cancellation_fee=data.cancellation_fee,
            refund_status=data.refund_status,
            reason=data.reason,
            notes=data.notes,
            idempotency_key=idempotency_key,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return ReconciliationResponse.model_validate(result)


@router.post("/{plot_id}/transfer", response_model=ReconciliationResponse)
async def transfer_sale(
    plot_id: int,
    data: TransferSaleRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
    idempotency_key: Optional[str] = Depends(idempotency_key_header),
):
    """Move the buyer on this plot to another available plot."""
    try:
        result = await reconciliation.transfer_sale(
            db,
            ctx,
            old_plot_id=plot_id,
            new_plot_id=data.new_plot_id,
            reason=data.reason,
            notes=data.notes,
            idempotency_key=idempotency_key,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return ReconciliationResponse.model_validate(result)
