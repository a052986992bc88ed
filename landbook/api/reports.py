"""Reporting endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_tenant_user
from landbook.db import get_db
from landbook.schemas import CancelledSalesSummaryResponse, LedgerEntryResponse
from landbook.services import reports

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/cancelled-sales/summary", response_model=CancelledSalesSummaryResponse)
async def cancelled_sales_summary(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    """Totals, outcome counts and refund variance."""
    summary = await reports.cancelled_sales_summary(db, ctx)
    return CancelledSalesSummaryResponse.model_validate(summary)


@router.get("/cancelled-sales/audit", response_model=List[LedgerEntryResponse])
async def cancelled_sales_audit(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    """Derived audit ledger, newest first."""
    entries = await reports.cancelled_sales_audit(db, ctx)
    return [LedgerEntryResponse.model_validate(e) for e in entries]
