"""Expense endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_admin, require_tenant_user
from landbook.db import get_db
from landbook.schemas import ExpenseCreate, ExpenseResponse
from landbook.services import expenses
from landbook.services.errors import LandbookError

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        expense = await expenses.create_expense(
            db,
            ctx,
            category=data.category,
            description=data.description,
            amount=data.amount,
            payment_method=data.payment_method,
            recipient=data.recipient,
            expense_date=data.expense_date,
            client_id=data.client_id,
            agent_id=data.agent_id,
            is_commission_payout=data.is_commission_payout,
            notes=data.notes,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return ExpenseResponse.model_validate(expense)


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
    category: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    items = await expenses.list_expenses(
        db, ctx, category=category, start_date=start_date, end_date=end_date
    )
    return [ExpenseResponse.model_validate(e) for e in items]
