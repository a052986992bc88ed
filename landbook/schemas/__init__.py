"""Pydantic schemas for request/response validation."""

from landbook.schemas.cancellation import (
    CancelledSaleResponse,
    CancelSaleRequest,
    ReconciliationResponse,
    RefundUpdateRequest,
    TransferSaleRequest,
)
from landbook.schemas.client import ClientCreate, ClientResponse, PaymentCreate, PaymentResponse
from landbook.schemas.expense import ExpenseCreate, ExpenseResponse
from landbook.schemas.inventory import (
    BulkPlotCreate,
    InventoryStatsResponse,
    PlotCountsResponse,
    PlotCreate,
    PlotResponse,
    ProjectCreate,
    ProjectResponse,
)
from landbook.schemas.payroll import (
    DeductionCreate,
    DeductionResponse,
    EmployeeCreate,
    EmployeeResponse,
    PayrollPeriod,
    PayrollRecordResponse,
    PayrollRequest,
    PayrollResponse,
    PayrollRunResponse,
)
from landbook.schemas.report import CancelledSalesSummaryResponse, LedgerEntryResponse
from landbook.schemas.tenant import (
    TenantCreate,
    TenantDeactivate,
    TenantResponse,
    UserCreate,
    UserResponse,
)

__all__ = [
    # Inventory
    "ProjectCreate",
    "ProjectResponse",
    "PlotCreate",
    "BulkPlotCreate",
    "PlotResponse",
    "PlotCountsResponse",
    "InventoryStatsResponse",
    # Clients
    "ClientCreate",
    "ClientResponse",
    "PaymentCreate",
    "PaymentResponse",
    # Cancellations
    "CancelSaleRequest",
    "TransferSaleRequest",
    "RefundUpdateRequest",
    "ReconciliationResponse",
    "CancelledSaleResponse",
    # Reports
    "CancelledSalesSummaryResponse",
    "LedgerEntryResponse",
    # Expenses
    "ExpenseCreate",
    "ExpenseResponse",
    # Payroll
    "PayrollRequest",
    "PayrollResponse",
    "EmployeeCreate",
    "EmployeeResponse",
    "DeductionCreate",
    "DeductionResponse",
    "PayrollPeriod",
    "PayrollRecordResponse",
    "PayrollRunResponse",
    # Tenants
    "TenantCreate",
    "TenantResponse",
    "TenantDeactivate",
    "UserCreate",
    "UserResponse",
]
