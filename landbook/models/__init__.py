"""
Database models for Landbook.

All models are exported here for convenient imports:
    from landbook.models import Client, Plot, CancelledSale, etc.
"""

from landbook.models.audit import ActivityAction, ActivityLog
from landbook.models.base import Base, BaseModel, Money, TenantMixin, TimestampMixin
from landbook.models.cancelled_sale import CancelledSale, OutcomeType, RefundStatus
from landbook.models.client import Client, ClientStatus, Payment
from landbook.models.expense import (
    EXPENSE_CATEGORIES,
    REFUND_CATEGORY,
    Expense,
    ExpenseStatus,
)
from landbook.models.outbox import NotificationOutbox, NotificationType, OutboxStatus
from landbook.models.payroll import Employee, EmployeeDeduction, PayrollRecord
from landbook.models.project import Plot, PlotStatus, Project
from landbook.models.tenant import Tenant, User, UserRole
from landbook.models.workflow import ReconciliationWorkflow, WorkflowKind, WorkflowStatus

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "Money",
    "TenantMixin",
    "TimestampMixin",
    # Tenancy
    "Tenant",
    "User",
    "UserRole",
    # Inventory
    "Project",
    "Plot",
    "PlotStatus",
    # Sales
    "Client",
    "ClientStatus",
    "Payment",
    # Cancellations
    "CancelledSale",
    "RefundStatus",
    "OutcomeType",
    "ReconciliationWorkflow",
    "WorkflowKind",
    "WorkflowStatus",
    # Expenses
    "Expense",
    "ExpenseStatus",
    "EXPENSE_CATEGORIES",
    "REFUND_CATEGORY",
    # Payroll
    "Employee",
    "EmployeeDeduction",
    "PayrollRecord",
    # Audit
    "ActivityLog",
    "ActivityAction",
    # Notifications
    "NotificationOutbox",
    "NotificationType",
    "OutboxStatus",
]
