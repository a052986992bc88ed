"""
Typed exceptions raised by the service layer.

Every class has a machine-readable ``code``; API routers map the
families onto HTTP status codes:

    LandbookError
    +-- NotFoundError              -> 404
    |   +-- PlotNotFoundError
    |   +-- ClientNotFoundError
    |   +-- CancelledSaleNotFoundError
    |   +-- ProjectNotFoundError
    |   +-- TenantNotFoundError
    |   +-- EmployeeNotFoundError
    |   +-- PayrollRecordNotFoundError
    +-- ValidationFailed           -> 422
    |   +-- InvalidAmountError
    |   +-- SamePlotTransferError
    |   +-- InvalidPayPeriodError
    +-- ConflictError              -> 409
        +-- PlotNotCancellableError
        +-- PlotNotAvailableError
        +-- IllegalTransitionError
        |   +-- SaleAlreadyCancelledError
        |   +-- RefundDecreaseError
        +-- DuplicateRequestError
        +-- PayrollLockedError
"""

from decimal import Decimal


class LandbookError(Exception):
    """Base exception for all service errors."""

    code: str = "LANDBOOK_ERROR"


# Not found


class NotFoundError(LandbookError):
    code: str = "NOT_FOUND"
    entity: str = "entity"

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"{self.entity.capitalize()} not found: {entity_id}")


class PlotNotFoundError(NotFoundError):
    code: str = "PLOT_NOT_FOUND"
    entity = "plot"


class ClientNotFoundError(NotFoundError):
    code: str = "CLIENT_NOT_FOUND"
    entity = "client"


class CancelledSaleNotFoundError(NotFoundError):
    code: str = "CANCELLED_SALE_NOT_FOUND"
    entity = "cancelled sale"


class ProjectNotFoundError(NotFoundError):
    code: str = "PROJECT_NOT_FOUND"
    entity = "project"


class TenantNotFoundError(NotFoundError):
    code: str = "TENANT_NOT_FOUND"
    entity = "tenant"


class EmployeeNotFoundError(NotFoundError):
    code: str = "EMPLOYEE_NOT_FOUND"
    entity = "employee"


class PayrollRecordNotFoundError(NotFoundError):
    code: str = "PAYROLL_RECORD_NOT_FOUND"
    entity = "payroll record"


# Validation


class ValidationFailed(LandbookError):
    """Input rejected before any side effect."""

    code: str = "VALIDATION_FAILED"


class InvalidAmountError(ValidationFailed):
    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: Decimal):
        self.field = field
        self.amount = amount
        super().__init__(f"Invalid {field}: {amount}")


class SamePlotTransferError(ValidationFailed):
    code: str = "SAME_PLOT_TRANSFER"

    def __init__(self, plot_id: int):
        self.plot_id = plot_id
        super().__init__(f"Cannot transfer a sale onto the plot it already occupies: {plot_id}")


class InvalidPayPeriodError(ValidationFailed):
    code: str = "INVALID_PAY_PERIOD"

    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(f"Invalid pay period: {year}-{month}")


# Conflicts


class ConflictError(LandbookError):
    """Request clashes with the current state of the data."""

    code: str = "CONFLICT"


class PlotNotCancellableError(ConflictError):
    code: str = "PLOT_NOT_CANCELLABLE"

    def __init__(self, plot_id: int, status: str, reason: str):
        self.plot_id = plot_id
        self.status = status
        super().__init__(f"Plot {plot_id} ({status}) cannot be cancelled: {reason}")


class PlotNotAvailableError(ConflictError):
    code: str = "PLOT_NOT_AVAILABLE"

    def __init__(self, plot_id: int, status: str):
        self.plot_id = plot_id
        self.status = status
        super().__init__(f"Plot {plot_id} is not available (status: {status})")


class IllegalTransitionError(ConflictError):
    code: str = "ILLEGAL_TRANSITION"

    def __init__(self, machine: str, current: str, target: str):
        self.machine = machine
        self.current = current
        self.target = target
        super().__init__(f"Illegal {machine} transition: {current} -> {target}")


class SaleAlreadyCancelledError(IllegalTransitionError):
    code: str = "SALE_ALREADY_CANCELLED"

    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__("sale", "cancelled", "cancelled")


class RefundDecreaseError(IllegalTransitionError):
    code: str = "REFUND_DECREASE"

    def __init__(self, previous: Decimal, requested: Decimal):
        self.previous = previous
        self.requested = requested
        super().__init__("refund amount", str(previous), str(requested))


class DuplicateRequestError(ConflictError):
    """Another request with the same idempotency key is in flight."""

    code: str = "DUPLICATE_REQUEST"

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__(f"Request already being processed: {idempotency_key}")


class PayrollLockedError(ConflictError):
    """Approved payroll records are frozen."""

    code: str = "PAYROLL_LOCKED"

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Payroll record {record_id} is already approved")
