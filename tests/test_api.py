"""
HTTP tests for the /api endpoints.

Runs the FastAPI app against a file-backed SQLite database with the
request-scoped session swapped in through dependency overrides.

Covers:
- Authentication and role checks
- Client registration and payments
- Cancel/transfer/refund with Idempotency-Key replays
- Error mapping (404/409/422)
- Reports, payroll and tenant provisioning
"""

import asyncio
import os
from decimal import Decimal
from types import SimpleNamespace

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from landbook.auth import create_access_token
from landbook.db import get_db
from landbook.main import app
from landbook.models import Base, Plot, PlotStatus, Project, Tenant, User, UserRole

D = Decimal


async def _seed(session_factory, engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as db:
        tenant = Tenant(name="Acme Land", slug="acme", is_active=True)
        db.add(tenant)
        await db.flush()

        admin = User(tenant_id=tenant.id, username="admin", display_name="Admin", role=UserRole.ADMIN)
        staff = User(tenant_id=tenant.id, username="staff", display_name="Staff", role=UserRole.STAFF)
        root = User(tenant_id=None, username="root", display_name="Root", role=UserRole.SUPER_ADMIN)
        db.add_all([admin, staff, root])

        project = Project(tenant_id=tenant.id, name="Kitengela Gardens", location="Kitengela", capacity=3)
        db.add(project)
        await db.flush()

        plots = [
            Plot(tenant_id=tenant.id, project_id=project.id, plot_number=n, price=p, status=PlotStatus.AVAILABLE)
            for n, p in (("P-001", D("600000")), ("P-002", D("350000")), ("P-003", D("350000")))
        ]
        db.add_all(plots)
        await db.commit()

        return SimpleNamespace(
            tenant_id=tenant.id,
            admin=admin,
            staff=staff,
            root=root,
            project_id=project.id,
            plot_ids={p.plot_number: p.id for p in plots},
        )


def _auth(user) -> dict:
    token = create_access_token(user.id, user.tenant_id, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api(tmp_path):
    """TestClient plus seeded ids and auth headers."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    seeded = asyncio.run(_seed(session_factory, engine))

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)

    yield SimpleNamespace(
        client=client,
        plots=seeded.plot_ids,
        project_id=seeded.project_id,
        tenant_id=seeded.tenant_id,
        admin=_auth(seeded.admin),
        staff=_auth(seeded.staff),
        root=_auth(seeded.root),
    )

    app.dependency_overrides.clear()


def _register(api, plot_number="P-001", paid="200000"):
    response = api.client.post(
        "/api/clients",
        headers=api.staff,
        json={
            "plot_id": api.plots[plot_number],
            "name": "Jane Wanjiku",
            "phone": "0712345678",
            "initial_payment": paid,
            "payment_method": "M-Pesa",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


# ── Authentication ───────────────────────────────────────


class TestAuth:
    def test_missing_token(self, api):
        assert api.client.get("/api/projects").status_code == 401

    def test_garbage_token(self, api):
        response = api.client.get("/api/projects", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_cookie_token(self, api):
        token = api.admin["Authorization"].split(" ", 1)[1]
        api.client.cookies.set("access_token", token)
        assert api.client.get("/api/projects").status_code == 200

    def test_staff_cannot_cancel(self, api):
        _register(api)
        response = api.client.post(
            f"/api/plots/{api.plots['P-001']}/cancel", headers=api.staff, json={}
        )
        assert response.status_code == 403

    def test_super_admin_has_no_tenant_data(self, api):
        assert api.client.get("/api/projects", headers=api.root).status_code == 403

    def test_tenant_console_needs_super_admin(self, api):
        response = api.client.post(
            "/api/admin/tenants", headers=api.admin, json={"name": "Other", "slug": "other"}
        )
        assert response.status_code == 403


# ── Inventory and sales ──────────────────────────────────


class TestInventoryAndSales:
    def test_create_project_and_plots(self, api):
        response = api.client.post(
            "/api/projects", headers=api.admin, json={"name": "Juja Farm", "capacity": 2}
        )
        assert response.status_code == 201
        project_id = response.json()["id"]

        response = api.client.post(
            f"/api/projects/{project_id}/plots/bulk",
            headers=api.admin,
            json={"plots": [{"plot_number": "J-1", "price": "100000"}, {"plot_number": "J-2", "price": "90000"}]},
        )
        assert response.status_code == 201
        assert [p["plot_number"] for p in response.json()] == ["J-1", "J-2"]

        stats = api.client.get(f"/api/projects/{project_id}/stats", headers=api.staff).json()
        assert stats == {"total": 2, "available": 2, "sold": 0, "reserved": 0}

    def test_duplicate_plot_number_conflicts(self, api):
        response = api.client.post(
            f"/api/projects/{api.project_id}/plots",
            headers=api.admin,
            json={"plot_number": "P-001", "price": "100000"},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "CONFLICT"
        assert str(api.project_id) in response.json()["detail"]["message"]

    def test_register_and_pay(self, api):
        client = _register(api, "P-002", paid="100000")
        assert D(client["balance"]) == D("250000")

        response = api.client.post(
            f"/api/clients/{client['id']}/payments",
            headers=api.staff,
            json={"amount": "250000", "payment_method": "Bank Transfer"},
        )
        assert response.status_code == 201

        client = api.client.get(f"/api/clients/{client['id']}", headers=api.staff).json()
        assert client["status"] == "completed"
        payments = api.client.get(f"/api/clients/{client['id']}/payments", headers=api.staff).json()
        assert len(payments) == 2

    def test_register_on_sold_plot(self, api):
        _register(api, "P-001")
        response = api.client.post(
            "/api/clients",
            headers=api.staff,
            json={"plot_id": api.plots["P-001"], "name": "Second Buyer"},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "PLOT_NOT_AVAILABLE"

    def test_zero_payment_rejected_by_schema(self, api):
        client = _register(api)
        response = api.client.post(
            f"/api/clients/{client['id']}/payments",
            headers=api.staff,
            json={"amount": "0", "payment_method": "Cash"},
        )
        assert response.status_code == 422

    def test_unknown_client(self, api):
        response = api.client.get("/api/clients/9999", headers=api.staff)
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "CLIENT_NOT_FOUND"


# ── Reconciliation ───────────────────────────────────────


class TestReconciliation:
    def test_cancel_replays_with_same_key(self, api):
        _register(api, "P-001", paid="200000")
        url = f"/api/plots/{api.plots['P-001']}/cancel"
        body = {
            "refund_amount": "150000",
            "cancellation_fee": "20000",
            "refund_status": "completed",
            "reason": "Buyer relocating",
        }
        headers = {**api.admin, "Idempotency-Key": "cancel-001"}

        first = api.client.post(url, headers=headers, json=body)
        second = api.client.post(url, headers=headers, json=body)

        assert first.status_code == 200, first.text
        assert second.status_code == 200
        assert first.json()["replayed"] is False
        assert second.json()["replayed"] is True
        assert second.json()["cancelled_sale_id"] == first.json()["cancelled_sale_id"]
        assert D(first.json()["net_refund"]) == D("130000")
        assert D(first.json()["retained"]) == D("70000")

        sales = api.client.get("/api/cancelled-sales", headers=api.staff).json()
        assert len(sales) == 1
        assert D(sales[0]["retained_amount"]) == D("70000")
        assert sales[0]["outcome_type"] == "refunded"

        expenses = api.client.get("/api/expenses?category=Refund", headers=api.staff).json()
        assert [D(e["amount"]) for e in expenses] == [D("130000")]

    def test_blank_idempotency_key(self, api):
        _register(api)
        response = api.client.post(
            f"/api/plots/{api.plots['P-001']}/cancel",
            headers={**api.admin, "Idempotency-Key": "   "},
            json={},
        )
        assert response.status_code == 400

    def test_cancel_available_plot(self, api):
        response = api.client.post(
            f"/api/plots/{api.plots['P-002']}/cancel", headers=api.admin, json={}
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "PLOT_NOT_CANCELLABLE"

    def test_negative_refund_rejected(self, api):
        _register(api)
        response = api.client.post(
            f"/api/plots/{api.plots['P-001']}/cancel",
            headers=api.admin,
            json={"refund_amount": "-5"},
        )
        assert response.status_code == 422

    def test_transfer(self, api):
        _register(api, "P-001", paid="500000")
        response = api.client.post(
            f"/api/plots/{api.plots['P-001']}/transfer",
            headers=api.admin,
            json={"new_plot_id": api.plots["P-002"]},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert D(body["refund_due"]) == D("150000")
        assert D(body["new_balance"]) == D("0")
        assert body["new_client_id"] is not None

        plots = {p["plot_number"]: p for p in api.client.get("/api/plots", headers=api.staff).json()}
        assert plots["P-001"]["status"] == "available"
        assert plots["P-002"]["status"] == "sold"

    def test_transfer_onto_sold_plot(self, api):
        _register(api, "P-001")
        _register(api, "P-002", paid="0")
        response = api.client.post(
            f"/api/plots/{api.plots['P-001']}/transfer",
            headers=api.admin,
            json={"new_plot_id": api.plots["P-002"]},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "PLOT_NOT_AVAILABLE"

        # Nothing was written
        assert api.client.get("/api/cancelled-sales", headers=api.staff).json() == []

    def test_transfer_onto_same_plot(self, api):
        _register(api, "P-001")
        response = api.client.post(
            f"/api/plots/{api.plots['P-001']}/transfer",
            headers=api.admin,
            json={"new_plot_id": api.plots["P-001"]},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "SAME_PLOT_TRANSFER"

    def test_refund_update_flow(self, api):
        _register(api, "P-001", paid="200000")
        cancel = api.client.post(
            f"/api/plots/{api.plots['P-001']}/cancel",
            headers=api.admin,
            json={"refund_amount": "100000", "refund_status": "pending"},
        ).json()
        url = f"/api/cancelled-sales/{cancel['cancelled_sale_id']}/refund"

        paid = api.client.patch(
            url, headers=api.admin, json={"refund_amount": "100000", "refund_status": "completed"}
        )
        assert paid.status_code == 200
        assert D(paid.json()["refund_due"]) == D("100000")

        backwards = api.client.patch(
            url, headers=api.admin, json={"refund_amount": "100000", "refund_status": "pending"}
        )
        assert backwards.status_code == 409
        assert backwards.json()["detail"]["code"] == "ILLEGAL_TRANSITION"

        summary = api.client.get("/api/reports/cancelled-sales/summary", headers=api.staff).json()
        assert summary["total_cancelled"] == 1
        assert D(summary["total_refund_expenses"]) == D("100000")
        assert D(summary["refund_variance"]) == D("0")

        ledger = api.client.get("/api/reports/cancelled-sales/audit", headers=api.staff).json()
        assert {e["category"] for e in ledger} == {"Revenue Loss", "Cash Outflow", "Retained"}

    def test_unknown_cancelled_sale(self, api):
        response = api.client.patch(
            "/api/cancelled-sales/404/refund",
            headers=api.admin,
            json={"refund_amount": "1", "refund_status": "completed"},
        )
        assert response.status_code == 404


# ── Payroll ──────────────────────────────────────────────


class TestPayroll:
    def test_calculate(self, api):
        response = api.client.post(
            "/api/payroll/calculate",
            headers=api.staff,
            json={"basic_salary": "50000", "kra_pin": "a123456789b"},
        )
        assert response.status_code == 200
        assert D(response.json()["net_pay"]) == D("39204.65")

    def test_bad_kra_pin(self, api):
        response = api.client.post(
            "/api/payroll/calculate",
            headers=api.staff,
            json={"basic_salary": "50000", "kra_pin": "123"},
        )
        assert response.status_code == 422

    def _hire(self, api, name="Mary Akinyi", salary="50000"):
        response = api.client.post(
            "/api/payroll/employees",
            headers=api.admin,
            json={
                "full_name": name,
                "job_title": "Site Manager",
                "kra_pin": "a123456789b",
                "national_id": "12345678",
                "basic_salary": salary,
                "hire_date": "2024-01-15",
            },
        )
        assert response.status_code == 201
        return response.json()

    def test_staff_cannot_manage_employees(self, api):
        assert api.client.get("/api/payroll/employees", headers=api.staff).status_code == 403

    def test_employee_with_bad_national_id(self, api):
        response = api.client.post(
            "/api/payroll/employees",
            headers=api.admin,
            json={
                "full_name": "Mary Akinyi",
                "job_title": "Site Manager",
                "kra_pin": "A123456789B",
                "national_id": "12",
                "basic_salary": "50000",
            },
        )
        assert response.status_code == 422

    def test_process_and_approve_month(self, api):
        employee = self._hire(api)
        assert employee["employee_number"] == "EMP-240001"
        assert employee["kra_pin"] == "A123456789B"

        run = api.client.post("/api/payroll/runs", headers=api.admin, json={"year": 2024, "month": 6})
        assert run.status_code == 201
        records = run.json()["records"]
        assert len(records) == 1
        assert D(records[0]["net_pay"]) == D("39204.65")

        rerun = api.client.post("/api/payroll/runs", headers=api.admin, json={"year": 2024, "month": 6})
        assert rerun.json()["records"] == []
        assert rerun.json()["skipped_employee_ids"] == [employee["id"]]

        url = f"/api/payroll/records/{records[0]['id']}/approve"
        approved = api.client.post(url, headers=api.admin)
        assert approved.status_code == 200
        assert approved.json()["is_locked"] is True

        again = api.client.post(url, headers=api.admin)
        assert again.status_code == 409
        assert again.json()["detail"]["code"] == "PAYROLL_LOCKED"

        listed = api.client.get("/api/payroll/records?year=2024&month=6", headers=api.admin).json()
        assert [r["id"] for r in listed] == [records[0]["id"]]

    def test_deduction_reduces_net_pay(self, api):
        employee = self._hire(api)
        response = api.client.post(
            f"/api/payroll/employees/{employee['id']}/deductions",
            headers=api.admin,
            json={"deduction_name": "SACCO", "deduction_type": "sacco", "amount": "2000"},
        )
        assert response.status_code == 201

        run = api.client.post("/api/payroll/runs", headers=api.admin, json={"year": 2024, "month": 6})
        record = run.json()["records"][0]
        assert D(record["other_deductions"]) == D("2000")
        assert D(record["net_pay"]) == D("37204.65")

    def test_invalid_month_rejected(self, api):
        response = api.client.post("/api/payroll/runs", headers=api.admin, json={"year": 2024, "month": 13})
        assert response.status_code == 422

    def test_unknown_employee_deductions(self, api):
        response = api.client.get("/api/payroll/employees/9999/deductions", headers=api.admin)
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "EMPLOYEE_NOT_FOUND"


# ── Tenant console ───────────────────────────────────────


class TestTenantConsole:
    def test_create_tenant_and_user(self, api):
        response = api.client.post(
            "/api/admin/tenants", headers=api.root, json={"name": "Bara Estates", "slug": "Bara"}
        )
        assert response.status_code == 201
        tenant = response.json()
        assert tenant["slug"] == "bara"

        response = api.client.post(
            f"/api/admin/tenants/{tenant['id']}/users",
            headers=api.root,
            json={"username": "bara-admin", "display_name": "Bara Admin", "role": "admin"},
        )
        assert response.status_code == 201
        assert response.json()["tenant_id"] == tenant["id"]

    def test_duplicate_slug(self, api):
        response = api.client.post(
            "/api/admin/tenants", headers=api.root, json={"name": "Acme Again", "slug": "acme"}
        )
        assert response.status_code == 409

    def test_deactivated_tenant_locked_out(self, api):
        response = api.client.post(
            f"/api/admin/tenants/{api.tenant_id}/deactivate",
            headers=api.root,
            json={"reason": "Unpaid subscription"},
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        assert api.client.get("/api/projects", headers=api.admin).status_code == 403
