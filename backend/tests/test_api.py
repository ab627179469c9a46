"""
HTTP tests for the v1 routers.

The app runs in-process over httpx's ASGI transport; the unit-of-work
dependency is overridden to use the per-test SQLite database.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from gst_ledger.core.config import settings
from gst_ledger.core.deps import get_uow_factory
from gst_ledger.main import app


def _token(team_id: uuid.UUID, user_id: uuid.UUID, token_type: str = "access") -> str:
    payload = {
        "sub": str(user_id),
        "team_id": str(team_id),
        "type": token_type,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def _document_body(counterparty_id: uuid.UUID, amount: str = "1000.00", kind: str = "invoice") -> dict:
    return {
        "kind": kind,
        "counterparty_id": str(counterparty_id),
        "document_date": "2025-04-10",
        "lines": [{"description": "Consulting", "quantity": "1", "unit_price": amount}],
    }


@pytest.fixture
async def client(uow_factory):
    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth(ctx):
    return {"Authorization": f"Bearer {_token(ctx.team_id, ctx.actor_id)}"}


@pytest.fixture
def other_auth(other_ctx):
    return {"Authorization": f"Bearer {_token(other_ctx.team_id, other_ctx.actor_id)}"}


async def _sent_invoice(client, auth, customer_id, amount="1000.00") -> dict:
    created = await client.post("/api/v1/documents/", json=_document_body(customer_id, amount), headers=auth)
    assert created.status_code == 201, created.text
    sent = await client.post(f"/api/v1/documents/{created.json()['id']}/send", headers=auth)
    assert sent.status_code == 200, sent.text
    return sent.json()


# ============================================================
# TEST GROUP 1: System and authentication
# ============================================================


class TestSystem:

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_missing_token(self, client):
        response = await client.get("/api/v1/gst/period-locks/")

        assert response.status_code == 401

    async def test_refresh_token_rejected(self, client, ctx):
        headers = {"Authorization": f"Bearer {_token(ctx.team_id, ctx.actor_id, 'refresh')}"}

        response = await client.get("/api/v1/gst/period-locks/", headers=headers)

        assert response.status_code == 401

    async def test_garbage_token_rejected(self, client):
        response = await client.get(
            "/api/v1/gst/period-locks/", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401


# ============================================================
# TEST GROUP 2: Documents and payments
# ============================================================


class TestDocumentsApi:

    async def test_create_document(self, client, auth, customer_id):
        response = await client.post("/api/v1/documents/", json=_document_body(customer_id), headers=auth)

        assert response.status_code == 201
        body = response.json()
        assert body["documentNumber"] == "INV-2025-0001"
        assert body["status"] == "draft"
        assert body["isLocked"] is False
        assert body["totalAmount"] == "1000.00"
        assert body["lines"][0]["unitPrice"] == "1000.00"

    async def test_payment_updates_detail(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id)

        paid = await client.post(
            "/api/v1/payments/",
            json={"document_id": invoice["id"], "amount": "400", "payment_date": "2025-04-12"},
            headers=auth,
        )
        detail = await client.get(f"/api/v1/documents/{invoice['id']}", headers=auth)

        assert paid.status_code == 201
        assert paid.json()["receiptNumber"] == "RCP-2025-0001"
        body = detail.json()
        assert body["amountDue"] == "600.00"
        assert body["paymentStatus"] == "partial"
        assert body["isLocked"] is True
        assert len(body["payments"]) == 1

    async def test_overpayment_is_400(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id, "100.00")

        response = await client.post(
            "/api/v1/payments/",
            json={"document_id": invoice["id"], "amount": "100.50", "payment_date": "2025-04-12"},
            headers=auth,
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "OVER_ALLOCATION"

    async def test_period_lock_blocks_payment(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id)
        filed = await client.post(
            "/api/v1/gst/period-locks/",
            json={"period_start": "2025-04-01", "period_end": "2025-04-30"},
            headers=auth,
        )

        response = await client.post(
            "/api/v1/payments/",
            json={"document_id": invoice["id"], "amount": "10", "payment_date": "2025-05-02"},
            headers=auth,
        )
        check = await client.get("/api/v1/gst/period-locks/check", params={"day": "2025-04-10"}, headers=auth)

        assert filed.status_code == 201
        assert response.status_code == 409
        assert response.json()["errorCode"] == "PERIOD_LOCKED"
        assert check.json() == {"day": "2025-04-10", "isLocked": True}

    async def test_other_team_gets_404(self, client, auth, other_auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id)

        response = await client.get(f"/api/v1/documents/{invoice['id']}", headers=other_auth)

        assert response.status_code == 404
        assert response.json()["errorCode"] == "RESOURCE_NOT_FOUND"

    async def test_delete_draft(self, client, auth, customer_id):
        created = await client.post("/api/v1/documents/", json=_document_body(customer_id), headers=auth)

        response = await client.delete(f"/api/v1/documents/{created.json()['id']}", headers=auth)

        assert response.status_code == 204

    async def test_outstanding(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id)

        response = await client.get(
            "/api/v1/documents/outstanding", params={"kind": "invoice"}, headers=auth
        )

        assert [d["id"] for d in response.json()] == [invoice["id"]]


# ============================================================
# TEST GROUP 3: Advances and quotations
# ============================================================


class TestAdvancesApi:

    async def test_allocate_and_reverse(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id, "300.00")
        advance = await client.post(
            "/api/v1/advances/",
            json={
                "direction": "customer",
                "counterparty_id": str(customer_id),
                "amount": "500",
                "advance_date": "2025-04-01",
            },
            headers=auth,
        )
        advance_id = advance.json()["id"]

        allocated = await client.post(
            f"/api/v1/advances/{advance_id}/allocations",
            json={"allocations": [{"document_id": invoice["id"], "amount": "300"}]},
            headers=auth,
        )
        detail = await client.get(f"/api/v1/advances/{advance_id}", headers=auth)

        assert allocated.status_code == 201, allocated.text
        assert detail.json()["unallocatedAmount"] == "200.00"
        assert detail.json()["allocationState"] == "partially_allocated"

        allocation_id = allocated.json()[0]["id"]
        reversed_ = await client.delete(f"/api/v1/advances/allocations/{allocation_id}", headers=auth)
        document = await client.get(f"/api/v1/documents/{invoice['id']}", headers=auth)

        assert reversed_.status_code == 204
        assert document.json()["amountDue"] == "300.00"

    async def test_over_allocation_is_400(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id, "300.00")
        advance = await client.post(
            "/api/v1/advances/",
            json={
                "direction": "customer",
                "counterparty_id": str(customer_id),
                "amount": "100",
                "advance_date": "2025-04-01",
            },
            headers=auth,
        )

        response = await client.post(
            f"/api/v1/advances/{advance.json()['id']}/allocations",
            json={"allocations": [{"document_id": invoice["id"], "amount": "150"}]},
            headers=auth,
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "OVER_ALLOCATION"

    async def test_receipt_split_across_invoices(self, client, auth, customer_id):
        first = await _sent_invoice(client, auth, customer_id, "300.00")
        second = await _sent_invoice(client, auth, customer_id, "500.00")

        response = await client.post(
            "/api/v1/payments/receipts",
            json={
                "counterparty_id": str(customer_id),
                "amount": "600",
                "payment_date": "2025-04-15",
                "allocations": [
                    {"document_id": first["id"], "amount": "300"},
                    {"document_id": second["id"], "amount": "250"},
                ],
            },
            headers=auth,
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["advanceNumber"] == "RCP-2025-0001"
        assert body["unallocatedAmount"] == "50.00"
        assert len(body["allocations"]) == 2
        document = await client.get(f"/api/v1/documents/{second['id']}", headers=auth)
        assert document.json()["amountDue"] == "250.00"

    async def test_receipt_splits_above_amount_is_400(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id, "300.00")

        response = await client.post(
            "/api/v1/payments/receipts",
            json={
                "counterparty_id": str(customer_id),
                "amount": "100",
                "payment_date": "2025-04-15",
                "allocations": [{"document_id": invoice["id"], "amount": "150"}],
            },
            headers=auth,
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "OVER_ALLOCATION"

    async def test_sub_cent_payment_is_422(self, client, auth, customer_id):
        invoice = await _sent_invoice(client, auth, customer_id, "300.00")

        response = await client.post(
            "/api/v1/payments/",
            json={"document_id": invoice["id"], "amount": "10.005", "payment_date": "2025-04-12"},
            headers=auth,
        )

        assert response.status_code == 422


class TestQuotationsApi:

    async def test_accept_and_convert(self, client, auth, customer_id):
        created = await client.post(
            "/api/v1/quotations/",
            json={
                "counterparty_id": str(customer_id),
                "quotation_date": "2025-03-20",
                "lines": [{"description": "Install", "quantity": "1", "unit_price": "80"}],
            },
            headers=auth,
        )
        quotation_id = created.json()["id"]
        for status in ("sent", "accepted"):
            moved = await client.patch(
                f"/api/v1/quotations/{quotation_id}/status", json={"status": status}, headers=auth
            )
            assert moved.status_code == 200, moved.text

        converted = await client.post(
            f"/api/v1/quotations/{quotation_id}/convert",
            json={"document_date": "2025-04-05"},
            headers=auth,
        )

        assert converted.status_code == 201, converted.text
        assert converted.json()["documentNumber"] == "INV-2025-0001"
        assert converted.json()["totalAmount"] == "80.00"
