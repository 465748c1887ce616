"""
Integration tests: FastAPI app over a temp SQLite file.

``DATABASE_URL`` is pointed at a temp file by conftest.py before the app is
imported; the lifespan creates the tables.
"""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from jewel_pos.core.config import settings
from jewel_pos.core.database import engine
from jewel_pos.main import app
from jewel_pos.models.product import Product

D = Decimal


@pytest.fixture(scope="module")
def client():
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


def _bill_body(phone: str, **billing) -> dict:
    return {
        "customer": {
            "name": "Asha Patil",
            "phone": phone,
            "email": "asha@example.com",
            "address": "Pune",
        },
        "items": [
            {
                "item_name": "Ring",
                "metal_type": "gold",
                "weight_grams": "10",
                "rate_per_gram": "6000",
                "making_charges": "500",
            }
        ],
        "billing": {"tax_percentage": "3", "paid_amount": "50000", **billing},
    }


class TestHealthAndAuth:
    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert "docs" in r.json()

    def test_health(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "ok"
        assert data["db"] == "ok"

    def test_login_logout(self, client):
        r = client.post("/api/auth/login", json={"password": settings.APP_PASSWORD})
        assert r.status_code == 200
        token = r.json()["token"]

        r = client.post("/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
        assert r.json()["status"] == "logged_out"
        r = client.post("/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
        assert r.json()["status"] == "no_session"

    def test_wrong_password(self, client):
        r = client.post("/api/auth/login", json={"password": "nope"})
        assert r.status_code == 401

    def test_guarded_routes_when_enabled(self, client, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_ENABLED", True)
        assert client.get("/api/bills").status_code == 401

        token = client.post(
            "/api/auth/login", json={"password": settings.APP_PASSWORD}
        ).json()["token"]
        r = client.get("/api/bills", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 200


class TestRatesAPI:
    def test_unset_rate(self, client):
        r = client.get("/api/rates/silver")
        assert r.status_code == 200
        assert r.json()["available"] is False
        assert D(r.json()["rate_per_gram"]) == D("0")

    def test_set_lock_and_history(self, client):
        r = client.post("/api/rates/gold", json={"rate_per_10_grams": "65000"})
        assert r.status_code == 200
        assert D(r.json()["rate_per_gram"]) == D("6500")

        assert client.post("/api/rates/gold/lock").json()["is_locked"] is True
        r = client.post("/api/rates/gold", json={"rate_per_10_grams": "66000"})
        assert r.status_code == 423
        assert r.json()["error"] == "LockError"

        assert client.post("/api/rates/gold/lock").json()["is_locked"] is False
        r = client.post("/api/rates/gold", json={"rate_per_10_grams": "66000"})
        assert r.status_code == 200

        trend = client.get("/api/rates/gold/history").json()
        assert D(trend["entries"][0]["rate_per_gram"]) == D("6600")
        assert D(trend["change"]) == D("100")

    def test_large_change_warns(self, client):
        client.post("/api/rates/silver", json={"rate_per_10_grams": "750"})
        r = client.post("/api/rates/silver", json={"rate_per_10_grams": "1500"})
        assert r.status_code == 200
        assert r.json()["warnings"]

    def test_invalid_rate(self, client):
        r = client.post("/api/rates/gold", json={"rate_per_10_grams": "0"})
        assert r.status_code == 422

    def test_list_without_trailing_slash(self, client):
        r = client.get("/api/rates", follow_redirects=False)
        assert r.status_code == 200
        assert isinstance(r.json(), list)


class TestBillingAPI:
    def test_preview(self, client):
        body = _bill_body("9000000000")
        r = client.post(
            "/api/bills/preview",
            json={"items": body["items"], "billing": body["billing"], "customer_gstin": "09AABCU9603R1ZM"},
        )
        assert r.status_code == 200
        totals = r.json()["totals"]
        assert totals["is_igst"] is True
        assert D(totals["igst_amount"]) == D("1815")
        assert D(totals["final_amount"]) == D("62315")

    def test_create_get_update_delete(self, client):
        r = client.post("/api/bills", json=_bill_body("9000000001"))
        assert r.status_code == 201
        bill = r.json()
        number = bill["bill_number"]
        assert number.startswith("BILL-")
        assert D(bill["balance_amount"]) == D("12315")
        assert D(bill["cgst_amount"]) == D("907.5")
        assert len(bill["items"]) == 1

        r = client.get(f"/api/bills/{number}")
        assert r.status_code == 200
        assert r.json()["customer_email"] == "asha@example.com"

        update = _bill_body("9000000001", paid_amount="62315")
        r = client.put(f"/api/bills/{number}", json={"customer": update["customer"], "billing": update["billing"]})
        assert r.status_code == 200
        assert D(r.json()["balance_amount"]) == D("0")

        r = client.delete(f"/api/bills/{number}", params={"delete_from_turnover": "true"})
        assert r.status_code == 200
        assert r.json()["status"] == "deleted"
        assert client.get(f"/api/bills/{number}").status_code == 404

    def test_create_rejects_empty_items(self, client):
        body = _bill_body("123")
        body["customer"] = {"name": "A", "phone": "123", "email": "a@a.com"}
        body["items"] = []
        r = client.post("/api/bills", json=body)
        assert r.status_code == 422
        assert r.json()["error"] == "ValidationError"

    def test_list_and_search(self, client):
        client.post("/api/bills", json=_bill_body("9000000002"))
        r = client.get("/api/bills", params={"search": "9000000002"})
        assert r.status_code == 200
        assert all(b["customer_phone"] == "9000000002" for b in r.json())
        assert r.json()

    def test_unknown_bill(self, client):
        r = client.get("/api/bills/BILL-1999-00001")
        assert r.status_code == 404
        assert r.json()["error"] == "NotFoundError"


class TestVoucherAPI:
    def _body(self, **payment):
        return {
            "customer": {"name": "Ramesh Kale", "phone": "9890011111"},
            "items": [
                {
                    "item_description": "Old chain",
                    "metal_type": "gold",
                    "purity": "22k",
                    "net_weight": "8.5",
                    "rate_per_gram": "5800",
                }
            ],
            "payment": payment or {"method": "cash"},
        }

    def test_bank_requires_utr(self, client):
        r = client.post("/api/vouchers", json=self._body(method="bank"))
        assert r.status_code == 422

    def test_save_and_read_back(self, client):
        r = client.post("/api/vouchers", json=self._body(method="bank", utr_number="UTR123"))
        assert r.status_code == 201
        voucher = r.json()
        assert voucher["voucher_number"].startswith("PV-")
        assert D(voucher["total_amount"]) == D("49300")

        r = client.get(f"/api/vouchers/{voucher['voucher_number']}")
        assert r.status_code == 200
        assert r.json()["utr_number"] == "UTR123"
        assert len(r.json()["items"]) == 1


class TestLookupsAndReports:
    def test_customer_search(self, client):
        client.post("/api/bills", json=_bill_body("9000000003"))
        r = client.get("/api/customers", params={"search": "9000000003"})
        assert r.status_code == 200
        assert [c["phone"] for c in r.json()] == ["9000000003"]

    def test_turnover_report(self, client):
        before = D(client.get("/api/reports/turnover").json()["daily"])
        client.post("/api/bills", json=_bill_body("9000000004"))
        after = client.get("/api/reports/turnover").json()
        assert D(after["daily"]) - before == D("62315")
        assert D(after["yearly"]) >= D(after["monthly"]) >= D(after["daily"])

    def test_gstin_check(self, client):
        r = client.get("/api/gstin/09aabcu9603r1zm")
        data = r.json()
        assert data["valid"] is True
        assert data["state_code"] == "09"
        assert data["is_igst"] is True

        data = client.get("/api/gstin/27XYZ").json()
        assert data["valid"] is False
        assert data["is_igst"] is False
        assert data["warning"]

    def test_otp_flow_without_smtp(self, client):
        r = client.post("/api/otp/send", json={"email": "asha@example.com"})
        assert r.status_code == 200
        assert r.json()["delivered"] is False
        r = client.post("/api/otp/verify", json={"email": "asha@example.com", "code": "12345"})
        assert r.json()["verified"] is False


class TestProductLookupAPI:
    @pytest.fixture(scope="class")
    def product(self, client):
        with Session(engine) as session:
            product = Product(
                name_english="Silver Anklet",
                metal_type="silver",
                weight_grams=D("40"),
                making_charges_type="percentage",
                making_charges_percentage=D("10"),
                barcode="8901234567890",
                unique_number="SA-0042",
            )
            session.add(product)
            session.commit()
            session.refresh(product)
            return product

    def test_lookup_by_barcode(self, client, product):
        client.post("/api/rates/silver", json={"rate_per_10_grams": "800"})
        r = client.get("/api/products/lookup/8901234567890")
        assert r.status_code == 200
        data = r.json()
        assert data["product"]["unique_number"] == "SA-0042"
        assert data["rate_available"] is True
        assert D(data["item"]["rate_per_gram"]) == D("80")
        assert D(data["item"]["making_charges"]) == D("320")
        assert D(data["quotation"]) == D("3520")

    def test_lookup_by_unique_number(self, client, product):
        r = client.get("/api/products/lookup/SA-0042")
        assert r.status_code == 200
        assert r.json()["product"]["barcode"] == "8901234567890"

    def test_unknown_identifier(self, client):
        r = client.get("/api/products/lookup/0000000000000")
        assert r.status_code == 404
        assert r.json()["error"] == "NotFoundError"
