# Overview: Pytest coverage for the checkout HTTP endpoint.

from decimal import Decimal

import pytest

from tillbook.identity import IDENTITY_EXTENSION_KEY, CurrentUser, HeaderIdentityProvider, StaticIdentityProvider
from tillbook.models import LedgerEntry, Product, Sale


def _body(product, quantity=2, price="10000", **sale):
    return {
        "sale": sale,
        "items": [{"product_id": product.id, "quantity": quantity, "unit_price": price}],
    }


def _headers(user):
    return {"X-User-Id": str(user.id)}


class TestRecordSaleRoute:
    def test_created(self, client, db_session, owner_a, product_a):
        resp = client.post(
            "/api/sales",
            json=_body(product_a, customer_name="Budi", payment_method="transfer"),
            headers=_headers(owner_a),
        )

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["sale"]["invoice_number"].startswith("INV-")
        assert data["sale"]["final_amount"] == "20000.00"
        assert data["sale"]["customer_name"] == "Budi"
        assert data["sale"]["payment_method"] == "transfer"
        assert data["items"][0]["product"]["name"] == "Product A"
        assert data["ledger_entry"]["amount"] == "20000.00"

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).stock == 3
        assert db_session.query(LedgerEntry).count() == 1

    def test_tenant_comes_from_identity(self, client, db_session, owner_a, tenant_b, product_a):
        body = _body(product_a)
        body["sale"]["tenant_id"] = tenant_b.id

        resp = client.post("/api/sales", json=body, headers=_headers(owner_a))

        assert resp.status_code == 201
        db_session.expire_all()
        assert db_session.query(Sale).one().tenant_id == owner_a.tenant_id

    def test_insufficient_stock_is_409(self, client, db_session, owner_a, product_a):
        resp = client.post("/api/sales", json=_body(product_a, quantity=9), headers=_headers(owner_a))

        assert resp.status_code == 409
        payload = resp.get_json()
        assert payload["code"] == "insufficient_stock"
        assert payload["details"]["requested"] == 9
        assert payload["details"]["available"] == 5

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).stock == 5

    @pytest.mark.parametrize("body", [
        None,
        {"sale": {}},
        {"sale": {}, "items": []},
        {"sale": "nope", "items": [{"product_id": 1, "quantity": 1, "unit_price": "1"}]},
    ])
    def test_bad_body_is_400(self, client, owner_a, body):
        resp = client.post("/api/sales", json=body, headers=_headers(owner_a))

        assert resp.status_code == 400
        assert resp.get_json()["code"] == "validation_error"

    def test_discount_over_total_is_400(self, client, owner_a, product_a):
        resp = client.post(
            "/api/sales", json=_body(product_a, discount_amount="30000"), headers=_headers(owner_a),
        )

        assert resp.status_code == 400

    def test_foreign_product_is_400(self, client, owner_b, product_a):
        resp = client.post("/api/sales", json=_body(product_a), headers=_headers(owner_b))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Product not found"

    @pytest.mark.parametrize("headers", [{}, {"X-User-Id": "abc"}, {"X-User-Id": "99999"}])
    def test_unauthenticated_is_404(self, client, product_a, headers):
        resp = client.post("/api/sales", json=_body(product_a), headers=headers)

        assert resp.status_code == 404
        assert resp.get_json()["code"] == "tenant_access_denied"

    def test_inactive_user_is_rejected(self, client, db_session, owner_a, product_a):
        owner_a.is_active = False
        db_session.commit()

        resp = client.post("/api/sales", json=_body(product_a), headers=_headers(owner_a))

        assert resp.status_code == 404

    def test_identity_provider_is_pluggable(self, app, client, db_session, owner_a, product_a):
        app.extensions[IDENTITY_EXTENSION_KEY] = StaticIdentityProvider(
            CurrentUser(id=owner_a.id, tenant_id=owner_a.tenant_id)
        )
        try:
            resp = client.post("/api/sales", json=_body(product_a))
        finally:
            app.extensions[IDENTITY_EXTENSION_KEY] = HeaderIdentityProvider()

        assert resp.status_code == 201
        db_session.expire_all()
        assert db_session.query(Sale).one().final_amount == Decimal("20000")

    def test_unexpected_error_is_500(self, client, owner_a, product_a, monkeypatch):
        from tillbook.services import sales_service

        def _boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(sales_service, "record_sale", _boom)

        resp = client.post("/api/sales", json=_body(product_a), headers=_headers(owner_a))

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error", "code": "internal_error"}
