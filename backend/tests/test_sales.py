"""
Sale transaction tests.

Verifies:
- Cash sales credit the active session; card/special sales never touch it
- Stock decrements are conditional and a failed line rolls back the sale
- Stock reaching zero deactivates the product
- Special sales need an admin credential and are attributed to the admin
- The activity feed merges sales and audit entries
"""

from decimal import Decimal

import pytest

from cajapos.extensions import db
from cajapos.models import ActionLog, CashSession, Sale, SaleItem
from cajapos.services import sales_service

from conftest import ADMIN_PASSWORD, ADMIN_RUT, CASHIER_PASSWORD, CASHIER_RUT, make_product, reload


def _sale(items, total, method="efectivo", **extra):
    payload = {
        "items": [
            {"product_id": p.id, "quantity": qty, "price_at_sale": price}
            for p, qty, price in items
        ],
        "total_amount": total,
        "payment_method": method,
    }
    payload.update(extra)
    return payload


def _counts() -> tuple[int, int]:
    db.session.expire_all()
    return db.session.query(Sale).count(), db.session.query(SaleItem).count()


# =============================================================================
# CASH SALES
# =============================================================================


class TestCashSale:

    def test_cash_sale_commits_everything(self, client, cashier, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 3, 1500)], 4500), headers=cashier_headers)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["message"] == "Venta procesada"
        assert body["total_amount"] == 4500.0

        assert reload(active_session).current_balance == Decimal("14500.00")
        assert reload(bread).stock == 7

        sale = db.session.get(Sale, body["sale_id"])
        assert sale.employee_id == cashier.id
        assert sale.payment_method == "efectivo"
        assert sale.total_amount == Decimal("4500.00")
        assert len(sale.items) == 1
        assert sale.items[0].price_at_sale == Decimal("1500.00")

    def test_net_amount_excludes_tax(self, client, cashier_headers, active_session):
        product = make_product("Hallulla", stock=5, price="1000")
        active_session.current_balance = Decimal("55000")
        db.session.commit()

        resp = client.post("/api/sales", json=_sale([(product, 3, 1000)], 3000), headers=cashier_headers)

        assert resp.status_code == 201
        sale = db.session.get(Sale, resp.get_json()["sale_id"])
        assert sale.net_amount == Decimal("2521.01")
        assert reload(product).stock == 2
        assert reload(active_session).current_balance == Decimal("58000.00")

    def test_cash_sale_without_session_rejected(self, client, cashier_headers, bread):
        resp = client.post("/api/sales", json=_sale([(bread, 1, 1500)], 1500), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "No se encontró una sesión de caja activa."
        assert _counts() == (0, 0)
        assert reload(bread).stock == 10

    def test_sale_is_audited(self, client, cashier, cashier_headers, bread, active_session):
        client.post("/api/sales", json=_sale([(bread, 1, 1500)], 1500), headers=cashier_headers)

        db.session.expire_all()
        entry = db.session.query(ActionLog).filter_by(action_type="SALE_PROCESSED").one()
        assert entry.employee_id == cashier.id
        assert entry.details == "Venta procesada por $1500.00 con método 'efectivo'."


class TestCardSale:

    def test_card_sale_needs_no_session(self, client, cashier_headers, bread):
        resp = client.post("/api/sales", json=_sale([(bread, 2, 1500)], 3000, "tarjeta"), headers=cashier_headers)

        assert resp.status_code == 201
        assert reload(bread).stock == 8

    def test_card_sale_leaves_balance_alone(self, client, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 2, 1500)], 3000, "tarjeta"), headers=cashier_headers)

        assert resp.status_code == 201
        assert reload(active_session).current_balance == Decimal("10000.00")


# =============================================================================
# STOCK
# =============================================================================


class TestStock:

    def test_insufficient_stock_rolls_back_sale(self, client, cashier_headers, bread, cake, active_session):
        payload = _sale([(bread, 2, 1500), (cake, 3, 12000)], 39000)

        resp = client.post("/api/sales", json=payload, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == f"Stock insuficiente para el producto ID {cake.id}."
        assert _counts() == (0, 0)
        assert reload(bread).stock == 10
        assert reload(cake).stock == 2
        assert reload(active_session).current_balance == Decimal("10000.00")

    def test_selling_out_deactivates_product(self, client, cashier_headers, cake, active_session):
        resp = client.post("/api/sales", json=_sale([(cake, 2, 12000)], 24000), headers=cashier_headers)

        assert resp.status_code == 201
        sold_out = reload(cake)
        assert sold_out.stock == 0
        assert sold_out.is_active is False

    def test_partial_sale_keeps_product_active(self, client, cashier_headers, cake, active_session):
        client.post("/api/sales", json=_sale([(cake, 1, 12000)], 12000), headers=cashier_headers)

        remaining = reload(cake)
        assert remaining.stock == 1
        assert remaining.is_active is True

    def test_unknown_product_rejected(self, client, cashier_headers, active_session):
        payload = {
            "items": [{"product_id": 999, "quantity": 1, "price_at_sale": 100}],
            "total_amount": 100,
            "payment_method": "efectivo",
        }
        resp = client.post("/api/sales", json=payload, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Producto ID 999 no encontrado."


# =============================================================================
# VALIDATION
# =============================================================================


class TestSaleValidation:

    def test_invalid_payment_method(self, client, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 1, 1500)], 1500, "cheque"), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Método de pago inválido."

    def test_total_must_match_lines(self, client, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 2, 1500)], 2000), headers=cashier_headers)

        assert resp.status_code == 400
        assert "no coincide" in resp.get_json()["message"]
        assert reload(active_session).current_balance == Decimal("10000.00")
        assert reload(bread).stock == 10

    @pytest.mark.parametrize("items", [[], None, "pan"])
    def test_items_required(self, client, cashier_headers, active_session, items):
        payload = {"items": items, "total_amount": 0, "payment_method": "efectivo"}
        resp = client.post("/api/sales", json=payload, headers=cashier_headers)

        assert resp.status_code == 400

    def test_zero_quantity_rejected(self, client, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 0, 1500)], 0), headers=cashier_headers)
        assert resp.status_code == 400

    def test_oversized_quantity_rejected(self, client, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 10**20, 0)], 0), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "La cantidad excede el máximo permitido."
        assert _counts() == (0, 0)
        assert reload(bread).stock == 10

    def test_submitted_price_kept_by_default(self, client, cashier_headers, bread, active_session):
        resp = client.post("/api/sales", json=_sale([(bread, 1, 1200)], 1200), headers=cashier_headers)

        assert resp.status_code == 201
        sale = db.session.get(Sale, resp.get_json()["sale_id"])
        assert sale.items[0].price_at_sale == Decimal("1200.00")

    def test_catalog_prices_enforced(self, app, client, cashier_headers, bread, active_session, monkeypatch):
        monkeypatch.setitem(app.config, "ENFORCE_CATALOG_PRICES", True)

        # Client-side price is replaced, so the total no longer matches
        resp = client.post("/api/sales", json=_sale([(bread, 1, 1200)], 1200), headers=cashier_headers)
        assert resp.status_code == 400

        resp = client.post("/api/sales", json=_sale([(bread, 1, 1200)], 1500), headers=cashier_headers)
        assert resp.status_code == 201
        sale = db.session.get(Sale, resp.get_json()["sale_id"])
        assert sale.items[0].price_at_sale == Decimal("1500.00")


# =============================================================================
# SPECIAL SALES
# =============================================================================


class TestSpecialSale:

    def test_attributed_to_authorizing_admin(self, client, admin, cashier, cashier_headers, bread):
        payload = _sale([(bread, 1, 1500)], 1500, "venta especial", adminRut=ADMIN_RUT, adminPassword=ADMIN_PASSWORD)

        resp = client.post("/api/sales", json=payload, headers=cashier_headers)

        assert resp.status_code == 201
        sale = db.session.get(Sale, resp.get_json()["sale_id"])
        assert sale.employee_id == admin.id

        db.session.expire_all()
        entry = db.session.query(ActionLog).filter_by(action_type="SALE_PROCESSED").one()
        assert entry.employee_id == cashier.id
        assert "Autorizada por: Ana Admin." in entry.details
        assert "Registrada por (cajero): Carlos Cajero." in entry.details

    def test_does_not_touch_cash_session(self, client, admin, cashier_headers, bread, active_session):
        payload = _sale([(bread, 1, 1500)], 1500, "venta especial", adminRut=ADMIN_RUT, adminPassword=ADMIN_PASSWORD)

        resp = client.post("/api/sales", json=payload, headers=cashier_headers)

        assert resp.status_code == 201
        assert reload(active_session).current_balance == Decimal("10000.00")

    @pytest.mark.parametrize("rut,password", [
        (ADMIN_RUT, "incorrecta"),
        (CASHIER_RUT, CASHIER_PASSWORD),
        (None, None),
    ], ids=["wrong-password", "not-an-admin", "missing"])
    def test_bad_admin_rejects_whole_sale(self, client, admin, cashier_headers, bread, rut, password):
        payload = _sale([(bread, 1, 1500)], 1500, "venta especial", adminRut=rut, adminPassword=password)

        resp = client.post("/api/sales", json=payload, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Credenciales de administrador inválidas."
        assert _counts() == (0, 0)
        assert reload(bread).stock == 10


# =============================================================================
# ACTIVITY FEED
# =============================================================================


class TestActivityFeed:

    def test_feed_merges_sales_and_logs(self, client, cashier_headers, bread, active_session):
        client.post("/api/sales", json=_sale([(bread, 2, 1500)], 3000), headers=cashier_headers)

        resp = client.get("/api/sales", headers=cashier_headers)

        assert resp.status_code == 200
        feed = resp.get_json()
        types = {entry["type"] for entry in feed}
        assert types == {"SALE", "LOG"}

        sale_entry = next(entry for entry in feed if entry["type"] == "SALE")
        assert sale_entry["employee_name"] == "Carlos Cajero"
        assert sale_entry["total_amount"] == 3000.0
        assert sale_entry["items"][0]["product_name"] == "Pan amasado"
        assert sale_entry["items"][0]["quantity"] == 2

    def test_feed_is_newest_first(self, client, cashier_headers, bread, active_session):
        client.post("/api/sales", json=_sale([(bread, 1, 1500)], 1500), headers=cashier_headers)
        client.post("/api/sales", json=_sale([(bread, 1, 1500)], 1500), headers=cashier_headers)

        feed = client.get("/api/sales", headers=cashier_headers).get_json()

        timestamps = [entry["created_at"] for entry in feed]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_date_range_filters(self, client, cashier_headers, bread, active_session):
        client.post("/api/sales", json=_sale([(bread, 1, 1500)], 1500), headers=cashier_headers)

        resp = client.get("/api/sales?startDate=2000-01-01&endDate=2000-01-31", headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.get_json() == []

    def test_bad_date_rejected(self, client, cashier_headers):
        resp = client.get("/api/sales?startDate=ayer", headers=cashier_headers)
        assert resp.status_code == 400

    def test_service_lists_sales_in_range(self, cashier, bread, active_session):
        sale = sales_service.process_sale(
            cashier,
            items=[{"product_id": bread.id, "quantity": 1, "price_at_sale": "1500"}],
            total_amount="1500",
            payment_method="efectivo",
        )

        assert [s.id for s in sales_service.list_sales()] == [sale.id]
        assert db.session.query(CashSession).one().current_balance == Decimal("11500.00")


# =============================================================================
# RECEIPTS
# =============================================================================


class TestPrintReceipt:

    def test_printer_disabled_answers_202(self, client, cashier_headers):
        payload = {"items": [{"name": "Pan", "quantity": 2, "price_at_sale": 1500}], "total_amount": 3000}

        resp = client.post("/api/print-receipt", json=payload, headers=cashier_headers)

        assert resp.status_code == 202
        assert resp.get_json()["message"] == (
            "Venta guardada, pero no se pudo conectar con la impresora para imprimir el recibo."
        )

    def test_unreachable_printer_answers_202(self, app, client, cashier_headers, tmp_path, monkeypatch):
        monkeypatch.setitem(app.config, "PRINTER_ENABLED", True)
        monkeypatch.setitem(app.config, "PRINTER_DEVICE", str(tmp_path / "missing" / "lp0"))

        resp = client.post("/api/print-receipt", json={"total_amount": 100}, headers=cashier_headers)
        assert resp.status_code == 202

    def test_printer_takes_receipt(self, app, client, cashier_headers, tmp_path, monkeypatch):
        device = tmp_path / "lp0"
        monkeypatch.setitem(app.config, "PRINTER_ENABLED", True)
        monkeypatch.setitem(app.config, "PRINTER_DEVICE", str(device))

        payload = {"items": [{"name": "Pan", "quantity": 2, "price_at_sale": 1500}], "total_amount": 3000}
        resp = client.post("/api/print-receipt", json=payload, headers=cashier_headers)

        assert resp.status_code == 200
        printed = device.read_text(encoding="utf-8")
        assert "2 x Pan" in printed
        assert "$3000.00" in printed
