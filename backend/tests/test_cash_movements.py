"""
Cash movement tests.

Verifies:
- ADD/REMOVE change the active balance and are persisted with their approver
- A withdrawal can never leave the balance negative
- Every admin-credential failure gets the same answer and changes nothing
"""

from decimal import Decimal

import pytest

from cajapos.extensions import db
from cajapos.models import ActionLog, CashMovement

from conftest import ADMIN_PASSWORD, ADMIN_RUT, CASHIER_PASSWORD, CASHIER_RUT, reload

ADMIN_DENIED = "Credenciales de administrador inválidas."


def _movement(type_, amount, *, rut=ADMIN_RUT, password=ADMIN_PASSWORD, reason="Cambio"):
    return {
        "type": type_,
        "amount": amount,
        "reason": reason,
        "adminRut": rut,
        "adminPassword": password,
    }


def _movement_count() -> int:
    db.session.expire_all()
    return db.session.query(CashMovement).count()


class TestAddAndRemove:

    def test_add_increases_balance(self, client, admin, cashier, cashier_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("ADD", 5000), headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.get_json()["current_balance"] == 15000.0
        assert reload(active_session).current_balance == Decimal("15000.00")

        movement = db.session.query(CashMovement).one()
        assert movement.movement_type == "ADD"
        assert movement.amount == Decimal("5000.00")
        assert movement.employee_id == cashier.id
        assert movement.approved_by_employee_id == admin.id
        assert movement.cash_session_id == active_session.id

    def test_remove_decreases_balance(self, client, admin, cashier_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("REMOVE", "2500.50"), headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.get_json()["current_balance"] == 7499.5
        assert reload(active_session).current_balance == Decimal("7499.50")

    def test_remove_entire_balance(self, client, admin, cashier_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("REMOVE", 10000), headers=cashier_headers)

        assert resp.status_code == 200
        assert reload(active_session).current_balance == Decimal("0.00")

    def test_overdraw_rejected(self, client, admin, cashier_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("REMOVE", 10000.01), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "El retiro no puede dejar la caja con saldo negativo."
        assert reload(active_session).current_balance == Decimal("10000.00")
        assert _movement_count() == 0

    def test_movements_are_audited(self, client, admin, cashier, cashier_headers, active_session):
        client.post("/api/cash-movements", json=_movement("ADD", 1000, reason="Sencillo"), headers=cashier_headers)

        db.session.expire_all()
        entry = db.session.query(ActionLog).filter_by(action_type="CASH_ADD").one()
        assert entry.employee_id == cashier.id
        assert entry.details == "Agregó $1000.00. Motivo: Sencillo. Aprobado por: Ana Admin."

    def test_admin_can_approve_own_movement(self, client, admin, admin_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("REMOVE", 100), headers=admin_headers)
        assert resp.status_code == 200


class TestAdminGate:

    @pytest.mark.parametrize("rut,password", [
        (ADMIN_RUT, "incorrecta"),
        ("99999999-9", ADMIN_PASSWORD),
        (CASHIER_RUT, CASHIER_PASSWORD),
    ], ids=["wrong-password", "unknown-rut", "not-an-admin"])
    def test_rejections_are_indistinguishable(self, client, admin, cashier_headers, active_session, rut, password):
        resp = client.post(
            "/api/cash-movements",
            json=_movement("ADD", 5000, rut=rut, password=password),
            headers=cashier_headers,
        )

        assert resp.status_code == 400
        assert resp.get_json() == {"message": ADMIN_DENIED}
        assert reload(active_session).current_balance == Decimal("10000.00")
        assert _movement_count() == 0

    def test_inactive_admin_rejected(self, client, admin, cashier_headers, active_session):
        admin.is_active = False
        db.session.commit()

        resp = client.post("/api/cash-movements", json=_movement("ADD", 5000), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json() == {"message": ADMIN_DENIED}


class TestMovementValidation:

    @pytest.mark.parametrize("field", ["type", "amount", "reason", "adminRut", "adminPassword"])
    def test_missing_field(self, client, admin, cashier_headers, active_session, field):
        payload = _movement("ADD", 5000)
        del payload[field]

        resp = client.post("/api/cash-movements", json=payload, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Todos los campos son requeridos."

    def test_invalid_type(self, client, admin, cashier_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("TRANSFER", 5000), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Tipo de movimiento no válido."

    def test_negative_amount(self, client, admin, cashier_headers, active_session):
        resp = client.post("/api/cash-movements", json=_movement("ADD", -5), headers=cashier_headers)

        assert resp.status_code == 400
        assert reload(active_session).current_balance == Decimal("10000.00")

    def test_no_active_session(self, client, admin, cashier_headers):
        resp = client.post("/api/cash-movements", json=_movement("ADD", 5000), headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "No hay una sesión de caja activa."
        assert _movement_count() == 0


class TestMovementHistory:

    def test_admin_lists_movements(self, client, admin, admin_headers, cashier_headers, active_session):
        client.post("/api/cash-movements", json=_movement("ADD", 1000), headers=cashier_headers)
        client.post("/api/cash-movements", json=_movement("REMOVE", 300), headers=cashier_headers)

        resp = client.get(f"/api/cash-sessions/{active_session.id}/movements", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert [m["type"] for m in body] == ["ADD", "REMOVE"]
        assert [m["amount"] for m in body] == [1000.0, 300.0]
        assert all(m["approved_by_employee_id"] == admin.id for m in body)

    def test_cashier_cannot_list_movements(self, client, cashier_headers, active_session):
        resp = client.get(f"/api/cash-sessions/{active_session.id}/movements", headers=cashier_headers)
        assert resp.status_code == 403

    def test_unknown_session(self, client, admin_headers):
        resp = client.get("/api/cash-sessions/999/movements", headers=admin_headers)

        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Sesión de caja no encontrada."
