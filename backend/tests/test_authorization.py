"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied admin-only operations (403)
- Admin role can perform privileged operations
- Session tokens: login, logout, revocation, deactivated employees
"""

from datetime import timedelta

import pytest

from cajapos.extensions import db
from cajapos.models import SessionToken
from cajapos.services import session_service
from cajapos.time_utils import utcnow

from conftest import (
    ADMIN_PASSWORD,
    ADMIN_RUT,
    CASHIER_PASSWORD,
    CASHIER_RUT,
    auth_headers,
    get_auth_token,
    reload,
)


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/cash-sessions/active"),
            ("POST", "/api/cash-sessions/start"),
            ("POST", "/api/cash-sessions/close"),
            ("POST", "/api/cash-movements"),
            ("GET", "/api/cash-sessions/1/movements"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales"),
            ("POST", "/api/print-receipt"),
            ("GET", "/api/products"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/purchase-orders"),
            ("GET", "/api/customer-orders"),
            ("GET", "/api/employees"),
            ("GET", "/api/reports/summary"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_token_rejected(self, client):
        resp = client.get("/api/auth/me", headers=auth_headers("no-es-un-token"))

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Sesión inválida o expirada."

    def test_malformed_header_rejected(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_user(self, client, cashier):
        resp = client.post("/api/login", json={"rut": CASHIER_RUT, "password": CASHIER_PASSWORD})

        assert resp.status_code == 200
        body = resp.get_json()
        assert len(body["token"]) == 64
        assert body["user"] == {"id": cashier.id, "name": "Carlos Cajero", "role": "cajero"}

    def test_auth_login_alias(self, client, admin):
        resp = client.post("/api/auth/login", json={"rut": ADMIN_RUT, "password": ADMIN_PASSWORD})
        assert resp.status_code == 200

    @pytest.mark.parametrize("payload", [
        {"rut": CASHIER_RUT, "password": "incorrecta"},
        {"rut": "99999999-9", "password": CASHIER_PASSWORD},
        {"rut": CASHIER_RUT},
        {},
    ], ids=["wrong-password", "unknown-rut", "no-password", "empty"])
    def test_bad_credentials(self, client, cashier, payload):
        resp = client.post("/api/login", json=payload)

        assert resp.status_code == 400
        assert resp.get_json() == {"message": "Credenciales inválidas"}

    def test_inactive_employee_cannot_log_in(self, client, cashier):
        cashier.is_active = False
        db.session.commit()

        assert get_auth_token(client, CASHIER_RUT, CASHIER_PASSWORD) is None

    def test_token_stored_hashed(self, client, cashier):
        token = get_auth_token(client, CASHIER_RUT, CASHIER_PASSWORD)

        db.session.expire_all()
        stored = db.session.query(SessionToken).one()
        assert stored.token_hash != token
        assert stored.token_hash == session_service.hash_token(token)


# =============================================================================
# CURRENT USER / LOGOUT
# =============================================================================


class TestSessionLifecycle:

    def test_me_lists_capabilities(self, client, cashier_headers):
        resp = client.get("/api/auth/me", headers=cashier_headers)

        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["role"] == "cajero"
        assert "PROCESS_SALE" in user["capabilities"]
        assert "MANAGE_EMPLOYEES" not in user["capabilities"]

    def test_logout_revokes_token(self, client, cashier_headers):
        resp = client.post("/api/auth/logout", headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.get_json()["cash_session"] is None
        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401

    def test_logout_closes_cash_session(self, client, cashier_headers, active_session):
        resp = client.post("/api/auth/logout", headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.get_json()["cash_session"]["is_active"] is False
        assert reload(active_session).is_active is False

    def test_deactivated_employee_token_rejected(self, client, cashier, cashier_headers):
        cashier.is_active = False
        db.session.commit()

        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401

        db.session.expire_all()
        stored = db.session.query(SessionToken).one()
        assert stored.is_revoked is True
        assert stored.revoked_reason == "Employee deactivated"

    def test_idle_token_rejected(self, client, cashier_headers):
        stored = db.session.query(SessionToken).one()
        stored.last_used_at = utcnow() - timedelta(days=1)
        db.session.commit()

        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401
        assert reload(stored).revoked_reason == "Idle timeout"

    def test_expired_token_rejected(self, client, cashier_headers):
        stored = db.session.query(SessionToken).one()
        stored.expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()

        assert client.get("/api/auth/me", headers=cashier_headers).status_code == 401


# =============================================================================
# CASHIER DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestCashierDenied:
    """Cashier role cannot perform privileged operations."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/employees"),
            ("POST", "/api/employees"),
            ("PUT", "/api/employees/1"),
            ("GET", "/api/reports/summary"),
            ("POST", "/api/suppliers"),
            ("PUT", "/api/suppliers/1"),
            ("DELETE", "/api/suppliers/1"),
            ("GET", "/api/cash-sessions/1/movements"),
        ],
    )
    def test_denied(self, client, cashier_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=cashier_headers, json={})

        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"message": "Acceso denegado."}

    @pytest.mark.parametrize(
        "path",
        [
            "/api/cash-sessions/active",
            "/api/products",
            "/api/suppliers",
            "/api/purchase-orders",
            "/api/customer-orders",
            "/api/sales",
        ],
    )
    def test_allowed(self, client, cashier_headers, path):
        resp = client.get(path, headers=cashier_headers)
        assert resp.status_code == 200, f"GET {path} returned {resp.status_code}"


# =============================================================================
# ADMIN CAN PERFORM PRIVILEGED OPERATIONS
# =============================================================================


class TestAdminAllowed:

    @pytest.mark.parametrize("path", ["/api/employees", "/api/reports/summary", "/api/suppliers"])
    def test_admin_reads(self, client, admin_headers, path):
        resp = client.get(path, headers=admin_headers)
        assert resp.status_code == 200, f"GET {path} returned {resp.status_code}"
