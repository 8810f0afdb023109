"""
Auth service tests: password hashing, login and the admin gate.
"""

import pytest

from cajapos.errors import AdminAuthorizationError, AuthenticationError, ConflictError, ValidationError
from cajapos.extensions import db
from cajapos.models import SessionToken
from cajapos.models.employees import ROLE_CASHIER
from cajapos.services import auth_service, session_service

from conftest import ADMIN_PASSWORD, ADMIN_RUT, CASHIER_PASSWORD, CASHIER_RUT


class TestPasswords:

    def test_hash_roundtrip(self, app):
        hashed = auth_service.hash_password("pan-amasado")

        assert hashed != "pan-amasado"
        assert auth_service.verify_password("pan-amasado", hashed)
        assert not auth_service.verify_password("pan-batido", hashed)

    def test_short_password_rejected(self, app):
        with pytest.raises(ValidationError):
            auth_service.hash_password("12345")

    def test_malformed_hash_is_false(self, app):
        assert auth_service.verify_password("cualquiera", "no-es-bcrypt") is False


class TestAuthenticate:

    def test_valid(self, cashier):
        assert auth_service.authenticate(CASHIER_RUT, CASHIER_PASSWORD).id == cashier.id

    def test_unknown_rut_same_error(self, cashier):
        with pytest.raises(AuthenticationError) as unknown:
            auth_service.authenticate("99999999-9", CASHIER_PASSWORD)
        with pytest.raises(AuthenticationError) as wrong:
            auth_service.authenticate(CASHIER_RUT, "incorrecta")

        assert unknown.value.message == wrong.value.message


class TestAuthorizeAdmin:

    def test_valid_admin(self, admin):
        approval = auth_service.authorize_admin(ADMIN_RUT, ADMIN_PASSWORD)

        assert approval.employee_id == admin.id
        assert approval.name == "Ana Admin"

    def test_special_sale_capability(self, admin):
        approval = auth_service.authorize_admin(ADMIN_RUT, ADMIN_PASSWORD, "APPROVE_SPECIAL_SALE")
        assert approval.employee_id == admin.id

    @pytest.mark.parametrize("rut,secret", [
        (ADMIN_RUT, "incorrecta"),
        ("99999999-9", ADMIN_PASSWORD),
        (CASHIER_RUT, CASHIER_PASSWORD),
        ("", ADMIN_PASSWORD),
        (ADMIN_RUT, None),
    ])
    def test_rejections_share_message(self, admin, cashier, rut, secret):
        with pytest.raises(AdminAuthorizationError) as excinfo:
            auth_service.authorize_admin(rut, secret)

        assert excinfo.value.message == "Credenciales de administrador inválidas."

    def test_inactive_admin(self, admin):
        admin.is_active = False
        db.session.commit()

        with pytest.raises(AdminAuthorizationError):
            auth_service.authorize_admin(ADMIN_RUT, ADMIN_PASSWORD)


class TestEmployeeAccounts:

    def test_duplicate_rut(self, cashier):
        with pytest.raises(ConflictError):
            auth_service.create_employee(
                first_name="Otro", rut=CASHIER_RUT, role=ROLE_CASHIER, password="secreto1",
            )

    def test_invalid_role(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_employee(first_name="X", rut="5-5", role="gerente", password="secreto1")

    def test_deactivation_revokes_tokens(self, cashier):
        session_service.create_session(cashier.id)
        session_service.create_session(cashier.id)

        auth_service.update_employee(
            cashier.id, first_name="Carlos", last_name="Cajero", rut=CASHIER_RUT,
            role=ROLE_CASHIER, is_active=False,
        )

        tokens = db.session.query(SessionToken).filter_by(employee_id=cashier.id).all()
        assert len(tokens) == 2
        assert all(t.is_revoked for t in tokens)

    def test_update_keeps_password_when_omitted(self, cashier):
        auth_service.update_employee(
            cashier.id, first_name="Carla", rut=CASHIER_RUT, role=ROLE_CASHIER, is_active=True,
        )

        assert auth_service.authenticate(CASHIER_RUT, CASHIER_PASSWORD).first_name == "Carla"
