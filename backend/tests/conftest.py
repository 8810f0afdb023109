"""
Pytest fixtures for cajapos backend tests.

Provides test database setup, employees, auth helpers and products.

NOTE: requests made through the test client may run in their own
SQLAlchemy session; call db.session.expire_all() before reading rows a
request has changed.
"""

from decimal import Decimal

import pytest

from cajapos import create_app
from cajapos.extensions import db
from cajapos.models import CashSession, Product
from cajapos.models.employees import ROLE_ADMIN, ROLE_CASHIER
from cajapos.services import auth_service
from cajapos.time_utils import utcnow

ADMIN_RUT = "11111111-1"
ADMIN_PASSWORD = "admin123"
CASHIER_RUT = "22222222-2"
CASHIER_PASSWORD = "cajero123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'DEBUG',
    'AUDIT_ASYNC': False,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh data for each test (schema kept)."""
    with app.app_context():
        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def admin(db_session):
    return auth_service.create_employee(
        first_name="Ana",
        last_name="Admin",
        rut=ADMIN_RUT,
        role=ROLE_ADMIN,
        password=ADMIN_PASSWORD,
    )


@pytest.fixture(scope='function')
def cashier(db_session):
    return auth_service.create_employee(
        first_name="Carlos",
        last_name="Cajero",
        rut=CASHIER_RUT,
        role=ROLE_CASHIER,
        password=CASHIER_PASSWORD,
    )


def get_auth_token(client, rut: str, password: str) -> str | None:
    """Helper to get auth token for an employee."""
    response = client.post('/api/login', json={'rut': rut, 'password': password})
    if response.status_code == 200:
        return response.get_json().get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, ADMIN_RUT, ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier):
    return auth_headers(get_auth_token(client, CASHIER_RUT, CASHIER_PASSWORD))


def make_product(name: str, *, stock: int, price: str = "1500", cost: str = "900", **extra) -> Product:
    product = Product(
        name=name,
        category=extra.pop("category", "Panadería"),
        cost_price=Decimal(cost),
        selling_price=Decimal(price),
        stock=stock,
        is_active=extra.pop("is_active", stock > 0),
        **extra,
    )
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture(scope='function')
def bread(db_session):
    return make_product("Pan amasado", stock=10, price="1500")


@pytest.fixture(scope='function')
def cake(db_session):
    return make_product("Torta de mil hojas", stock=2, price="12000", cost="7000",
                        expiration_date=utcnow().date())


@pytest.fixture(scope='function')
def active_session(cashier):
    """An active cash session with $10.000 in the drawer."""
    session = CashSession(
        employee_id=cashier.id,
        start_amount=Decimal("10000"),
        current_balance=Decimal("10000"),
        is_active=True,
        start_time=utcnow(),
    )
    db.session.add(session)
    db.session.commit()
    return session


def reload(instance):
    """Re-read a row after a request changed it."""
    db.session.expire_all()
    return db.session.get(type(instance), instance.id)
