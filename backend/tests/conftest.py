"""
Pytest fixtures for wholesale backend tests.

Provides test database setup, account/product factories, and test client.
"""

import pytest
from wholesale import create_app
from wholesale.extensions import db
from wholesale.models import (
    Outlet, Product,
    ROLE_OPERATOR, ROLE_DISTRIBUTOR, ROLE_OUTLET,
    OUTLET_ACTIVE, OUTLET_PENDING,
)
from wholesale.services.auth_service import create_user


PASSWORD = "Password123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'WARNING',
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


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def operator(db_session):
    return create_user("operator@test.local", PASSWORD, ROLE_OPERATOR, display_name="Operator")


@pytest.fixture(scope='function')
def distributor(db_session):
    """Distributor A."""
    return create_user("dist-a@test.local", PASSWORD, ROLE_DISTRIBUTOR, display_name="Distributor A")


@pytest.fixture(scope='function')
def distributor_b(db_session):
    """Distributor B."""
    return create_user("dist-b@test.local", PASSWORD, ROLE_DISTRIBUTOR, display_name="Distributor B")


def make_outlet(db_session, name: str, status: str, email: str | None = None):
    """Create an outlet; with email, also its OUTLET login identity."""
    outlet = Outlet(name=name, status=status, contact_email=email)
    db_session.add(outlet)
    db_session.commit()
    user = None
    if email:
        user = create_user(email, PASSWORD, ROLE_OUTLET, outlet_id=outlet.id, display_name=name)
    return outlet, user


@pytest.fixture(scope='function')
def active_outlet(db_session):
    """ACTIVE outlet with login shop@test.local. Returns (outlet, user)."""
    return make_outlet(db_session, "Corner Shop", OUTLET_ACTIVE, "shop@test.local")


@pytest.fixture(scope='function')
def other_outlet(db_session):
    """Second ACTIVE outlet with login other@test.local. Returns (outlet, user)."""
    return make_outlet(db_session, "Other Shop", OUTLET_ACTIVE, "other@test.local")


@pytest.fixture(scope='function')
def pending_outlet(db_session):
    """PENDING outlet without a login identity."""
    outlet, _ = make_outlet(db_session, "New Shop", OUTLET_PENDING)
    return outlet


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(distributor, name=..., price_cents=..., stock_quantity=...)."""
    def _make(distributor, name="Product", price_cents=1000, stock_quantity=10, **extra):
        product = Product(
            distributor_id=distributor.id,
            name=name,
            price_cents=price_cents,
            stock_quantity=stock_quantity,
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def operator_headers(client, operator):
    return auth_headers(get_auth_token(client, operator.email, PASSWORD))


@pytest.fixture(scope='function')
def distributor_headers(client, distributor):
    return auth_headers(get_auth_token(client, distributor.email, PASSWORD))


@pytest.fixture(scope='function')
def distributor_b_headers(client, distributor_b):
    return auth_headers(get_auth_token(client, distributor_b.email, PASSWORD))


@pytest.fixture(scope='function')
def outlet_headers(client, active_outlet):
    _, user = active_outlet
    return auth_headers(get_auth_token(client, user.email, PASSWORD))


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def login(client):
    """Factory: login(email) -> Authorization headers (None token on failure)."""
    def _login(email: str, password: str = PASSWORD) -> dict:
        return auth_headers(get_auth_token(client, email, password))
    return _login
