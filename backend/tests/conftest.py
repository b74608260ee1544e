"""
Pytest fixtures for optometry backend tests.

Provides test database setup, two-shop tenant fixtures, account factories
and bearer-token headers.
"""

import pytest

from optometry import create_app
from optometry.config import TestingConfig
from optometry.extensions import db
from optometry.models import User
from optometry.permissions import Role
from optometry.services import auth_service, shop_service, token_service


PASSWORD = "password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.remove()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def make_shop(db_session):
    """Factory: create a shop (with owner and seeded registry) through the service."""
    def _make(name: str, owner_email: str, owner_name: str = "Shop Owner"):
        shop, owner, _ = shop_service.create_shop(
            name=name,
            owner_email=owner_email,
            owner_name=owner_name,
            owner_password=PASSWORD,
        )
        return shop, owner
    return _make


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: create an account with the shared test password."""
    def _make(email: str, role: str, shop=None, name: str = "Test User"):
        return auth_service.create_user(
            name=name,
            email=email,
            password=PASSWORD,
            role=role,
            shop_id=shop.id if shop is not None else None,
        )
    return _make


@pytest.fixture(scope='function')
def shop_a(make_shop):
    """Shop A with its owner (first tenant)."""
    return make_shop("Clear Sight Optics", "owner_a@clearsight.com")


@pytest.fixture(scope='function')
def shop_b(make_shop):
    """Shop B with its owner (second tenant)."""
    return make_shop("Bright Eyes Clinic", "owner_b@brighteyes.com")


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user("admin@optometrypro.com", Role.ADMIN, name="System Administrator")


@pytest.fixture(scope='function')
def optometrist_a(make_user, shop_a):
    return make_user("opto_a@clearsight.com", Role.OPTOMETRIST, shop=shop_a[0], name="Olivia Opto")


@pytest.fixture(scope='function')
def receptionist_a(make_user, shop_a):
    return make_user("desk_a@clearsight.com", Role.RECEPTIONIST, shop=shop_a[0], name="Rita Desk")


@pytest.fixture(scope='function')
def optometrist_b(make_user, shop_b):
    return make_user("opto_b@brighteyes.com", Role.OPTOMETRIST, shop=shop_b[0], name="Oscar Opto")


def auth_headers(user: User) -> dict:
    """Helper to create Authorization headers for an account."""
    pair = token_service.issue_tokens(user)
    return {'Authorization': f'Bearer {pair.access_token}'}


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to log in through the API and return the access token."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None
