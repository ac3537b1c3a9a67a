"""
Pytest fixtures for HomeBake backend tests.

Provides an in-memory database, the Flask test client, one user per role
and bearer-token headers for each of them.
"""

import pytest

from homebake import create_app
from homebake.extensions import db
from homebake.models import BreadType
from homebake.models.auth import ROLE_OWNER, ROLE_MANAGER, ROLE_SALES_REP
from homebake.services import auth_service, session_service


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'WARNING',
        'APP_URL': 'https://bake.test',
        'VAPID_PUBLIC_KEY': None,
        'VAPID_PRIVATE_KEY': None,
        'ENFORCE_STOCK_ON_SALE': True,
        'LOW_STOCK_THRESHOLD': 10,
    })

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


def _make_user(role: str, name: str, email: str, created_by=None):
    return auth_service.create_user(
        name=name,
        email=email,
        password=TEST_PASSWORD,
        role=role,
        created_by_user_id=created_by.id if created_by else None,
    )


@pytest.fixture(scope='function')
def owner(db_session):
    return _make_user(ROLE_OWNER, "Olu Owner", "owner@homebake.test")


@pytest.fixture(scope='function')
def manager(db_session, owner):
    return _make_user(ROLE_MANAGER, "Mary Manager", "manager@homebake.test", owner)


@pytest.fixture(scope='function')
def sales_rep(db_session, owner):
    return _make_user(ROLE_SALES_REP, "Sam Sales", "sales@homebake.test", owner)


@pytest.fixture(scope='function')
def bread_type(db_session, owner):
    """Family Loaf at 1,200.00 (minor units)."""
    bread = BreadType(name="Family Loaf", size="800g", unit_price_cents=120000, created_by_user_id=owner.id)
    db_session.add(bread)
    db_session.commit()
    return bread


@pytest.fixture(scope='function')
def other_bread_type(db_session, owner):
    bread = BreadType(name="Mini Loaf", size="250g", unit_price_cents=40000, created_by_user_id=owner.id)
    db_session.add(bread)
    db_session.commit()
    return bread


def token_for(user) -> str:
    """Issue a session token without going through the login endpoint."""
    _, token = session_service.create_session(user.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_headers(owner):
    return auth_headers(token_for(owner))


@pytest.fixture(scope='function')
def manager_headers(manager):
    return auth_headers(token_for(manager))


@pytest.fixture(scope='function')
def sales_headers(sales_rep):
    return auth_headers(token_for(sales_rep))
