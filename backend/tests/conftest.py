"""
Pytest fixtures for back-office backend tests.

Provides an in-memory database, role users with bearer tokens,
and product/customer factories.
"""

import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Customer, Product, User
from backoffice.services import session_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUDIT_ASYNC': False,
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
    # Clear all data but keep schema
    db.session.rollback()
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expunge_all()

    yield db.session

    # Cleanup after test
    db.session.rollback()


def _make_user(db_session, role: str, email: str, name: str) -> User:
    user = User(email=email, name=name, role=role, password_hash="unused", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session):
    return _make_user(db_session, "admin", "admin@example.com", "Ada Admin")


@pytest.fixture(scope='function')
def manager(db_session):
    return _make_user(db_session, "manager", "manager@example.com", "Max Manager")


@pytest.fixture(scope='function')
def sales_rep(db_session):
    return _make_user(db_session, "sales_rep", "rep1@example.com", "Rita Rep")


@pytest.fixture(scope='function')
def other_rep(db_session):
    return _make_user(db_session, "sales_rep", "rep2@example.com", "Sam Rep")


@pytest.fixture(scope='function')
def viewer(db_session):
    return _make_user(db_session, "viewer", "viewer@example.com", "Vic Viewer")


def token_for(user: User) -> str:
    _, token = session_service.create_session(user.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(token_for(admin))


@pytest.fixture(scope='function')
def manager_headers(manager):
    return auth_headers(token_for(manager))


@pytest.fixture(scope='function')
def rep_headers(sales_rep):
    return auth_headers(token_for(sales_rep))


@pytest.fixture(scope='function')
def viewer_headers(viewer):
    return auth_headers(token_for(viewer))


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for products with a given (history-free) stock level."""
    counter = {"n": 0}

    def _make(name="Widget", critical_stock_level=0, status="active", category="General"):
        counter["n"] += 1
        product = Product(
            code=f"PRDTEST{counter['n']:03d}",
            name=name,
            category=category,
            current_stock=0,
            critical_stock_level=critical_stock_level,
            status=status,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    counter = {"n": 0}

    def _make(name="Acme Ltd", sales_rep_id=None, balance_risk_limit_cents=0, status="active"):
        counter["n"] += 1
        customer = Customer(
            code=f"CUSTEST{counter['n']:03d}",
            name=name,
            sales_rep_id=sales_rep_id,
            balance_risk_limit_cents=balance_risk_limit_cents,
            current_balance_cents=0,
            status=status,
        )
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make
