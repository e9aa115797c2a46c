"""
Pytest fixtures for the restaurant register backend tests.

Provides an in-memory database, a test client, and small helpers for
putting money through the register.
"""

import pytest

from restopos import create_app
from restopos.extensions import db
from restopos.models import Product
from restopos.services import sales_service


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BUSINESS_TIMEZONE': 'UTC',
    'DEFAULT_DAILY_BASE_CENTS': 50000,
    'DEFAULT_REOPEN_PASSWORD': '1234',
    # Low bcrypt cost keeps password hashing fast in tests
    'BCRYPT_ROUNDS': 4,
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
def burger(db_session):
    """Made-to-order product (no stock tracking)."""
    product = Product(name="Hamburguesa", price_cents=15000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def soda(db_session):
    """Inventory-controlled product."""
    product = Product(
        name="Gaseosa",
        price_cents=3000,
        stock=10,
        min_stock=5,
        has_inventory_control=True,
    )
    db_session.add(product)
    db_session.commit()
    return product


def _record_sale(cash_cents: int = 0, transfer_cents: int = 0, **kwargs):
    return sales_service.record_sale(
        items=[{
            "product_name": "Menú del día",
            "quantity": 1,
            "unit_price_cents": cash_cents + transfer_cents,
        }],
        cash_amount_cents=cash_cents,
        transfer_amount_cents=transfer_cents,
        **kwargs,
    )


@pytest.fixture(scope='function')
def sell(db_session):
    """Record an open-price sale paid with the given split."""
    return _record_sale
