"""
Pytest fixtures for stockgrid backend tests.

Provides test database setup, a cashier with a rice catalog, and test client.
"""

from datetime import datetime

import pytest
from stockgrid import create_app
from stockgrid.extensions import db
from stockgrid.models import Cashier
from stockgrid.services import catalog_service, order_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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


@pytest.fixture(scope='function')
def cashier(db_session):
    """Create the acting cashier."""
    cashier = Cashier(name="Counter 1", user_id=7)
    db_session.add(cashier)
    db_session.commit()
    return cashier


@pytest.fixture(scope='function')
def other_cashier(db_session):
    """Create a second cashier reporting to the same user."""
    cashier = Cashier(name="Counter 2", user_id=7)
    db_session.add(cashier)
    db_session.commit()
    return cashier


@pytest.fixture(scope='function')
def rice(db_session, cashier):
    """Rice owned by the cashier: 25KG sacks (stock 100) and per-kilo (stock 50)."""
    product = catalog_service.create_product(
        name="Rice",
        cashier_id=cashier.id,
        sack_prices=[
            {"type": "TWENTY_FIVE_KG", "price": "1250", "stock": 100,
             "special_price": {"price": "1200", "minimum_qty": 5}},
        ],
        per_kilo_price={"price": "52", "stock": "50"},
    )
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def unassigned_product(db_session):
    """Product with no owner yet (claimed by the first delivery/transfer)."""
    product = catalog_service.create_product(
        name="Jasmine",
        cashier_id=None,
        sack_prices=[{"type": "FIFTY_KG", "price": "2600", "stock": 10}],
        per_kilo_price={"price": "55", "stock": "20"},
    )
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def foreign_product(db_session, other_cashier):
    """Product owned by another cashier."""
    product = catalog_service.create_product(
        name="Sinandomeng",
        cashier_id=other_cashier.id,
        sack_prices=[{"type": "FIVE_KG", "price": "250", "stock": 40}],
    )
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def pending_order(db_session, cashier):
    order = order_service.create_order(cashier_id=cashier.id, total_amount="1250")
    db_session.commit()
    return order


def sack_line(product, quantity, **extra):
    """Payload line drawing from the product's first sack tier."""
    line = {"product_id": product.id, "sack_price": {"id": product.sack_prices[0].id, "quantity": quantity}}
    line.update(extra)
    return line


def kilo_line(product, quantity, **extra):
    """Payload line drawing from the product's per-kilo tier."""
    line = {"product_id": product.id, "per_kilo_price": {"id": product.per_kilo_price.id, "quantity": quantity}}
    line.update(extra)
    return line


def stamp(obj, when: datetime):
    """Backdate created_at (UTC-naive) and commit."""
    obj.created_at = when
    db.session.commit()
