"""
Pytest fixtures for tillbook backend tests.

Provides test database setup, two-tenant fixtures and a product factory.
"""

from decimal import Decimal

import pytest
from tillbook import create_app
from tillbook.extensions import db
from tillbook.models import Tenant, User, Product
from tillbook.services.sales_service import EngineOptions


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SALE_RETRY_BACKOFF': 0,
        'LOG_LEVEL': 'WARNING',
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


@pytest.fixture
def engine_options():
    """No backoff sleeps in tests."""
    return EngineOptions(retry_attempts=3, retry_backoff=0)


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Create Tenant A (first store account)."""
    tenant = Tenant(name="Toko A", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Create Tenant B (second store account)."""
    tenant = Tenant(name="Toko B", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def owner_a(db_session, tenant_a):
    """Create the owner user of Tenant A."""
    user = User(tenant_id=tenant_a.id, name="Owner A", email="owner@toko-a.test", role="owner")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner_b(db_session, tenant_b):
    """Create the owner user of Tenant B."""
    user = User(tenant_id=tenant_b.id, name="Owner B", email="owner@toko-b.test", role="owner")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(tenant, price=..., stock=...)."""
    counter = {"n": 0}

    def _make(tenant, *, price="10000", stock=5, min_stock=0, name=None, is_active=True):
        counter["n"] += 1
        product = Product(
            tenant_id=tenant.id,
            sku=f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            sell_price=Decimal(price),
            buy_price=Decimal("0"),
            stock=stock,
            min_stock=min_stock,
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def product_a(make_product, tenant_a):
    """Product in Tenant A: price 10000, stock 5."""
    return make_product(tenant_a, price="10000", stock=5, name="Product A")
