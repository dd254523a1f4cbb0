"""
Pytest fixtures for fulfillment engine tests.

Provides the test application, per-test database wipe, and factories for
printshops, customers, users and orders.
"""

import pytest
from fulfillment import create_app
from fulfillment.extensions import db
from fulfillment.models import Customer, Order, OrderItem, Printshop, User
from fulfillment.permissions import Role
from fulfillment.services import access_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'PERSIST_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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
def printshops(db_session):
    """The three default printshops, keyed by id."""
    shops = {
        "in-house": Printshop(id="in-house", name="Office HQ"),
        "victor": Printshop(id="victor", name="Victor Impressions"),
        "studio-c": Printshop(id="studio-c", name="Studio C Print"),
    }
    db_session.add_all(shops.values())
    db_session.commit()
    return shops


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="Sarah Johnson", email="sarah.johnson@email.com", phone="416-555-0101")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def manager_user(db_session):
    user = User(name="Manager", email="manager@fulfillment.local", role=Role.MANAGER)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def victor_user(db_session, printshops):
    """Printshop manager scoped to the victor shop."""
    user = User(name="Victor", email="victor@fulfillment.local", role=Role.PRINTSHOP_MANAGER)
    db_session.add(user)
    db_session.commit()
    access_service.grant_printshop_access(user_id=user.id, printshop_id="victor")
    return user


@pytest.fixture(scope='function')
def driver_user(db_session):
    user = User(name="Alex Tremblay", email="alex@fulfillment.local", role=Role.DRIVER)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def make_order(db_session, customer):
    """
    Factory: make_order([("new", None), ("ready", "victor")], delivery_method="delivery")

    Each item is given as (status, printshop id or None). Items are written
    directly, without going through the mutation service.
    """
    def _make(items=(), *, delivery_method="delivery", customer_id=None, external_id=None):
        order = Order(
            customer_id=customer_id or customer.id,
            delivery_method=delivery_method,
            external_id=external_id,
        )
        for index, (status, shop_id) in enumerate(items, start=1):
            order.items.append(OrderItem(
                product_name=f"Item {index}",
                quantity=1,
                status=status,
                assigned_printshop_id=shop_id,
            ))
        db_session.add(order)
        db_session.commit()
        return order

    return _make
