# Overview: Idempotent bootstrap of printshops and optional demo data.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Order, OrderItem, Printshop, User
from ..permissions import Role
from . import access_service, mutation_service


DEFAULT_PRINTSHOPS = [
    # (id, name, address, lat, lng)
    ("in-house", "Office HQ", "4641 Av. Papineau, Montreal, QC H2H 1V3", 45.5270, -73.5740),
    ("victor", "Victor Impressions", "1234 Rue Saint-Denis, Montreal, QC H2X 3J6", 45.5155, -73.5613),
    ("studio-c", "Studio C Print", "5678 Boul. Saint-Laurent, Montreal, QC H2T 1S1", 45.5240, -73.5830),
]

DEMO_USERS = [
    # (name, email, role, assigned shops)
    ("Manager", "manager@fulfillment.local", Role.MANAGER, []),
    ("Victor", "victor@fulfillment.local", Role.PRINTSHOP_MANAGER, ["victor"]),
    ("Alex Tremblay", "alex@fulfillment.local", Role.DRIVER, []),
    ("Sam Bouchard", "sam@fulfillment.local", Role.DRIVER, []),
]

DEMO_CUSTOMERS = [
    ("Sarah Johnson", "sarah.johnson@email.com", "416-555-0101", "Tech Innovations Inc", "789 Bay St, Toronto, ON M5G 2N8"),
    ("Michael Chen", "michael.chen@email.com", "416-555-0102", None, "321 King St E, Toronto, ON M5A 1L1"),
    ("Emily Rodriguez", "emily.r@startup.co", "647-555-0103", "Startup Co", "555 Richmond St W, Toronto, ON M5V 3B1"),
]

# (customer index, external id, delivery method, source, items)
# item: (product, quantity, printshop or None, target status)
DEMO_ORDERS = [
    (0, "#1001", "delivery", "impression_quebec", [
        ("Business Cards", 500, "in-house", "delivered"),
        ("Letterhead", 100, "in-house", "out_for_delivery"),
    ]),
    (1, "#1002", "delivery", "promo_flash", [
        ("Banners", 2, "victor", "in_production"),
        ("Flyers", 1000, "studio-c", "ready"),
    ]),
    (2, "#1003", "customer_pickup", "studio_c", [
        ("Stickers", 250, "studio-c", "ready"),
    ]),
    (0, "#1004", "delivery", "other", [
        ("Posters", 20, None, "new"),
    ]),
]

# Path a manager walks an item through to reach each target status
_STATUS_PATH = {
    "new": [],
    "assigned": [],
    "in_production": ["in_production"],
    "ready": ["in_production", "ready"],
    "out_for_delivery": ["in_production", "ready", "out_for_delivery"],
    "delivered": ["in_production", "ready", "out_for_delivery", "delivered"],
}


def ensure_printshops() -> int:
    """Create the default printshops that don't exist yet. Returns the number created."""
    created = 0
    for shop_id, name, address, lat, lng in DEFAULT_PRINTSHOPS:
        if db.session.get(Printshop, shop_id):
            continue
        db.session.add(Printshop(id=shop_id, name=name, address=address, lat=lat, lng=lng))
        created += 1
    db.session.commit()
    return created


def seed_demo() -> dict:
    """
    Load demo users, customers and orders.

    Items are moved to their target status through the mutation service so
    the status history and production dates are real.

    Returns counts of created records. Skips entirely if any order exists.
    """
    ensure_printshops()
    counts = {"users": 0, "customers": 0, "orders": 0, "items": 0}

    if db.session.query(Order).count():
        return counts

    manager = None
    for name, email, role, shops in DEMO_USERS:
        user = db.session.query(User).filter_by(email=email).first()
        if not user:
            user = User(name=name, email=email, role=role)
            db.session.add(user)
            db.session.commit()
            counts["users"] += 1
        for shop_id in shops:
            access_service.grant_printshop_access(user_id=user.id, printshop_id=shop_id)
        if role == Role.MANAGER and manager is None:
            manager = user

    customers = []
    for name, email, phone, company, address in DEMO_CUSTOMERS:
        customer = Customer(name=name, email=email, phone=phone, company=company, address=address)
        db.session.add(customer)
        customers.append(customer)
        counts["customers"] += 1
    db.session.commit()

    for customer_index, external_id, delivery_method, source, items in DEMO_ORDERS:
        order = Order(
            external_id=external_id,
            customer_id=customers[customer_index].id,
            delivery_method=delivery_method,
            source=source,
        )
        for product_name, quantity, _, _ in items:
            order.items.append(OrderItem(product_name=product_name, quantity=quantity))
        db.session.add(order)
        db.session.commit()
        counts["orders"] += 1

        for item, (_, _, shop_id, target) in zip(list(order.items), items):
            counts["items"] += 1
            if shop_id:
                mutation_service.set_item_printshop(
                    item.id, shop_id, role=Role.MANAGER, changed_by_user_id=manager.id,
                )
            for status in _STATUS_PATH[target]:
                mutation_service.set_item_status(
                    item.id, status, Role.MANAGER, changed_by_user_id=manager.id,
                )

    return counts
