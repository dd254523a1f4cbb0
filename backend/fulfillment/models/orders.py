from __future__ import annotations

from ..extensions import db
from fulfillment.time_utils import to_utc_z


PAYMENT_STATUSES = ("paid", "unpaid", "partial")
PAYMENT_METHODS = ("shopify", "cash", "cheque", "etransfer", "invoice", "other")
ORDER_SOURCES = ("impression_quebec", "promo_flash", "propaganda", "sticker_pusher", "studio_c", "other")


class Order(db.Model):
    """
    Customer order: the aggregate root for its items and their history.

    CONCURRENCY: version_id is the optimistic-lock counter for the whole
    aggregate. Item mutations touch the order's updated_at so that every
    change to the aggregate advances the version.

    The order's status is never stored. It is rolled up from the items on
    every read (see services/rollup_service.py).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_customer_id", "customer_id"),
        db.Index("ix_orders_source", "source"),
        db.Index("ix_orders_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Display code from the originating channel (e.g., Shopify "#1042")
    external_id = db.Column(db.String(64), nullable=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)

    delivery_method = db.Column(db.String(32), nullable=False, default="delivery")  # delivery, customer_pickup
    payment_status = db.Column(db.String(16), nullable=False, default="unpaid")  # paid, unpaid, partial
    payment_method = db.Column(db.String(32), nullable=True)

    amount_total_cents = db.Column(db.Integer, nullable=False, default=0)
    amount_paid_cents = db.Column(db.Integer, nullable=False, default=0)

    source = db.Column(db.String(32), nullable=False, default="other")
    internal_notes = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )
    activities = db.relationship(
        "Activity",
        back_populates="order",
        order_by="Activity.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "external_id": self.external_id,
            "customer_id": self.customer_id,
            "delivery_method": self.delivery_method,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "amount_total_cents": self.amount_total_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "source": self.source,
            "internal_notes": self.internal_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class OrderItem(db.Model):
    """
    Line item produced by one printshop.

    LIFECYCLE (see services/status_service.py):
        new -> assigned -> in_production -> ready -> out_for_delivery -> delivered
                                                  -> picked_up
        on_hold: re-enterable from any non-terminal status
        canceled: terminal, reachable from any non-terminal status

    Production and delivery dates are stamped by the mutation service the
    first time the matching status is reached and are never cleared.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.Index("ix_order_items_order_id", "order_id"),
        db.Index("ix_order_items_assigned_printshop", "assigned_printshop_id"),
        db.Index("ix_order_items_status", "status"),
        db.Index("ix_order_items_due_date", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)

    product_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    quantity = db.Column(db.Integer, nullable=False, default=1)

    # Free-form print specs: {"size": "3.5x2", "paper": "16pt", ...}
    specs = db.Column(db.JSON, nullable=False, default=dict)

    status = db.Column(db.String(32), nullable=False, default="new")
    assigned_printshop_id = db.Column(db.String(64), db.ForeignKey("printshops.id"), nullable=True)

    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    production_start_date = db.Column(db.DateTime(timezone=True), nullable=True)
    production_ready_date = db.Column(db.DateTime(timezone=True), nullable=True)
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    order = db.relationship("Order", back_populates="items")
    assigned_printshop = db.relationship("Printshop", backref=db.backref("items", lazy=True))
    status_history = db.relationship(
        "StatusHistoryEntry",
        back_populates="item",
        order_by="StatusHistoryEntry.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_name": self.product_name,
            "description": self.description,
            "quantity": self.quantity,
            "specs": dict(self.specs or {}),
            "status": self.status,
            "assigned_printshop_id": self.assigned_printshop_id,
            "due_date": to_utc_z(self.due_date),
            "production_start_date": to_utc_z(self.production_start_date),
            "production_ready_date": to_utc_z(self.production_ready_date),
            "delivery_date": to_utc_z(self.delivery_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "status_history": [entry.to_dict() for entry in self.status_history],
        }


class StatusHistoryEntry(db.Model):
    """
    Append-only record of one item status change.

    Written only by services/mutation_service.py; there is no update or
    delete path.
    """
    __tablename__ = "status_history"
    __table_args__ = (
        db.Index("ix_status_history_order_item_id", "order_item_id"),
        db.Index("ix_status_history_changed_at", "changed_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False)

    from_status = db.Column(db.String(32), nullable=False)
    to_status = db.Column(db.String(32), nullable=False)

    changed_at = db.Column(db.DateTime(timezone=True), nullable=False)
    changed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    changed_by_role = db.Column(db.String(32), nullable=True)  # None for system cascades
    note = db.Column(db.Text, nullable=True)

    item = db.relationship("OrderItem", back_populates="status_history")
    changed_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_item_id": self.order_item_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "changed_at": to_utc_z(self.changed_at),
            "changed_by_user_id": self.changed_by_user_id,
            "changed_by_role": self.changed_by_role,
            "note": self.note,
        }
