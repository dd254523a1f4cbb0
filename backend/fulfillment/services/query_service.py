# Overview: Read-only views of orders and items, scoped by actor, with rollup status.

"""
Query Facade

Every call re-reads the repository, applies the visibility filter for the
actor, and builds frozen OrderView / ItemView records. Nothing is cached;
callers re-query after a mutation.

For non-managers the order rollup is computed over the items the actor can
see, so a printshop manager's board reflects their own work only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fulfillment.time_utils import to_utc_z
from fulfillment.validation import require_id
from .access_service import ActorScope
from .repository import OrderRepository, get_repository
from .rollup_service import compute_order_status
from .status_service import MIXED, status_label, validate_status
from .visibility_service import (
    scoped_items,
    visible_activities,
    visible_files,
    visible_items,
    visible_notes,
    visible_orders,
)


@dataclass(frozen=True)
class ItemView:
    id: int
    order_id: int
    product_name: str
    description: str
    quantity: int
    specs: dict[str, Any]
    status: str
    status_label: str
    assigned_printshop_id: str | None
    due_date: datetime | None
    production_start_date: datetime | None
    production_ready_date: datetime | None
    delivery_date: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    order_external_id: str | None = None
    customer_id: int | None = None
    customer_name: str | None = None
    delivery_method: str | None = None

    @classmethod
    def from_record(cls, item) -> "ItemView":
        order = item.order
        customer = order.customer if order is not None else None
        return cls(
            id=item.id,
            order_id=item.order_id,
            product_name=item.product_name,
            description=item.description or "",
            quantity=item.quantity,
            specs=dict(item.specs or {}),
            status=item.status,
            status_label=status_label(item.status),
            assigned_printshop_id=item.assigned_printshop_id,
            due_date=item.due_date,
            production_start_date=item.production_start_date,
            production_ready_date=item.production_ready_date,
            delivery_date=item.delivery_date,
            created_at=item.created_at,
            updated_at=item.updated_at,
            order_external_id=order.external_id if order is not None else None,
            customer_id=order.customer_id if order is not None else None,
            customer_name=customer.name if customer is not None else None,
            delivery_method=order.delivery_method if order is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "order_external_id": self.order_external_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "delivery_method": self.delivery_method,
            "product_name": self.product_name,
            "description": self.description,
            "quantity": self.quantity,
            "specs": dict(self.specs),
            "status": self.status,
            "status_label": self.status_label,
            "assigned_printshop_id": self.assigned_printshop_id,
            "due_date": to_utc_z(self.due_date),
            "production_start_date": to_utc_z(self.production_start_date),
            "production_ready_date": to_utc_z(self.production_ready_date),
            "delivery_date": to_utc_z(self.delivery_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@dataclass(frozen=True)
class OrderView:
    id: int
    external_id: str | None
    customer_id: int
    customer_name: str | None
    delivery_method: str
    payment_status: str
    payment_method: str | None
    amount_total_cents: int
    amount_paid_cents: int
    source: str
    status_rollup: str
    status_label: str
    created_at: datetime | None
    updated_at: datetime | None
    version_id: int
    items: tuple[ItemView, ...] = field(default_factory=tuple)

    @property
    def items_count(self) -> int:
        return len(self.items)

    @classmethod
    def from_record(cls, order, items) -> "OrderView":
        """Build a view over the given item slice (already visibility-filtered)."""
        rollup = compute_order_status(items)
        return cls(
            id=order.id,
            external_id=order.external_id,
            customer_id=order.customer_id,
            customer_name=order.customer.name if order.customer is not None else None,
            delivery_method=order.delivery_method,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            amount_total_cents=order.amount_total_cents,
            amount_paid_cents=order.amount_paid_cents,
            source=order.source,
            status_rollup=rollup,
            status_label=status_label(rollup),
            created_at=order.created_at,
            updated_at=order.updated_at,
            version_id=order.version_id,
            items=tuple(ItemView.from_record(item) for item in items),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "external_id": self.external_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "delivery_method": self.delivery_method,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "amount_total_cents": self.amount_total_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "source": self.source,
            "status_rollup": self.status_rollup,
            "status_label": self.status_label,
            "items_count": self.items_count,
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


def _order_views(orders, actor: ActorScope) -> list[OrderView]:
    return [OrderView.from_record(order, scoped_items(order, actor)) for order in visible_orders(orders, actor)]


def _item_views(items, actor: ActorScope) -> list[ItemView]:
    return [ItemView.from_record(item) for item in visible_items(items, actor)]


# =============================================================================
# ORDERS
# =============================================================================

def list_orders(actor: ActorScope, *, repository: OrderRepository | None = None) -> list[OrderView]:
    """Orders the actor can see, newest first."""
    repo = repository or get_repository()
    return _order_views(repo.load_orders(), actor)


def get_order(order_id: int, actor: ActorScope, *, repository: OrderRepository | None = None) -> OrderView | None:
    """Single order, or None when it does not exist or the actor cannot see it."""
    order_id = require_id(order_id, "order_id")
    repo = repository or get_repository()
    order = repo.get_order(order_id)
    if order is None:
        return None
    views = _order_views([order], actor)
    return views[0] if views else None


def orders_by_status(status: str, actor: ActorScope, *, repository: OrderRepository | None = None) -> list[OrderView]:
    """Orders whose rollup (as seen by the actor) equals status. Accepts 'mixed'."""
    if status != MIXED:
        validate_status(status)
    return [view for view in list_orders(actor, repository=repository) if view.status_rollup == status]


def orders_by_customer(customer_id: int, actor: ActorScope, *, repository: OrderRepository | None = None) -> list[OrderView]:
    """A customer's visible orders, newest first."""
    customer_id = require_id(customer_id, "customer_id")
    views = [view for view in list_orders(actor, repository=repository) if view.customer_id == customer_id]
    return sorted(views, key=lambda v: (v.created_at or datetime.min, v.id), reverse=True)


# =============================================================================
# ITEMS
# =============================================================================

def list_items(actor: ActorScope, *, repository: OrderRepository | None = None) -> list[ItemView]:
    repo = repository or get_repository()
    return _item_views(repo.load_items(), actor)


def get_item(item_id: int, actor: ActorScope, *, repository: OrderRepository | None = None) -> ItemView | None:
    item_id = require_id(item_id, "item_id")
    repo = repository or get_repository()
    item = repo.get_item(item_id)
    if item is None:
        return None
    views = _item_views([item], actor)
    return views[0] if views else None


def items_by_printshop(printshop_id: str | None, actor: ActorScope, *,
                       repository: OrderRepository | None = None) -> list[ItemView]:
    """Items assigned to a printshop; None returns every visible item."""
    items = list_items(actor, repository=repository)
    if not printshop_id:
        return items
    return [item for item in items if item.assigned_printshop_id == printshop_id]


def items_by_status(status: str, actor: ActorScope, *, repository: OrderRepository | None = None) -> list[ItemView]:
    validate_status(status)
    return [item for item in list_items(actor, repository=repository) if item.status == status]


def items_by_printshop_and_status(printshop_id: str | None, status: str, actor: ActorScope, *,
                                  repository: OrderRepository | None = None) -> list[ItemView]:
    """Kanban cell: one printshop column (or all with None) and one status lane."""
    validate_status(status)
    return [item for item in items_by_printshop(printshop_id, actor, repository=repository) if item.status == status]


# =============================================================================
# NOTES / FILES
# =============================================================================

def list_notes(actor: ActorScope, *, repository: OrderRepository | None = None) -> list[dict]:
    """Notes the actor may read, newest first."""
    repo = repository or get_repository()
    notes = visible_notes(repo.load_notes(), actor, items=repo.load_items(), orders=repo.load_orders())
    return [note.to_dict() for note in notes]


def list_files(actor: ActorScope, *, repository: OrderRepository | None = None) -> list[dict]:
    repo = repository or get_repository()
    return [f.to_dict() for f in visible_files(repo.load_files(), actor, items=repo.load_items())]


# =============================================================================
# ACTIVITY FEED
# =============================================================================

def list_activities(actor: ActorScope, *, order_id: int | None = None,
                    repository: OrderRepository | None = None) -> list[dict]:
    """Activity feed the actor may read, newest first; optionally one order's entries only."""
    if order_id is not None:
        order_id = require_id(order_id, "order_id")
    repo = repository or get_repository()
    activities = visible_activities(repo.load_activities(), actor)
    if order_id is not None:
        activities = [a for a in activities if a.order_id == order_id]
    return [activity.to_dict() for activity in activities]
