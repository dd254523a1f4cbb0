# Overview: Role-scoped filtering of orders, items, notes, files and activities for an actor.

"""
Visibility Filter

================================================================================
PURPOSE: Reduce the order/item/note/file/activity universe to what one actor may see
================================================================================

All functions are pure: they take record collections and an ActorScope and
return new lists in the input order. Nothing is mutated or persisted.

MANAGER:            everything
PRINTSHOP_MANAGER:  items whose assigned printshop is in the actor's shop_ids;
                    orders with at least one such item;
                    item notes/files of visible items;
                    order notes of visible orders addressed to everyone/printshop;
                    activities recorded against one of the actor's shops
DRIVER:             items in ready / out_for_delivery / delivered;
                    orders for delivery whose items are ALL in that set;
                    notes addressed to everyone/printshop/delivery;
                    files of visible items;
                    delivery and pickup activities
================================================================================
"""

from __future__ import annotations

from typing import Iterable

from fulfillment.permissions import Role, get_note_departments
from .access_service import ActorScope
from .status_service import DRIVER_VISIBLE_STATUSES


NOTE_ENTITY_ORDER = "order"
NOTE_ENTITY_ITEM = "order_item"


def _item_visible(item, actor: ActorScope) -> bool:
    if actor.role == Role.MANAGER:
        return True
    if actor.role == Role.PRINTSHOP_MANAGER:
        return item.assigned_printshop_id is not None and item.assigned_printshop_id in actor.shop_ids
    return item.status in DRIVER_VISIBLE_STATUSES


def _order_visible(order, actor: ActorScope) -> bool:
    items = list(order.items or [])
    if actor.role == Role.MANAGER:
        return True
    if actor.role == Role.PRINTSHOP_MANAGER:
        return any(_item_visible(item, actor) for item in items)
    # An empty order is never "ready for delivery"
    return (
        order.delivery_method == "delivery"
        and bool(items)
        and all(item.status in DRIVER_VISIBLE_STATUSES for item in items)
    )


def _departments_match(note, actor: ActorScope) -> bool:
    return bool(set(note.departments or ()) & get_note_departments(actor.role))


def visible_orders(orders: Iterable, actor: ActorScope) -> list:
    return [order for order in orders if _order_visible(order, actor)]


def visible_items(items: Iterable, actor: ActorScope) -> list:
    return [item for item in items if _item_visible(item, actor)]


def scoped_items(order, actor: ActorScope) -> list:
    """The slice of an order's items the actor sees."""
    return visible_items(order.items or [], actor)


def visible_notes(notes: Iterable, actor: ActorScope, *, items: Iterable = (), orders: Iterable = ()) -> list:
    """
    Filter notes for the actor.

    Args:
        notes: Note records (order-level or item-level)
        actor: Who is looking
        items: Items the notes may be attached to (needed for printshop managers)
        orders: Orders the notes may be attached to (needed for printshop managers)
    """
    if actor.role == Role.MANAGER:
        return list(notes)

    if actor.role == Role.DRIVER:
        return [note for note in notes if _departments_match(note, actor)]

    visible_item_ids = {item.id for item in visible_items(items, actor)}
    visible_order_ids = {order.id for order in visible_orders(orders, actor)}

    result = []
    for note in notes:
        if note.entity_type == NOTE_ENTITY_ITEM:
            if note.entity_id in visible_item_ids:
                result.append(note)
        elif note.entity_type == NOTE_ENTITY_ORDER:
            if note.entity_id in visible_order_ids and _departments_match(note, actor):
                result.append(note)
    return result


def visible_files(files: Iterable, actor: ActorScope, *, items: Iterable = ()) -> list:
    """Files follow the visibility of the item they belong to."""
    if actor.role == Role.MANAGER:
        return list(files)
    visible_item_ids = {item.id for item in visible_items(items, actor)}
    return [f for f in files if f.order_item_id in visible_item_ids]


DRIVER_ACTIVITY_TYPES = frozenset({"delivery", "pickup"})


def visible_activities(activities: Iterable, actor: ActorScope) -> list:
    """Filter the activity feed; order-level entries are manager-only."""
    if actor.role == Role.MANAGER:
        return list(activities)
    if actor.role == Role.PRINTSHOP_MANAGER:
        return [a for a in activities if a.printshop_id is not None and a.printshop_id in actor.shop_ids]
    return [a for a in activities if a.entity_type == NOTE_ENTITY_ITEM and a.type in DRIVER_ACTIVITY_TYPES]
