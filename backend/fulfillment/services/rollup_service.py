# Overview: Order status rollup; derives one status for an order from its items.

"""
Order Status Rollup

The order status is never stored. It is a pure function of the item
statuses passed in, recomputed on every read. Callers decide WHICH items go
in: the full order for managers, the visible slice for printshop managers
and drivers (see query_service.py).

ALGORITHM (order matters, first match wins):
1. No items                                    -> new
2. Drop canceled items; nothing left           -> canceled
3. All remaining identical                     -> that status
4. a. any new                                  -> new
   b. any assigned / in_production / on_hold  -> in_production
   c. all ready                                -> ready
   d. all in {delivered, picked_up, out_for_delivery}:
        all delivered                          -> delivered
        all picked_up                          -> picked_up
        any out_for_delivery                   -> out_for_delivery
   e. otherwise                                -> mixed

Note 4d: a delivered + picked_up mix (no out_for_delivery) falls through
to "mixed".
"""

from __future__ import annotations
from collections import Counter
from typing import Iterable

from .status_service import (
    NEW,
    ASSIGNED,
    IN_PRODUCTION,
    ON_HOLD,
    READY,
    OUT_FOR_DELIVERY,
    DELIVERED,
    PICKED_UP,
    CANCELED,
    MIXED,
    validate_status,
)


_IN_PROGRESS = frozenset({ASSIGNED, IN_PRODUCTION, ON_HOLD})
_HANDED_OFF = frozenset({DELIVERED, PICKED_UP, OUT_FOR_DELIVERY})


def _statuses(items: Iterable) -> list[str]:
    """Accept OrderItem-like records or bare status strings."""
    return [validate_status(item if isinstance(item, str) else item.status) for item in items]


def compute_order_status(items: Iterable) -> str:
    """
    Roll item statuses up into a single order status.

    Args:
        items: OrderItem records (anything with .status) or status strings

    Returns:
        An item status, or "mixed"
    """
    statuses = _statuses(items)
    if not statuses:
        return NEW

    remaining = [s for s in statuses if s != CANCELED]
    if not remaining:
        return CANCELED

    unique = set(remaining)
    if len(unique) == 1:
        return remaining[0]

    if NEW in unique:
        return NEW
    if unique & _IN_PROGRESS:
        return IN_PRODUCTION
    if unique == {READY}:
        return READY
    if unique <= _HANDED_OFF:
        if unique == {DELIVERED}:
            return DELIVERED
        if unique == {PICKED_UP}:
            return PICKED_UP
        if OUT_FOR_DELIVERY in unique:
            return OUT_FOR_DELIVERY

    return MIXED


def status_counts(items: Iterable) -> dict[str, int]:
    """Tally of item statuses (canceled included), for dashboard badges."""
    return dict(Counter(_statuses(items)))
