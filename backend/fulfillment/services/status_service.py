# Overview: Item status model; labels, ordering, terminality and per-role status permissions.

"""
Item Status Model

================================================================================
PURPOSE: Single source of truth for item statuses and who may set them
================================================================================

STATES (fulfillment order):
    new -> assigned -> in_production -> ready -> out_for_delivery -> delivered
                                             -> picked_up
    on_hold:  side branch, re-enterable from any non-terminal status
    canceled: terminal, reachable from any non-terminal status

TERMINAL: delivered, picked_up, canceled. Nothing leaves a terminal status.

ROLE PERMISSIONS:
    A role holds a flat set of statuses it may SET an item to. This is not a
    transition graph: a manager may move an item from "ready" back to "new".
    The set is checked after the terminal lock.

    manager            all statuses
    printshop_manager  in_production, on_hold, ready, picked_up, canceled
    driver             out_for_delivery, delivered, on_hold, canceled

RULES:
1. Requesting the current status is a successful no-op, never an error
2. A terminal current status rejects every other request (TERMINAL_STATE)
3. A status outside the role's set is rejected (FORBIDDEN)
4. Unknown status or role codes are programmer errors (ValidationError)

Presentation code reads labels and ordering from here instead of keeping its
own tables.
================================================================================
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Literal

from fulfillment.permissions import Role, require_role
from fulfillment.validation import ValidationError
from .results import FailureKind


NEW = "new"
ASSIGNED = "assigned"
IN_PRODUCTION = "in_production"
ON_HOLD = "on_hold"
READY = "ready"
OUT_FOR_DELIVERY = "out_for_delivery"
DELIVERED = "delivered"
PICKED_UP = "picked_up"
CANCELED = "canceled"

# Rollup-only value for orders whose items cannot be summarized by one status
MIXED = "mixed"

# Valid item statuses in intended fulfillment order (must match models/orders.py)
ITEM_STATUSES = (
    NEW,
    ASSIGNED,
    IN_PRODUCTION,
    ON_HOLD,
    READY,
    OUT_FOR_DELIVERY,
    DELIVERED,
    PICKED_UP,
    CANCELED,
)
VALID_STATUSES = frozenset(ITEM_STATUSES)
ItemStatus = Literal[
    "new", "assigned", "in_production", "on_hold", "ready",
    "out_for_delivery", "delivered", "picked_up", "canceled",
]

TERMINAL_STATUSES = frozenset({DELIVERED, PICKED_UP, CANCELED})

# Items a driver works with; also gates which orders a driver sees
DRIVER_VISIBLE_STATUSES = frozenset({READY, OUT_FOR_DELIVERY, DELIVERED})

STATUS_LABELS = {
    NEW: "New",
    ASSIGNED: "Assigned",
    IN_PRODUCTION: "In Production",
    ON_HOLD: "On Hold",
    READY: "Ready",
    OUT_FOR_DELIVERY: "Out for Delivery",
    DELIVERED: "Delivered",
    PICKED_UP: "Picked Up",
    CANCELED: "Canceled",
    MIXED: "Mixed",
}

ROLE_ALLOWED_STATUSES = {
    Role.MANAGER: VALID_STATUSES,
    Role.PRINTSHOP_MANAGER: frozenset({IN_PRODUCTION, ON_HOLD, READY, PICKED_UP, CANCELED}),
    Role.DRIVER: frozenset({OUT_FOR_DELIVERY, DELIVERED, ON_HOLD, CANCELED}),
}


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of validate_transition."""
    allowed: bool
    noop: bool = False
    error: str | None = None
    message: str | None = None


def validate_status(status: str) -> str:
    """
    Validate that a status value is one of the item statuses.

    Raises:
        ValidationError: If status is not in VALID_STATUSES
    """
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(ITEM_STATUSES)}"
        )
    return status


def is_terminal(status: str) -> bool:
    return validate_status(status) in TERMINAL_STATUSES


def status_label(status: str) -> str:
    """Display label for an item status or the rollup-only 'mixed'."""
    if status == MIXED:
        return STATUS_LABELS[MIXED]
    return STATUS_LABELS[validate_status(status)]


def status_rank(status: str) -> int:
    """Position in fulfillment order; 'mixed' sorts after every real status."""
    if status == MIXED:
        return len(ITEM_STATUSES)
    return ITEM_STATUSES.index(validate_status(status))


def status_options(*, include_mixed: bool = False) -> list[dict]:
    """Value/label pairs for dropdowns and kanban columns, in fulfillment order."""
    options = [{"value": s, "label": STATUS_LABELS[s]} for s in ITEM_STATUSES]
    if include_mixed:
        options.append({"value": MIXED, "label": STATUS_LABELS[MIXED]})
    return options


def get_allowed_statuses(role: str) -> frozenset[str]:
    """Statuses the role may set an item to."""
    return ROLE_ALLOWED_STATUSES[require_role(role)]


def can_set_status(role: str, status: str) -> bool:
    """Check whether the role's permission set includes the status."""
    return validate_status(status) in get_allowed_statuses(role)


def validate_transition(current: str, requested: str, role: str) -> TransitionCheck:
    """
    Check a requested status change for an item against the lifecycle rules.

    Order of evaluation: no-op, terminal lock, role permission.

    Args:
        current: The item's present status
        requested: The status being requested
        role: The acting role

    Returns:
        TransitionCheck with allowed=True (and noop=True for unchanged
        status), or allowed=False with error FORBIDDEN / TERMINAL_STATE.

    Raises:
        ValidationError: Unknown status or role
    """
    validate_status(current)
    validate_status(requested)
    require_role(role)

    if current == requested:
        return TransitionCheck(allowed=True, noop=True)

    if current in TERMINAL_STATUSES:
        return TransitionCheck(
            allowed=False,
            error=FailureKind.TERMINAL_STATE,
            message=(
                f"Cannot change status from '{current}' to '{requested}': "
                f"'{current}' is a terminal status"
            ),
        )

    if requested not in ROLE_ALLOWED_STATUSES[role]:
        return TransitionCheck(
            allowed=False,
            error=FailureKind.FORBIDDEN,
            message=(
                f"Role '{role}' may not set status '{requested}'. "
                f"Allowed: {', '.join(s for s in ITEM_STATUSES if s in ROLE_ALLOWED_STATUSES[role])}"
            ),
        )

    return TransitionCheck(allowed=True)
