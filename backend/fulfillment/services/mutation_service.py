# Overview: Mutation engine; applies status, assignment, due-date and payment changes with cascades.

"""
Order/Item Mutation Service

================================================================================
PURPOSE: Apply user actions to items and orders, with their automatic cascades
================================================================================

Two layers:

- apply_* functions work on in-memory records only. They validate, change
  fields, append history and return a MutationResult. No session, no commit.
- set_* / cancel_bulk functions load by id through an OrderRepository, call
  the apply_* layer, and persist the order aggregate in one transaction.

CASCADES:
- status -> in_production: production_start_date stamped if unset
- status -> ready:         production_ready_date stamped if unset
- status -> delivered / picked_up: delivery_date stamped if unset
- printshop assigned while status is new:       status -> assigned
- printshop cleared while status is assigned:   status -> new
- any item change touches the order's updated_at (bumps the aggregate version)

HISTORY: every status change, direct or cascaded, appends exactly one
StatusHistoryEntry (from_status, to_status). No-ops append nothing.

ACTIVITY: every applied persisted mutation (status, printshop, due date,
payment status/method, source) writes exactly one Activity row on the
order, committed with the change. A printshop assignment that cascades a
status flip is still one "assignment" activity.

FAILURES (returned, never raised): FORBIDDEN, TERMINAL_STATE, NOT_FOUND,
CONFLICT. Malformed ids/values raise ValidationError.
================================================================================
"""

from __future__ import annotations

from flask import current_app

from fulfillment.models import Activity, OrderItem, StatusHistoryEntry
from fulfillment.models.orders import ORDER_SOURCES, PAYMENT_METHODS, PAYMENT_STATUSES
from fulfillment.permissions import require_role
from fulfillment.time_utils import utcnow
from fulfillment.validation import ValidationError, coerce_datetime, require_choice, require_id, require_ids
from .concurrency import ConcurrencyConflict, check_expected_version, run_with_retry
from .repository import OrderRepository, get_repository
from .results import BulkMutationResult, FailureKind, MutationResult
from .status_service import (
    NEW,
    ASSIGNED,
    IN_PRODUCTION,
    READY,
    OUT_FOR_DELIVERY,
    DELIVERED,
    PICKED_UP,
    CANCELED,
    TERMINAL_STATUSES,
    status_label,
    validate_status,
    validate_transition,
)


# ================================================================================
# RECORD-LEVEL OPERATIONS (no persistence)
# ================================================================================

def _touch_order(item: OrderItem, now) -> None:
    if item.order is not None:
        item.order.updated_at = now


def _stamp_dates(item: OrderItem, new_status: str, now) -> None:
    if new_status == IN_PRODUCTION and item.production_start_date is None:
        item.production_start_date = now
    elif new_status == READY and item.production_ready_date is None:
        item.production_ready_date = now
    elif new_status in (DELIVERED, PICKED_UP) and item.delivery_date is None:
        item.delivery_date = now


def _change_status(
    item: OrderItem,
    new_status: str,
    *,
    now,
    role: str | None,
    changed_by_user_id: int | None,
    note: str | None,
) -> None:
    """History entry, status, timestamps and order touch as one unit."""
    item.status_history.append(
        StatusHistoryEntry(
            from_status=item.status,
            to_status=new_status,
            changed_at=now,
            changed_by_user_id=changed_by_user_id,
            changed_by_role=role,
            note=note,
        )
    )
    item.status = new_status
    item.updated_at = now
    _stamp_dates(item, new_status, now)
    _touch_order(item, now)


def apply_item_status(
    item: OrderItem,
    new_status: str,
    role: str,
    *,
    changed_by_user_id: int | None = None,
    note: str | None = None,
    now=None,
) -> MutationResult:
    """
    Set an item's status on the in-memory record.

    Returns:
        success (noop=True if unchanged), or FORBIDDEN / TERMINAL_STATE failure.
        On failure the record is left untouched.
    """
    check = validate_transition(item.status, new_status, role)
    if check.noop:
        return MutationResult.success(item, noop=True, message=f"Item {item.id} is already '{new_status}'")
    if not check.allowed:
        return MutationResult.failure(
            check.error,
            f"Item {item.id}: {check.message}",
            record=item,
            role=role,
            current=item.status,
            requested=new_status,
        )

    _change_status(
        item,
        new_status,
        now=now or utcnow(),
        role=role,
        changed_by_user_id=changed_by_user_id,
        note=note,
    )
    return MutationResult.success(item)


def apply_item_printshop(
    item: OrderItem,
    printshop_id: str | None,
    *,
    role: str | None = None,
    changed_by_user_id: int | None = None,
    now=None,
) -> MutationResult:
    """
    Assign (or clear) an item's printshop on the in-memory record.

    Cascades new -> assigned on assignment and assigned -> new on clearing.
    Terminal items keep their printshop (TERMINAL_STATE).
    """
    if item.assigned_printshop_id == printshop_id:
        return MutationResult.success(
            item, noop=True, message=f"Item {item.id} is already assigned to '{printshop_id or 'nobody'}'"
        )

    if item.status in TERMINAL_STATUSES:
        return MutationResult.failure(
            FailureKind.TERMINAL_STATE,
            f"Item {item.id}: cannot change printshop of an item in terminal status '{item.status}'",
            record=item,
            role=role,
            current=item.status,
        )

    now = now or utcnow()
    item.assigned_printshop_id = printshop_id
    item.updated_at = now

    if printshop_id and item.status == NEW:
        _change_status(
            item, ASSIGNED,
            now=now, role=role, changed_by_user_id=changed_by_user_id,
            note=f"Assigned to {printshop_id}",
        )
    elif not printshop_id and item.status == ASSIGNED:
        _change_status(
            item, NEW,
            now=now, role=role, changed_by_user_id=changed_by_user_id,
            note="Printshop unassigned",
        )

    _touch_order(item, now)
    return MutationResult.success(item)


def apply_item_due_date(item: OrderItem, due_date, *, now=None) -> MutationResult:
    """Plain due-date update; no cascade."""
    if item.due_date == due_date:
        return MutationResult.success(item, noop=True)

    now = now or utcnow()
    item.due_date = due_date
    item.updated_at = now
    _touch_order(item, now)
    return MutationResult.success(item)


# ================================================================================
# ACTIVITY FEED
# ================================================================================

def _label(code: str | None) -> str | None:
    if code is None:
        return None
    return " ".join(word.capitalize() for word in code.split("_"))


def _format_day(value) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def _status_activity(new_status: str) -> tuple[str, str]:
    """(activity type, message) for an item status change."""
    if new_status == OUT_FOR_DELIVERY:
        return "delivery", "Out for delivery"
    if new_status == DELIVERED:
        return "delivery", "Successfully delivered"
    if new_status == PICKED_UP:
        return "pickup", "Item marked as picked up"
    return "status_change", "Status updated"


def _record_activity(
    order,
    activity_type: str,
    message: str,
    *,
    item: OrderItem | None = None,
    printshop_id: str | None = None,
    role: str | None = None,
    user_id: int | None = None,
    from_value: str | None = None,
    to_value: str | None = None,
    now=None,
) -> Activity:
    """Append one feed entry to the order; it is committed with the order aggregate."""
    activity = Activity(
        type=activity_type,
        entity_type="order_item" if item is not None else "order",
        entity_id=item.id if item is not None else order.id,
        printshop_id=printshop_id,
        user_id=user_id,
        role=role,
        message=message,
        from_value=from_value,
        to_value=to_value,
        created_at=now or utcnow(),
    )
    order.activities.append(activity)
    return activity


# ================================================================================
# PERSISTED OPERATIONS
# ================================================================================

def _not_found(kind: str, record_id, **detail) -> MutationResult:
    return MutationResult.failure(FailureKind.NOT_FOUND, f"{kind} {record_id} not found", **detail)


def _finish(repo: OrderRepository, record, result: MutationResult, action: str) -> MutationResult:
    """
    Persist a successful change, or end the transaction for no-ops/failures.

    A version conflict at commit time becomes a CONFLICT result.
    """
    if not result.ok:
        repo.discard()
        current_app.logger.warning("Rejected %s: %s [%s]", action, result.message, result.error)
        return result

    if result.noop:
        repo.discard()
        return result

    try:
        repo.persist(record)
    except ConcurrencyConflict as exc:
        current_app.logger.warning("Conflict on %s: %s", action, exc)
        return MutationResult.failure(
            FailureKind.CONFLICT,
            str(exc),
            role=result.role,
            current=result.current,
            requested=result.requested,
        )

    current_app.logger.info("Applied %s", action)
    return result


def set_item_status(
    item_id: int,
    new_status: str,
    role: str,
    *,
    changed_by_user_id: int | None = None,
    note: str | None = None,
    expected_version: int | None = None,
    repository: OrderRepository | None = None,
) -> MutationResult:
    """
    Change an item's status as the given role.

    Args:
        item_id: Item to change
        new_status: Requested status
        role: Acting role (manager, printshop_manager, driver)
        changed_by_user_id: Recorded on the history entry
        note: Recorded on the history entry
        expected_version: Order version the caller last read; mismatch -> CONFLICT
        repository: Persistence collaborator (SQLAlchemy by default)

    Returns:
        MutationResult; failures are FORBIDDEN, TERMINAL_STATE, NOT_FOUND, CONFLICT

    Raises:
        ValidationError: malformed id, unknown status or role
    """
    item_id = require_id(item_id, "item_id")
    validate_status(new_status)
    require_role(role)
    repo = repository or get_repository()

    def _op():
        item = repo.get_item(item_id, for_update=True)
        if item is None:
            repo.discard()
            return _not_found("Order item", item_id, role=role, requested=new_status)

        conflict = check_expected_version(item.order, expected_version, role=role, requested=new_status)
        if conflict:
            repo.discard()
            return conflict

        previous = item.status
        now = utcnow()
        result = apply_item_status(
            item, new_status, role,
            changed_by_user_id=changed_by_user_id,
            note=note,
            now=now,
        )
        if result.ok and not result.noop:
            activity_type, message = _status_activity(new_status)
            _record_activity(
                item.order, activity_type, message,
                item=item,
                printshop_id=item.assigned_printshop_id,
                role=role,
                user_id=changed_by_user_id,
                from_value=status_label(previous),
                to_value=status_label(new_status),
                now=now,
            )
        return _finish(repo, item, result, f"item {item_id} status {previous} -> {new_status} (role={role})")

    return run_with_retry(_op)


def set_item_printshop(
    item_id: int,
    printshop_id: str | None,
    *,
    role: str | None = None,
    changed_by_user_id: int | None = None,
    expected_version: int | None = None,
    repository: OrderRepository | None = None,
) -> MutationResult:
    """
    Assign an item to a printshop, or clear the assignment with None.

    Any actor with item-edit rights may reassign; role is only recorded on a
    cascaded history entry and on the activity.
    """
    item_id = require_id(item_id, "item_id")
    if printshop_id is not None and not isinstance(printshop_id, str):
        raise ValidationError("printshop_id must be a string or None")
    printshop_id = printshop_id or None
    if role is not None:
        require_role(role)
    repo = repository or get_repository()

    def _op():
        item = repo.get_item(item_id, for_update=True)
        if item is None:
            repo.discard()
            return _not_found("Order item", item_id, role=role)

        printshop = None
        if printshop_id is not None:
            printshop = repo.get_printshop(printshop_id)
            if printshop is None:
                repo.discard()
                return _not_found("Printshop", printshop_id, role=role, requested=printshop_id)

        conflict = check_expected_version(item.order, expected_version, role=role, requested=printshop_id)
        if conflict:
            repo.discard()
            return conflict

        previous_status = item.status
        previous_shop = item.assigned_printshop_id
        now = utcnow()
        result = apply_item_printshop(
            item, printshop_id,
            role=role,
            changed_by_user_id=changed_by_user_id,
            now=now,
        )
        if result.ok and not result.noop:
            if item.status != previous_status:
                current_app.logger.info(
                    "Auto-set item %s status %s -> %s on printshop change", item_id, previous_status, item.status
                )
            _record_activity(
                item.order, "assignment",
                f"Assigned to {printshop.name}" if printshop is not None else "Printshop unassigned",
                item=item,
                printshop_id=printshop_id or previous_shop,
                role=role,
                user_id=changed_by_user_id,
                from_value=previous_shop,
                to_value=printshop_id,
                now=now,
            )
        return _finish(
            repo, item, result,
            f"item {item_id} printshop {previous_shop or 'unassigned'} -> {printshop_id or 'unassigned'}",
        )

    return run_with_retry(_op)


def set_item_due_date(
    item_id: int,
    due_date,
    *,
    role: str | None = None,
    changed_by_user_id: int | None = None,
    expected_version: int | None = None,
    repository: OrderRepository | None = None,
) -> MutationResult:
    """Set or clear (None) an item's due date. Accepts datetime, date or ISO string."""
    item_id = require_id(item_id, "item_id")
    due_date = coerce_datetime(due_date, "due_date")
    if role is not None:
        require_role(role)
    requested = due_date.date().isoformat() if due_date is not None else None
    repo = repository or get_repository()

    def _op():
        item = repo.get_item(item_id, for_update=True)
        if item is None:
            repo.discard()
            return _not_found("Order item", item_id, role=role, requested=requested)

        conflict = check_expected_version(item.order, expected_version, role=role, requested=requested)
        if conflict:
            repo.discard()
            return conflict

        previous = item.due_date
        now = utcnow()
        result = apply_item_due_date(item, due_date, now=now)
        if result.ok and not result.noop:
            _record_activity(
                item.order, "status_change",
                f"Due date set to {_format_day(due_date)}" if due_date is not None else "Due date cleared",
                item=item,
                printshop_id=item.assigned_printshop_id,
                role=role,
                user_id=changed_by_user_id,
                from_value=previous.date().isoformat() if previous is not None else None,
                to_value=requested,
                now=now,
            )
        return _finish(repo, item, result, f"item {item_id} due_date -> {due_date or 'cleared'}")

    return run_with_retry(_op)


# field -> message prefix on the activity feed
_ORDER_FIELD_MESSAGES = {
    "payment_status": "Payment updated to",
    "payment_method": "Payment method updated to",
    "source": "Order source updated to",
}


def _set_order_field(
    order_id: int,
    field: str,
    value,
    *,
    role: str | None,
    changed_by_user_id: int | None,
    expected_version: int | None,
    repository: OrderRepository | None,
) -> MutationResult:
    """Plain order field update; never cascades into items."""
    if role is not None:
        require_role(role)
    repo = repository or get_repository()

    def _op():
        order = repo.get_order(order_id, for_update=True)
        if order is None:
            repo.discard()
            return _not_found("Order", order_id, role=role, requested=value)

        conflict = check_expected_version(order, expected_version, role=role, requested=value)
        if conflict:
            repo.discard()
            return conflict

        previous = getattr(order, field)
        if previous == value:
            return _finish(repo, order, MutationResult.success(order, noop=True), f"order {order_id} {field}")

        now = utcnow()
        setattr(order, field, value)
        order.updated_at = now
        _record_activity(
            order, "status_change", f"{_ORDER_FIELD_MESSAGES[field]} {_label(value)}",
            role=role,
            user_id=changed_by_user_id,
            from_value=_label(previous),
            to_value=_label(value),
            now=now,
        )
        return _finish(
            repo, order, MutationResult.success(order),
            f"order {order_id} {field} {previous} -> {value}",
        )

    return run_with_retry(_op)


def set_order_payment_status(order_id: int, payment_status: str, *, role: str | None = None,
                             changed_by_user_id: int | None = None, expected_version: int | None = None,
                             repository: OrderRepository | None = None) -> MutationResult:
    order_id = require_id(order_id, "order_id")
    require_choice(payment_status, PAYMENT_STATUSES, "payment_status")
    return _set_order_field(order_id, "payment_status", payment_status,
                            role=role, changed_by_user_id=changed_by_user_id,
                            expected_version=expected_version, repository=repository)


def set_order_payment_method(order_id: int, payment_method: str, *, role: str | None = None,
                             changed_by_user_id: int | None = None, expected_version: int | None = None,
                             repository: OrderRepository | None = None) -> MutationResult:
    order_id = require_id(order_id, "order_id")
    require_choice(payment_method, PAYMENT_METHODS, "payment_method")
    return _set_order_field(order_id, "payment_method", payment_method,
                            role=role, changed_by_user_id=changed_by_user_id,
                            expected_version=expected_version, repository=repository)


def set_order_source(order_id: int, source: str, *, role: str | None = None,
                     changed_by_user_id: int | None = None, expected_version: int | None = None,
                     repository: OrderRepository | None = None) -> MutationResult:
    order_id = require_id(order_id, "order_id")
    require_choice(source, ORDER_SOURCES, "source")
    return _set_order_field(order_id, "source", source,
                            role=role, changed_by_user_id=changed_by_user_id,
                            expected_version=expected_version, repository=repository)


# ================================================================================
# BULK OPERATIONS
# ================================================================================
# Each id is handled independently through set_item_status: one item's
# rejection never blocks the others, and each success commits on its own.
# Repeated ids are applied once.
# ================================================================================

def _bulk_status(item_ids, new_status, role, *, changed_by_user_id, note, repository) -> BulkMutationResult:
    results = {}
    for item_id in dict.fromkeys(item_ids):
        results[item_id] = set_item_status(
            item_id, new_status, role,
            changed_by_user_id=changed_by_user_id,
            note=note,
            repository=repository,
        )
    return BulkMutationResult(results=results)


def cancel_bulk(
    item_ids,
    role: str,
    *,
    changed_by_user_id: int | None = None,
    note: str | None = None,
    repository: OrderRepository | None = None,
) -> BulkMutationResult:
    """Cancel each item independently; failures are reported per id."""
    item_ids = require_ids(item_ids, "item_ids")
    require_role(role)
    return _bulk_status(
        item_ids, CANCELED, role,
        changed_by_user_id=changed_by_user_id, note=note, repository=repository,
    )


def set_order_items_status(
    order_id: int,
    new_status: str,
    role: str,
    *,
    changed_by_user_id: int | None = None,
    note: str | None = None,
    repository: OrderRepository | None = None,
) -> BulkMutationResult:
    """Move every item of an order to new_status, item by item."""
    order_id = require_id(order_id, "order_id")
    validate_status(new_status)
    require_role(role)
    repo = repository or get_repository()

    order = repo.get_order(order_id)
    if order is None:
        return BulkMutationResult(failure=_not_found("Order", order_id, role=role, requested=new_status))

    item_ids = [item.id for item in order.items]
    return _bulk_status(
        item_ids, new_status, role,
        changed_by_user_id=changed_by_user_id, note=note, repository=repo,
    )


def set_printshop_items_status(
    printshop_id: str,
    order_ids,
    new_status: str,
    role: str,
    *,
    changed_by_user_id: int | None = None,
    note: str | None = None,
    repository: OrderRepository | None = None,
) -> BulkMutationResult:
    """Move a printshop's items within the given orders to new_status."""
    if not isinstance(printshop_id, str) or not printshop_id:
        raise ValidationError("printshop_id must be a non-empty string")
    order_ids = set(require_ids(order_ids, "order_ids"))
    validate_status(new_status)
    require_role(role)
    repo = repository or get_repository()

    if repo.get_printshop(printshop_id) is None:
        return BulkMutationResult(failure=_not_found("Printshop", printshop_id, role=role, requested=new_status))

    item_ids = [
        item.id for item in repo.load_items()
        if item.assigned_printshop_id == printshop_id and item.order_id in order_ids
    ]
    return _bulk_status(
        item_ids, new_status, role,
        changed_by_user_id=changed_by_user_id, note=note, repository=repo,
    )
