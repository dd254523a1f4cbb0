# Overview: Persistence collaborator for the order engine; loads records and persists aggregates.

"""
Order Repository

The mutation, visibility and query services never touch the session
directly for order data. They are handed an OrderRepository (the
SQLAlchemy-backed one by default) so tests and alternative stores can swap
the persistence technology without touching engine code.

persist() is the only write path. It commits the whole pending unit of work
(item fields, cascaded fields, history rows, order version bump) in one
transaction, so readers never observe a partially applied cascade.
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Activity, Note, Order, OrderFile, OrderItem, Printshop
from .concurrency import ConcurrencyConflict, lock_for_update


class PersistenceError(Exception):
    """The store rejected or could not complete a write."""


class OrderRepository:
    """Interface consumed by the engine services."""

    def load_orders(self) -> list[Order]:
        raise NotImplementedError

    def load_items(self) -> list[OrderItem]:
        raise NotImplementedError

    def load_notes(self) -> list[Note]:
        raise NotImplementedError

    def load_files(self) -> list[OrderFile]:
        raise NotImplementedError

    def load_activities(self) -> list[Activity]:
        raise NotImplementedError

    def get_order(self, order_id: int, *, for_update: bool = False) -> Order | None:
        raise NotImplementedError

    def get_item(self, item_id: int, *, for_update: bool = False) -> OrderItem | None:
        raise NotImplementedError

    def get_printshop(self, printshop_id: str) -> Printshop | None:
        raise NotImplementedError

    def persist(self, record) -> None:
        raise NotImplementedError

    def discard(self) -> None:
        raise NotImplementedError


class SqlAlchemyOrderRepository(OrderRepository):
    """OrderRepository over the Flask-SQLAlchemy session."""

    def load_orders(self) -> list[Order]:
        return (
            db.session.query(Order)
            .options(selectinload(Order.items), joinedload(Order.customer))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def load_items(self) -> list[OrderItem]:
        return (
            db.session.query(OrderItem)
            .options(joinedload(OrderItem.order))
            .order_by(OrderItem.id.asc())
            .all()
        )

    def load_notes(self) -> list[Note]:
        return db.session.query(Note).order_by(Note.created_at.desc(), Note.id.desc()).all()

    def load_files(self) -> list[OrderFile]:
        return db.session.query(OrderFile).order_by(OrderFile.id.asc()).all()

    def load_activities(self) -> list[Activity]:
        return (
            db.session.query(Activity)
            .options(joinedload(Activity.user))
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .all()
        )

    def get_order(self, order_id: int, *, for_update: bool = False) -> Order | None:
        q = db.session.query(Order).filter_by(id=order_id)
        if for_update:
            q = lock_for_update(q)
        return q.first()

    def get_item(self, item_id: int, *, for_update: bool = False) -> OrderItem | None:
        q = db.session.query(OrderItem).filter_by(id=item_id)
        if for_update:
            q = lock_for_update(q)
        return q.first()

    def get_printshop(self, printshop_id: str) -> Printshop | None:
        return db.session.get(Printshop, printshop_id)

    def persist(self, record) -> None:
        """
        Commit the pending changes for record's aggregate.

        Raises:
            ConcurrencyConflict: the order version moved underneath us
            OperationalError: transient failure, left for run_with_retry
            PersistenceError: any other database failure
        """
        order_id = record.order_id if isinstance(record, OrderItem) else record.id
        db.session.add(record)
        try:
            db.session.commit()
        except StaleDataError as exc:
            db.session.rollback()
            raise ConcurrencyConflict(order_id) from exc
        except OperationalError:
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Failed to persist {type(record).__name__}: {exc}") from exc

    def discard(self) -> None:
        db.session.rollback()


def get_repository() -> OrderRepository:
    return SqlAlchemyOrderRepository()
