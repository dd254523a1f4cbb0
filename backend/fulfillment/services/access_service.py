from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..extensions import db
from ..models import User, Printshop, UserPrintshopAccess
from ..permissions import Role, require_role


@dataclass(frozen=True)
class ActorScope:
    """
    Who is looking, and at what.

    role: manager | printshop_manager | driver
    shop_ids: printshops a printshop manager is scoped to (ignored for others)
    user_id: recorded as changed_by on status history when set
    """
    role: str
    shop_ids: frozenset[str] = field(default_factory=frozenset)
    user_id: int | None = None

    def __post_init__(self):
        require_role(self.role)
        object.__setattr__(self, "shop_ids", frozenset(self.shop_ids))

    @classmethod
    def manager(cls, *, user_id: int | None = None) -> "ActorScope":
        return cls(Role.MANAGER, user_id=user_id)

    @classmethod
    def printshop_manager(cls, shop_ids: Iterable[str], *, user_id: int | None = None) -> "ActorScope":
        return cls(Role.PRINTSHOP_MANAGER, frozenset(shop_ids), user_id=user_id)

    @classmethod
    def driver(cls, *, user_id: int | None = None) -> "ActorScope":
        return cls(Role.DRIVER, user_id=user_id)


def get_assigned_shop_ids(user_id: int) -> set[str]:
    """Printshop ids granted to the user."""
    rows = db.session.query(UserPrintshopAccess.printshop_id).filter_by(user_id=user_id).all()
    return {row[0] for row in rows}


def actor_for_user(user: User) -> ActorScope:
    """Build the actor scope for a stored user."""
    if user.role == Role.PRINTSHOP_MANAGER:
        return ActorScope.printshop_manager(get_assigned_shop_ids(user.id), user_id=user.id)
    return ActorScope(require_role(user.role), user_id=user.id)


def list_printshop_access(user_id: int) -> list[UserPrintshopAccess]:
    return (
        db.session.query(UserPrintshopAccess)
        .filter_by(user_id=user_id)
        .order_by(UserPrintshopAccess.printshop_id.asc())
        .all()
    )


def grant_printshop_access(*, user_id: int, printshop_id: str, granted_by_user_id: int | None = None) -> UserPrintshopAccess:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise ValueError("User not found")

    shop = db.session.get(Printshop, printshop_id)
    if not shop:
        raise ValueError("Printshop not found")

    if user.role != Role.PRINTSHOP_MANAGER:
        raise ValueError(f"Only printshop managers are scoped to printshops (user role is '{user.role}')")

    existing = db.session.query(UserPrintshopAccess).filter_by(user_id=user_id, printshop_id=printshop_id).first()
    if existing:
        return existing

    access = UserPrintshopAccess(
        user_id=user_id,
        printshop_id=printshop_id,
        granted_by_user_id=granted_by_user_id,
    )
    db.session.add(access)
    db.session.commit()
    return access


def revoke_printshop_access(*, user_id: int, printshop_id: str) -> bool:
    access = db.session.query(UserPrintshopAccess).filter_by(user_id=user_id, printshop_id=printshop_id).first()
    if not access:
        return False

    db.session.delete(access)
    db.session.commit()
    return True
