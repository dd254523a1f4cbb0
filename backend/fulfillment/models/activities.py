from __future__ import annotations

from ..extensions import db
from fulfillment.time_utils import to_utc_z


ACTIVITY_TYPES = ("status_change", "delivery", "pickup", "assignment")
ACTIVITY_ENTITY_TYPES = ("order", "order_item")


class Activity(db.Model):
    """
    Feed entry written once per applied mutation (never for no-ops or
    rejections), in the same transaction as the change itself.

    printshop_id is the printshop the affected item belongs to after the
    change (the previous one when the assignment was cleared); it is None
    for order-level changes. visibility_service scopes the feed with it.
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_entity", "entity_type", "entity_id"),
        db.Index("ix_activities_order_id", "order_id"),
        db.Index("ix_activities_printshop_id", "printshop_id"),
        db.Index("ix_activities_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False)  # status_change, delivery, pickup, assignment

    entity_type = db.Column(db.String(16), nullable=False)  # order, order_item
    entity_id = db.Column(db.Integer, nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    printshop_id = db.Column(db.String(64), db.ForeignKey("printshops.id"), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    role = db.Column(db.String(32), nullable=True)

    message = db.Column(db.Text, nullable=False)
    from_value = db.Column(db.String(64), nullable=True)
    to_value = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    order = db.relationship("Order", back_populates="activities")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "order_id": self.order_id,
            "printshop_id": self.printshop_id,
            "user_id": self.user_id,
            "user": self.user.name if self.user is not None else "System",
            "role": self.role,
            "message": self.message,
            "from": self.from_value,
            "to": self.to_value,
            "created_at": to_utc_z(self.created_at),
        }
