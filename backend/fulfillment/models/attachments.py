from __future__ import annotations

from ..extensions import db
from fulfillment.time_utils import to_utc_z


class Note(db.Model):
    """
    Comment attached to an order or to a single item.

    departments addresses the note to teams ("printshop", "delivery",
    "billing", "everyone"); visibility_service uses it to scope notes per
    role. Content is stored verbatim.
    """
    __tablename__ = "notes"
    __table_args__ = (
        db.Index("ix_notes_entity", "entity_type", "entity_id"),
        db.Index("ix_notes_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(16), nullable=False)  # order, order_item
    entity_id = db.Column(db.Integer, nullable=False)
    content = db.Column(db.Text, nullable=False)
    departments = db.Column(db.JSON, nullable=False, default=list)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    created_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "content": self.content,
            "departments": list(self.departments or []),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class OrderFile(db.Model):
    """
    Metadata for a file (artwork, proof, delivery photo) attached to an item.

    The binary lives in external storage; only the URL is kept here.
    """
    __tablename__ = "order_files"
    __table_args__ = (
        db.Index("ix_order_files_order_item_id", "order_item_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.Text, nullable=False)
    file_type = db.Column(db.String(32), nullable=False, default="other")  # artwork, proof, reference, delivery_photo, issue_photo, other

    uploaded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("OrderItem", backref=db.backref("files", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_item_id": self.order_item_id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "file_type": self.file_type,
            "uploaded_by_user_id": self.uploaded_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
