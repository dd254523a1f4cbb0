from __future__ import annotations

from ..extensions import db
from fulfillment.time_utils import to_utc_z


class User(db.Model):
    """
    Dashboard user. The role decides which statuses the user may set and
    which orders they see; printshop managers are further scoped by their
    UserPrintshopAccess grants.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, index=True)  # manager, printshop_manager, driver
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "assigned_shops": sorted(a.printshop_id for a in self.printshop_access),
            "created_at": to_utc_z(self.created_at),
        }


class UserPrintshopAccess(db.Model):
    """
    Grants a printshop manager visibility of and control over one printshop.
    """
    __tablename__ = "user_printshop_access"
    __table_args__ = (
        db.UniqueConstraint("user_id", "printshop_id", name="uq_user_printshop_access"),
        db.Index("ix_user_printshop_access_user", "user_id"),
        db.Index("ix_user_printshop_access_printshop", "printshop_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    printshop_id = db.Column(db.String(64), db.ForeignKey("printshops.id"), nullable=False)
    granted_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    granted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("printshop_access", lazy=True))
    printshop = db.relationship("Printshop", backref=db.backref("user_access", lazy=True))
    granted_by = db.relationship("User", foreign_keys=[granted_by_user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "printshop_id": self.printshop_id,
            "granted_by_user_id": self.granted_by_user_id,
            "granted_at": to_utc_z(self.granted_at),
        }
