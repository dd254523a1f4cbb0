from __future__ import annotations

from ..extensions import db
from fulfillment.time_utils import to_utc_z


class Printshop(db.Model):
    """
    Production site that items are assigned to.

    Keyed by a short slug ("victor", "studio-c") so that user access grants
    and kanban columns stay readable.
    """
    __tablename__ = "printshops"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=False, default="")
    lat = db.Column(db.Float, nullable=True)
    lng = db.Column(db.Float, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
