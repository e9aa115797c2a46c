from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z, utcnow


class SystemConfig(db.Model):
    """
    Business-wide register configuration (single row).

    daily_base_cents is the till float left in the drawer after each closure.
    The reopen code is stored only as a bcrypt hash.
    """
    __tablename__ = "system_config"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    business_name = db.Column(db.String(128), nullable=False, default="Mi Restaurante")
    business_address = db.Column(db.String(255), nullable=True)
    business_phone = db.Column(db.String(64), nullable=True)
    business_tax_id = db.Column(db.String(64), nullable=True)
    alert_email = db.Column(db.String(255), nullable=True)
    top_n = db.Column(db.Integer, nullable=False, default=10)

    daily_base_cents = db.Column(db.Integer, nullable=False, default=0)
    reopen_password_hash = db.Column(db.String(128), nullable=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        # reopen_password_hash is never serialized
        return {
            "business_name": self.business_name,
            "business_address": self.business_address,
            "business_phone": self.business_phone,
            "business_tax_id": self.business_tax_id,
            "alert_email": self.alert_email,
            "top_n": self.top_n,
            "daily_base_cents": self.daily_base_cents,
            "updated_at": to_utc_z(self.updated_at),
        }
