from __future__ import annotations

from ..extensions import db
from cashier.time_utils import to_utc_z


class Setting(db.Model):
    """Store-wide key-value settings (receipt header, tax display, printer options)."""
    __tablename__ = "settings"
    __table_args__ = (
        db.UniqueConstraint("key", name="uq_settings_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), nullable=False)
    value = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "key": self.key,
            "value": self.value if self.value is not None else "",
            "updated_at": to_utc_z(self.updated_at),
        }
