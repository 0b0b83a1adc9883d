from __future__ import annotations

from ..extensions import db
from stockgrid.time_utils import to_utc_z, utcnow


class Cashier(db.Model):
    """
    Identity anchor for every ledger operation.

    Authentication happens upstream; the core receives a cashier id and
    trusts it verbatim. Products, sales, deliveries, transfers, the Kahon and
    the Inventory all hang off a cashier.
    """
    __tablename__ = "cashiers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Owning back-office account (several cashiers can report to one user)
    user_id = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Cashier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
