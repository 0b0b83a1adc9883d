from __future__ import annotations

from ..extensions import db
from stockgrid.business_day import to_local_iso
from stockgrid.numbers import decimal_to_str
from stockgrid.time_utils import to_utc_z, utcnow


class Delivery(db.Model):
    """
    Inbound delivery document.

    delivery_time_start is entered as Manila wall-clock time and stored as
    UTC-naive like every other timestamp.
    """
    __tablename__ = "deliveries"
    __table_args__ = (
        db.Index("ix_deliveries_cashier_created", "cashier_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=False, index=True)

    driver_name = db.Column(db.String(255), nullable=False)
    delivery_time_start = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cashier = db.relationship("Cashier", backref=db.backref("deliveries", lazy=True))
    items = db.relationship(
        "DeliveryItem",
        back_populates="delivery",
        cascade="all, delete-orphan",
        order_by="DeliveryItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cashier_id": self.cashier_id,
            "driver_name": self.driver_name,
            "delivery_time_start": to_utc_z(self.delivery_time_start),
            "delivery_time_start_local": to_local_iso(self.delivery_time_start),
            "created_at": to_utc_z(self.created_at),
            "created_at_local": to_local_iso(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class DeliveryItem(db.Model):
    """Delivered line; references exactly one tier."""
    __tablename__ = "delivery_items"
    __table_args__ = (
        db.CheckConstraint(
            "(sack_price_id IS NULL) <> (per_kilo_price_id IS NULL)",
            name="ck_delivery_items_one_tier",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    delivery_id = db.Column(db.Integer, db.ForeignKey("deliveries.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    sack_price_id = db.Column(db.Integer, db.ForeignKey("sack_prices.id"), nullable=True)
    per_kilo_price_id = db.Column(db.Integer, db.ForeignKey("per_kilo_prices.id"), nullable=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    delivery = db.relationship("Delivery", back_populates="items")
    product = db.relationship("Product")
    sack_price = db.relationship("SackPrice")
    per_kilo_price = db.relationship("PerKiloPrice")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "delivery_id": self.delivery_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "sack_price_id": self.sack_price_id,
            "per_kilo_price_id": self.per_kilo_price_id,
            "quantity": decimal_to_str(self.quantity),
        }


class Transfer(db.Model):
    """
    Standalone internal movement (own consumption, repack, ...).

    KAHON-type transfers never produce a Transfer row; they produce a
    KahonItem plus a grid row instead.
    """
    __tablename__ = "transfers"
    __table_args__ = (
        db.Index("ix_transfers_cashier_created", "cashier_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    type = db.Column(db.String(32), nullable=False, index=True)  # TransferType

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cashier = db.relationship("Cashier", backref=db.backref("transfers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cashier_id": self.cashier_id,
            "name": self.name,
            "quantity": decimal_to_str(self.quantity),
            "type": self.type,
            "created_at": to_utc_z(self.created_at),
            "created_at_local": to_local_iso(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Kahon(db.Model):
    """A cashier's storage box; owns KahonItems and the KAHON sheet."""
    __tablename__ = "kahons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False, default="Kahon")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cashier = db.relationship("Cashier", backref=db.backref("kahon", uselist=False))
    items = db.relationship(
        "KahonItem",
        back_populates="kahon",
        cascade="all, delete-orphan",
        order_by="KahonItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cashier_id": self.cashier_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class KahonItem(db.Model):
    """
    Storage-box movement.

    Sack movements carry the sack count in quantity; per-kilo movements are
    recorded with quantity 0 and the weight encoded in the name
    ("Dinorado 12.5KG").
    """
    __tablename__ = "kahon_items"
    __table_args__ = (
        db.Index("ix_kahon_items_kahon_created", "kahon_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kahon_id = db.Column(db.Integer, db.ForeignKey("kahons.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    kahon = db.relationship("Kahon", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kahon_id": self.kahon_id,
            "name": self.name,
            "quantity": decimal_to_str(self.quantity),
            "created_at": to_utc_z(self.created_at),
            "created_at_local": to_local_iso(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Inventory(db.Model):
    """A cashier's inventory ledger; owns the INVENTORY and EXPENSES sheets."""
    __tablename__ = "inventories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cashier = db.relationship("Cashier", backref=db.backref("inventory", uselist=False))
    items = db.relationship(
        "InventoryItem",
        back_populates="inventory",
        cascade="all, delete-orphan",
        order_by="InventoryItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cashier_id": self.cashier_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryItem(db.Model):
    """Line tracked on the inventory/expenses sheets."""
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_inventory_created", "inventory_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventories.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    inventory = db.relationship("Inventory", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_id": self.inventory_id,
            "name": self.name,
            "quantity": decimal_to_str(self.quantity),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
