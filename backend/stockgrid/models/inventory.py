from __future__ import annotations

from ..extensions import db
from stockgrid.numbers import decimal_to_str
from stockgrid.time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data with its stock tiers.

    OWNERSHIP: cashier_id is nullable. A product with no cashier is
    "unassigned" (left over from before per-cashier catalogs) and is claimed
    by the first cashier whose delivery or transfer touches it.

    TIERS:
    - SackPrice: zero or more, at most one per sack type, integer stock
    - PerKiloPrice: at most one, decimal stock (weight)
    Stock lives on the tier rows and is mutated only through the movement
    ledger (sales, deliveries, transfers) via stock_counter_service.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_cashier_name", "cashier_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cashier = db.relationship("Cashier", backref=db.backref("products", lazy=True))
    sack_prices = db.relationship(
        "SackPrice",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="SackPrice.id",
    )
    per_kilo_price = db.relationship(
        "PerKiloPrice",
        back_populates="product",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} cashier_id={self.cashier_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "cashier_id": self.cashier_id,
            "sack_prices": [sp.to_dict() for sp in self.sack_prices],
            "per_kilo_price": self.per_kilo_price.to_dict() if self.per_kilo_price else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SackPrice(db.Model):
    """Sack-size price tier; stock counts whole sacks."""
    __tablename__ = "sack_prices"
    __table_args__ = (
        # One tier per sack size per product
        db.UniqueConstraint("product_id", "type", name="uq_sack_prices_product_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False)  # SackType
    price = db.Column(db.Numeric(12, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    profit = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", back_populates="sack_prices")
    special_price = db.relationship(
        "SpecialPrice",
        back_populates="sack_price",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<SackPrice id={self.id} product_id={self.product_id} type={self.type} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "type": self.type,
            "price": decimal_to_str(self.price),
            "stock": self.stock,
            "profit": decimal_to_str(self.profit),
            "special_price": self.special_price.to_dict() if self.special_price else None,
        }


class SpecialPrice(db.Model):
    """Bulk price for a sack tier, applied from minimum_qty sacks upward."""
    __tablename__ = "special_prices"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sack_price_id = db.Column(
        db.Integer, db.ForeignKey("sack_prices.id"), nullable=False, unique=True
    )
    price = db.Column(db.Numeric(12, 2), nullable=False)
    minimum_qty = db.Column(db.Integer, nullable=False, default=1)
    profit = db.Column(db.Numeric(12, 2), nullable=True)

    sack_price = db.relationship("SackPrice", back_populates="special_price")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sack_price_id": self.sack_price_id,
            "price": decimal_to_str(self.price),
            "minimum_qty": self.minimum_qty,
            "profit": decimal_to_str(self.profit),
        }


class PerKiloPrice(db.Model):
    """Per-kilo price tier; stock is a decimal weight."""
    __tablename__ = "per_kilo_prices"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, unique=True)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    stock = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    profit = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", back_populates="per_kilo_price")

    def __repr__(self) -> str:
        return f"<PerKiloPrice id={self.id} product_id={self.product_id} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "price": decimal_to_str(self.price),
            "stock": decimal_to_str(self.stock),
            "profit": decimal_to_str(self.profit),
        }
