from __future__ import annotations

from ..extensions import db
from stockgrid.business_day import to_local_iso
from stockgrid.numbers import decimal_to_str
from stockgrid.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Sale header.

    Every SaleItem decremented its tier's stock in the same transaction that
    created it; edit/delete/void restore that stock before touching items.
    """
    __tablename__ = "sales"
    __table_args__ = (
        # Day-partitioned reads filter on (cashier_id, created_at)
        db.Index("ix_sales_cashier_created", "cashier_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=False, index=True)

    payment_method = db.Column(db.String(16), nullable=False)  # PaymentMethod
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    change_amount = db.Column(db.Numeric(12, 2), nullable=True)

    is_void = db.Column(db.Boolean, nullable=False, default=False)
    voided_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cashier = db.relationship("Cashier", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )
    order = db.relationship("Order", back_populates="sale", uselist=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cashier_id": self.cashier_id,
            "payment_method": self.payment_method,
            "total_amount": decimal_to_str(self.total_amount),
            "change_amount": decimal_to_str(self.change_amount),
            "is_void": self.is_void,
            "voided_at": to_utc_z(self.voided_at) if self.voided_at else None,
            "order_id": self.order.id if self.order else None,
            "created_at": to_utc_z(self.created_at),
            "created_at_local": to_local_iso(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }


class SaleItem(db.Model):
    """
    One sold line. References exactly one tier (sack or per-kilo).

    price is the unit price captured at sale time so later catalog edits do
    not rewrite history.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint(
            "(sack_price_id IS NULL) <> (per_kilo_price_id IS NULL)",
            name="ck_sale_items_one_tier",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    sack_price_id = db.Column(db.Integer, db.ForeignKey("sack_prices.id"), nullable=True)
    per_kilo_price_id = db.Column(db.Integer, db.ForeignKey("per_kilo_prices.id"), nullable=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=True)
    discounted_price = db.Column(db.Numeric(12, 2), nullable=True)

    is_special_price = db.Column(db.Boolean, nullable=False, default=False)
    is_discounted = db.Column(db.Boolean, nullable=False, default=False)
    is_gantang = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")
    sack_price = db.relationship("SackPrice")
    per_kilo_price = db.relationship("PerKiloPrice")

    @property
    def sack_type(self) -> str | None:
        return self.sack_price.type if self.sack_price else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "sack_price_id": self.sack_price_id,
            "per_kilo_price_id": self.per_kilo_price_id,
            "sack_type": self.sack_type,
            "quantity": decimal_to_str(self.quantity),
            "price": decimal_to_str(self.price),
            "discounted_price": decimal_to_str(self.discounted_price),
            "is_special_price": self.is_special_price,
            "is_discounted": self.is_discounted,
            "is_gantang": self.is_gantang,
        }


class Order(db.Model):
    """
    Customer order, owned by the order workflow.

    The ledger only flips status (PENDING <-> COMPLETED) and the sale link
    through order_service.complete_order / revert_order.
    """
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("cashiers.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, unique=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    sale = db.relationship("Sale", back_populates="order")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cashier_id": self.cashier_id,
            "status": self.status,
            "total_amount": decimal_to_str(self.total_amount),
            "sale_id": self.sale_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
