# Overview: Per-day stock statistics (sold + transferred per product name), grouped by category.

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from ..business_day import DayRange
from ..constants import STATISTICS_TRANSFER_TYPES
from ..extensions import db
from ..models import Cashier, Kahon, KahonItem, Sale, SaleItem, Transfer
from ..numbers import decimal_to_str

CATEGORIES = ("regular", "asin", "plastic")


@dataclass
class ProductStock:
    product_name: str
    stock_sold: Decimal = Decimal(0)
    stock_transferred: Decimal = Decimal(0)

    @property
    def total(self) -> Decimal:
        return self.stock_sold + self.stock_transferred

    def to_dict(self) -> dict:
        return {
            "product_name": self.product_name,
            "stock_sold": decimal_to_str(self.stock_sold),
            "stock_transferred": decimal_to_str(self.stock_transferred),
            "total": decimal_to_str(self.total),
        }


def category_for(name: str) -> str:
    """
    Exactly one category per product name: asin, then plastic, then regular.

    A name mentioning both asin and plastic is counted once, under asin, and
    never listed in both categories, so the category totals add up to the
    day's overall movement.
    """
    lowered = name.lower()
    if "asin" in lowered:
        return "asin"
    if "plastic" in lowered:
        return "plastic"
    return "regular"


def _sold(cashier_ids: list[int], day: DayRange):
    return (
        db.session.query(SaleItem)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(
            Sale.cashier_id.in_(cashier_ids),
            Sale.is_void.is_(False),
            Sale.created_at >= day.start,
            Sale.created_at <= day.end,
        )
        .all()
    )


def _transferred(cashier_ids: list[int], day: DayRange) -> list[tuple[str, Decimal]]:
    transfers = (
        db.session.query(Transfer.name, Transfer.quantity)
        .filter(
            Transfer.cashier_id.in_(cashier_ids),
            Transfer.type.in_([t.value for t in STATISTICS_TRANSFER_TYPES]),
            Transfer.created_at >= day.start,
            Transfer.created_at <= day.end,
        )
        .all()
    )
    # KAHON transfers live as KahonItems; zero-quantity entries are audit
    # movements and weigh nothing here.
    kahon_items = (
        db.session.query(KahonItem.name, KahonItem.quantity)
        .join(Kahon, Kahon.id == KahonItem.kahon_id)
        .filter(
            Kahon.cashier_id.in_(cashier_ids),
            KahonItem.quantity != 0,
            KahonItem.created_at >= day.start,
            KahonItem.created_at <= day.end,
        )
        .all()
    )
    return [(name, Decimal(qty)) for name, qty in [*transfers, *kahon_items]]


def _statistics(cashier_ids: list[int], day: DayRange) -> dict:
    by_name: dict[str, ProductStock] = {}
    for item in _sold(cashier_ids, day):
        entry = by_name.setdefault(item.product.name, ProductStock(item.product.name))
        entry.stock_sold += Decimal(item.quantity)
    for name, qty in _transferred(cashier_ids, day):
        entry = by_name.setdefault(name, ProductStock(name))
        entry.stock_transferred += qty

    grouped: "OrderedDict[str, list[ProductStock]]" = OrderedDict((c, []) for c in CATEGORIES)
    for name in sorted(by_name, key=str.lower):
        grouped[category_for(name)].append(by_name[name])

    categories = {}
    for category, products in grouped.items():
        sold = sum((p.stock_sold for p in products), Decimal(0))
        transferred = sum((p.stock_transferred for p in products), Decimal(0))
        categories[category] = {
            "products": [p.to_dict() for p in products],
            "totals": {
                "stock_sold": decimal_to_str(sold),
                "stock_transferred": decimal_to_str(transferred),
                "total": decimal_to_str(sold + transferred),
            },
        }
    return {"day": day.to_dict(), "categories": categories}


def get_stock_statistics(cashier_id: int, day: DayRange) -> dict:
    return _statistics([cashier_id], day)


def get_stock_statistics_by_user(user_id: int, day: DayRange) -> dict:
    """Same report across every cashier reporting to a back-office user."""
    cashier_ids = [
        cid for (cid,) in db.session.query(Cashier.id).filter(Cashier.user_id == user_id).all()
    ]
    report = _statistics(cashier_ids, day)
    report["cashier_ids"] = cashier_ids
    return report
