# backend/stockgrid/services/catalog_service.py
"""
Product catalog reads and the ownership rules the ledger relies on.

The ledger never edits prices; it only reads tiers and claims unassigned
products. Product creation lives here so the CLI seeder and tests have one
way to build a product with its tiers.
"""
from __future__ import annotations

from flask import current_app

from ..constants import SackType, TierKind
from ..extensions import db
from ..models import Cashier, PerKiloPrice, Product, SackPrice, SpecialPrice
from ..numbers import decimal_to_str, optional_decimal, to_decimal
from .errors import NotFoundError, OwnershipError, ValidationError
from .stock_counter_service import TierRef, coerce_quantity, get_tier


def get_cashier(cashier_id: int) -> Cashier:
    cashier = db.session.get(Cashier, cashier_id)
    if cashier is None:
        raise NotFoundError(f"Cashier {cashier_id} not found", details={"cashier_id": cashier_id})
    return cashier


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def list_products(cashier_id: int | None = None, *, include_unassigned: bool = True) -> list[Product]:
    query = db.session.query(Product)
    if cashier_id is not None:
        if include_unassigned:
            query = query.filter(
                (Product.cashier_id == cashier_id) | (Product.cashier_id.is_(None))
            )
        else:
            query = query.filter(Product.cashier_id == cashier_id)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def create_product(
    *,
    name: str,
    cashier_id: int | None = None,
    sack_prices: list[dict] | None = None,
    per_kilo_price: dict | None = None,
) -> Product:
    """
    Build a product with its tiers and add it to the session (no commit).

    sack_prices: [{"type": "TWENTY_FIVE_KG", "price": "1250", "stock": 10,
                   "profit": "50", "special_price": {"price": "1200", "minimum_qty": 5}}]
    per_kilo_price: {"price": "52", "stock": "40.5", "profit": "2"}
    """
    if not name or not str(name).strip():
        raise ValidationError("Product name is required")

    product = Product(name=str(name).strip(), cashier_id=cashier_id)

    seen_types = set()
    for raw in sack_prices or []:
        try:
            sack_type = SackType(raw.get("type"))
        except ValueError:
            raise ValidationError("Unknown sack type", details={"type": raw.get("type")})
        if sack_type in seen_types:
            raise ValidationError(
                "Duplicate sack type for product",
                details={"type": sack_type.value},
            )
        seen_types.add(sack_type)

        sack = SackPrice(
            type=sack_type.value,
            price=to_decimal(raw.get("price"), field="price"),
            stock=coerce_quantity(TierKind.SACK, raw.get("stock", 0), field="stock"),
            profit=optional_decimal(raw.get("profit"), field="profit"),
        )
        special = raw.get("special_price")
        if special:
            sack.special_price = SpecialPrice(
                price=to_decimal(special.get("price"), field="special_price.price"),
                minimum_qty=int(special.get("minimum_qty") or 1),
                profit=optional_decimal(special.get("profit"), field="special_price.profit"),
            )
        product.sack_prices.append(sack)

    if per_kilo_price:
        product.per_kilo_price = PerKiloPrice(
            price=to_decimal(per_kilo_price.get("price"), field="per_kilo_price.price"),
            stock=coerce_quantity(TierKind.PER_KILO, per_kilo_price.get("stock", 0), field="stock"),
            profit=optional_decimal(per_kilo_price.get("profit"), field="per_kilo_price.profit"),
        )

    db.session.add(product)
    db.session.flush()
    return product


def resolve_tier_for_product(product: Product, ref: TierRef, *, lock: bool = False):
    """Load the referenced tier and make sure it belongs to product."""
    tier = get_tier(ref, lock=lock)
    if tier.product_id != product.id:
        raise ValidationError(
            "Price tier does not belong to product",
            details={"product_id": product.id, **ref.to_dict()},
        )
    return tier


def claim_product(product: Product, cashier_id: int) -> Product:
    """
    Ownership gate for deliveries and transfers.

    A product owned by another cashier is rejected. An unassigned product is
    assigned to this cashier; the assignment is part of the caller's
    transaction and disappears with it on rollback.
    """
    if product.cashier_id is None:
        product.cashier_id = cashier_id
        current_app.logger.info("Product %s assigned to cashier %s", product.id, cashier_id)
    elif product.cashier_id != cashier_id:
        raise OwnershipError(
            "Product belongs to another cashier",
            details={"product_id": product.id, "cashier_id": cashier_id},
        )
    return product


def movement_name(product: Product, ref: TierRef, tier, qty) -> str:
    """
    Name recorded on storage-box movements and transfer records.

    Sack movements name the sack size ("Dinorado 25KG"); per-kilo movements
    carry the weight instead ("Dinorado 12.5KG").
    """
    if ref.kind == TierKind.SACK:
        return f"{product.name} {SackType(tier.type).label}"
    return f"{product.name} {decimal_to_str(qty)}KG"
