"""
Sales ledger: stock-decrementing sale documents.

Every path (create, edit, delete, void) is one bounded transaction. Stock is
taken from the exact tier each SaleItem recorded and restored to that same
tier, so an edit that resubmits identical items nets to zero.
"""

from __future__ import annotations

from flask import current_app

from ..constants import PaymentMethod, TierKind
from ..extensions import db
from ..models import Sale, SaleItem
from ..numbers import optional_decimal, to_decimal
from stockgrid.time_utils import utcnow
from .catalog_service import get_cashier, get_product, resolve_tier_for_product
from .concurrency import Deadline, lock_for_update, run_in_transaction
from .errors import NotFoundError, ValidationError
from .order_service import complete_order, revert_order
from .stock_counter_service import (
    decrement_stock,
    increment_stock,
    line_quantity,
    tier_ref_for_line,
    tier_ref_from_payload,
)


def _payment_method(value) -> str:
    try:
        return PaymentMethod(value).value
    except ValueError:
        raise ValidationError(
            "Unknown payment method",
            details={"payment_method": value, "allowed": [m.value for m in PaymentMethod]},
        )


def _order_id(value) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("order_id must be an integer", details={"order_id": value})


def _require_items(payload: dict) -> list[dict]:
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("Sale must have at least one item")
    return items


def _unit_price(tier, ref, raw: dict, qty):
    explicit = optional_decimal(raw.get("price"), field="price")
    if explicit is not None:
        return explicit
    if ref.kind == TierKind.SACK and raw.get("is_special_price"):
        special = tier.special_price
        if special is not None and qty >= special.minimum_qty:
            return special.price
    return tier.price


def _take_items(sale: Sale, items: list[dict], deadline: Deadline) -> None:
    """Decrement each line's tier and attach a SaleItem capturing its price."""
    for idx, raw in enumerate(items):
        deadline.check(f"sale item {idx}")
        product_id = raw.get("product_id", raw.get("id"))
        if product_id is None:
            raise ValidationError("product_id is required", details={"index": idx})
        product = get_product(int(product_id))
        ref = tier_ref_from_payload(raw)
        tier = resolve_tier_for_product(product, ref, lock=True)
        qty = line_quantity(raw, ref)

        decrement_stock(ref, qty)

        sale.items.append(SaleItem(
            product_id=product.id,
            sack_price_id=ref.id if ref.kind == TierKind.SACK else None,
            per_kilo_price_id=ref.id if ref.kind == TierKind.PER_KILO else None,
            quantity=qty,
            price=_unit_price(tier, ref, raw, qty),
            discounted_price=optional_decimal(raw.get("discounted_price"), field="discounted_price"),
            is_special_price=bool(raw.get("is_special_price")),
            is_discounted=bool(raw.get("is_discounted")),
            is_gantang=bool(raw.get("is_gantang")),
        ))


def _restore_items(sale: Sale, deadline: Deadline) -> None:
    for line in sale.items:
        deadline.check(f"restore sale item {line.id}")
        increment_stock(tier_ref_for_line(line), line.quantity)


def _locked_sale(sale_id: int) -> Sale:
    sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found", details={"sale_id": sale_id})
    return sale


def create_sale(cashier_id: int, payload: dict) -> Sale:
    """
    Record a sale and take its items out of stock.

    payload: {"payment_method", "total_amount", "change_amount"?, "order_id"?,
              "items": [{"product_id", "sack_price": {"id", "quantity"}} |
                        {"product_id", "per_kilo_price": {"id", "quantity"}}]}
    """
    items = _require_items(payload)
    payment_method = _payment_method(payload.get("payment_method"))
    total_amount = to_decimal(payload.get("total_amount"), field="total_amount")
    change_amount = optional_decimal(payload.get("change_amount"), field="change_amount")
    order_id = _order_id(payload.get("order_id"))

    def _op(deadline: Deadline) -> Sale:
        get_cashier(cashier_id)
        sale = Sale(
            cashier_id=cashier_id,
            payment_method=payment_method,
            total_amount=total_amount,
            change_amount=change_amount,
        )
        db.session.add(sale)
        _take_items(sale, items, deadline)
        db.session.flush()

        if order_id is not None:
            deadline.check("complete order")
            complete_order(order_id, sale.id)
        return sale

    sale = run_in_transaction(_op, label="create_sale")
    current_app.logger.info(
        "Sale %s created for cashier %s (%d items)", sale.id, cashier_id, len(items)
    )
    return sale


def edit_sale(sale_id: int, payload: dict) -> Sale:
    """
    Replace a sale's items and header.

    Existing items are restored to stock and deleted, then the new items are
    taken from stock. If order_id is supplied and differs from the linked
    order, the old order goes back to PENDING and the new one is completed.
    """
    items = _require_items(payload)
    payment_method = _payment_method(payload.get("payment_method"))
    total_amount = to_decimal(payload.get("total_amount"), field="total_amount")
    change_amount = optional_decimal(payload.get("change_amount"), field="change_amount")
    relink = "order_id" in payload
    new_order_id = _order_id(payload.get("order_id"))

    def _op(deadline: Deadline) -> Sale:
        sale = _locked_sale(sale_id)
        if sale.is_void:
            raise ValidationError("Voided sales cannot be edited", details={"sale_id": sale_id})

        _restore_items(sale, deadline)
        sale.items.clear()
        db.session.flush()

        _take_items(sale, items, deadline)
        sale.payment_method = payment_method
        sale.total_amount = total_amount
        sale.change_amount = change_amount
        db.session.flush()

        previous_order_id = sale.order.id if sale.order else None
        if relink and new_order_id != previous_order_id:
            deadline.check("relink order")
            if previous_order_id is not None:
                revert_order(previous_order_id)
                # orders.sale_id is unique; release it before the new link
                db.session.flush()
            if new_order_id is not None:
                complete_order(new_order_id, sale.id)
        return sale

    sale = run_in_transaction(_op, label="edit_sale")
    current_app.logger.info("Sale %s edited (%d items)", sale_id, len(items))
    return sale


def delete_sale(sale_id: int) -> None:
    """Restore stock, release the linked order and delete the sale."""

    def _op(deadline: Deadline) -> None:
        sale = _locked_sale(sale_id)
        if not sale.is_void:
            _restore_items(sale, deadline)
        if sale.order is not None:
            revert_order(sale.order.id)
            db.session.flush()
        db.session.delete(sale)

    run_in_transaction(_op, label="delete_sale")
    current_app.logger.info("Sale %s deleted", sale_id)


def void_sale(sale_id: int) -> Sale:
    """
    Keep the sale for audit but reverse its stock effect.

    Voided sales drop out of cash totals and stock statistics. Voiding twice
    is rejected so stock is never restored twice.
    """

    def _op(deadline: Deadline) -> Sale:
        sale = _locked_sale(sale_id)
        if sale.is_void:
            raise ValidationError("Sale already voided", details={"sale_id": sale_id})
        _restore_items(sale, deadline)
        if sale.order is not None:
            revert_order(sale.order.id)
        sale.is_void = True
        sale.voided_at = utcnow()
        return sale

    sale = run_in_transaction(_op, label="void_sale")
    current_app.logger.info("Sale %s voided", sale_id)
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found", details={"sale_id": sale_id})
    return sale


def list_sales_by_cashier(cashier_id: int, *, include_void: bool = True, limit: int | None = None) -> list[Sale]:
    query = db.session.query(Sale).filter(Sale.cashier_id == cashier_id)
    if not include_void:
        query = query.filter(Sale.is_void.is_(False))
    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()
