# backend/stockgrid/services/delivery_service.py
"""
Inbound deliveries: stock-incrementing documents.

Every line is checked for ownership before any counter moves; unassigned
products are claimed by the delivering cashier. Per-kilo lines also leave a
zero-quantity storage-box movement naming the delivered weight, so the day's
Kahon view shows what came in loose.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..business_day import manila_to_utc
from ..constants import TierKind
from ..extensions import db
from ..models import Delivery, DeliveryItem, Product
from .catalog_service import claim_product, get_cashier, get_product, movement_name, resolve_tier_for_product
from .concurrency import Deadline, lock_for_update, run_in_transaction
from .errors import NotFoundError, OwnershipError, ValidationError
from .stock_counter_service import (
    Quantity,
    TierRef,
    decrement_stock,
    increment_stock,
    line_quantity,
    tier_ref_for_line,
    tier_ref_from_payload,
)
from .transfer_service import record_delivery_movement


@dataclass
class _Line:
    product: Product
    ref: TierRef
    tier: object
    quantity: Quantity


def _header(payload: dict) -> tuple[str, object]:
    driver_name = (payload.get("driver_name") or "").strip()
    if not driver_name:
        raise ValidationError("driver_name is required")
    return driver_name, manila_to_utc(payload.get("delivery_time_start"))


def _items(payload: dict) -> list[dict]:
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("Delivery must have at least one item")
    return items


def _check_lines(cashier_id: int, items: list[dict], deadline: Deadline) -> list[_Line]:
    """Resolve every line and reject foreign products before anything moves."""
    lines = []
    for idx, raw in enumerate(items):
        deadline.check(f"check delivery item {idx}")
        product_id = raw.get("product_id", raw.get("id"))
        if product_id is None:
            raise ValidationError("product_id is required", details={"index": idx})
        product = get_product(int(product_id))
        if product.cashier_id not in (None, cashier_id):
            raise OwnershipError(
                f"Product {product.id} not accessible by this cashier",
                details={"product_id": product.id, "cashier_id": cashier_id},
            )
        ref = tier_ref_from_payload(raw)
        tier = resolve_tier_for_product(product, ref, lock=True)
        lines.append(_Line(product=product, ref=ref, tier=tier, quantity=line_quantity(raw, ref)))
    return lines


def _receive_lines(
    delivery: Delivery,
    cashier_id: int,
    lines: list[_Line],
    deadline: Deadline,
    *,
    record_movements: bool,
) -> None:
    for line in lines:
        deadline.check(f"receive product {line.product.id}")
        claim_product(line.product, cashier_id)
        increment_stock(line.ref, line.quantity)
        delivery.items.append(DeliveryItem(
            product_id=line.product.id,
            sack_price_id=line.ref.id if line.ref.kind == TierKind.SACK else None,
            per_kilo_price_id=line.ref.id if line.ref.kind == TierKind.PER_KILO else None,
            quantity=line.quantity,
        ))
        if record_movements and line.ref.kind == TierKind.PER_KILO:
            record_delivery_movement(
                cashier_id,
                movement_name(line.product, line.ref, line.tier, line.quantity),
                0,
            )


def _locked_delivery(cashier_id: int, delivery_id: int) -> Delivery:
    delivery = lock_for_update(db.session.query(Delivery).filter_by(id=delivery_id)).first()
    if delivery is None:
        raise NotFoundError(f"Delivery {delivery_id} not found", details={"delivery_id": delivery_id})
    if delivery.cashier_id != cashier_id:
        raise OwnershipError(
            f"Delivery {delivery_id} belongs to another cashier",
            details={"delivery_id": delivery_id, "cashier_id": cashier_id},
        )
    return delivery


def _reverse_items(delivery: Delivery, deadline: Deadline) -> None:
    for item in delivery.items:
        deadline.check(f"reverse delivery item {item.id}")
        decrement_stock(tier_ref_for_line(item), item.quantity)


def create_delivery(cashier_id: int, payload: dict) -> Delivery:
    """
    payload: {"driver_name", "delivery_time_start" (Manila local time),
              "items": [{"product_id", "sack_price": {"id", "quantity"}} |
                        {"product_id", "per_kilo_price": {"id", "quantity"}}]}
    """
    driver_name, delivery_time_start = _header(payload)
    items = _items(payload)

    def _op(deadline: Deadline) -> Delivery:
        get_cashier(cashier_id)
        lines = _check_lines(cashier_id, items, deadline)
        delivery = Delivery(
            cashier_id=cashier_id,
            driver_name=driver_name,
            delivery_time_start=delivery_time_start,
        )
        db.session.add(delivery)
        _receive_lines(delivery, cashier_id, lines, deadline, record_movements=True)
        db.session.flush()
        return delivery

    delivery = run_in_transaction(_op, label="create_delivery")
    current_app.logger.info(
        "Delivery %s received by cashier %s (%d items)", delivery.id, cashier_id, len(items)
    )
    return delivery


def edit_delivery(cashier_id: int, delivery_id: int, payload: dict) -> Delivery:
    """
    Replace a delivery's items and header.

    The stock the old items added is taken back from the tiers they recorded,
    then the new items are received. No audit movements are written for an
    edit.
    """
    driver_name, delivery_time_start = _header(payload)
    items = _items(payload)

    def _op(deadline: Deadline) -> Delivery:
        delivery = _locked_delivery(cashier_id, delivery_id)
        lines = _check_lines(cashier_id, items, deadline)

        _reverse_items(delivery, deadline)
        delivery.items.clear()
        db.session.flush()

        delivery.driver_name = driver_name
        delivery.delivery_time_start = delivery_time_start
        _receive_lines(delivery, cashier_id, lines, deadline, record_movements=False)
        db.session.flush()
        return delivery

    delivery = run_in_transaction(_op, label="edit_delivery")
    current_app.logger.info("Delivery %s edited by cashier %s", delivery_id, cashier_id)
    return delivery


def delete_delivery(cashier_id: int, delivery_id: int) -> None:
    """Take the delivered quantities back out of stock and delete the document."""

    def _op(deadline: Deadline) -> None:
        delivery = _locked_delivery(cashier_id, delivery_id)
        _reverse_items(delivery, deadline)
        db.session.delete(delivery)

    run_in_transaction(_op, label="delete_delivery")
    current_app.logger.info("Delivery %s deleted by cashier %s", delivery_id, cashier_id)


def get_delivery(delivery_id: int) -> Delivery:
    delivery = db.session.get(Delivery, delivery_id)
    if delivery is None:
        raise NotFoundError(f"Delivery {delivery_id} not found", details={"delivery_id": delivery_id})
    return delivery


def list_deliveries_by_cashier(cashier_id: int) -> list[Delivery]:
    return (
        db.session.query(Delivery)
        .filter(Delivery.cashier_id == cashier_id)
        .order_by(Delivery.created_at.desc(), Delivery.id.desc())
        .all()
    )
