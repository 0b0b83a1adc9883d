# Overview: Order workflow hooks used by the sales ledger (complete on sale, revert on undo).

from __future__ import annotations

from flask import current_app

from ..constants import OrderStatus
from ..extensions import db
from ..models import Order
from ..numbers import optional_decimal
from .concurrency import lock_for_update
from .errors import NotFoundError, ValidationError


def get_order(order_id: int, *, lock: bool = False) -> Order:
    query = db.session.query(Order).filter_by(id=order_id)
    if lock:
        query = lock_for_update(query)
    order = query.first()
    if order is None:
        raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
    return order


def create_order(*, cashier_id: int | None = None, total_amount=None) -> Order:
    order = Order(
        cashier_id=cashier_id,
        status=OrderStatus.PENDING.value,
        total_amount=optional_decimal(total_amount, field="total_amount"),
    )
    db.session.add(order)
    db.session.flush()
    return order


def complete_order(order_id: int, sale_id: int) -> Order:
    """Mark the order fulfilled by sale_id. Runs inside the sale's transaction."""
    order = get_order(order_id, lock=True)
    if order.status == OrderStatus.CANCELLED.value:
        raise ValidationError("Cancelled orders cannot be completed", details={"order_id": order_id})
    if order.sale_id is not None and order.sale_id != sale_id:
        raise ValidationError(
            "Order is already fulfilled by another sale",
            details={"order_id": order_id, "sale_id": order.sale_id},
        )
    order.status = OrderStatus.COMPLETED.value
    order.sale_id = sale_id
    current_app.logger.info("Order %s completed by sale %s", order_id, sale_id)
    return order


def revert_order(order_id: int) -> Order:
    """Return a fulfilled order to PENDING and drop its sale link."""
    order = get_order(order_id, lock=True)
    order.status = OrderStatus.PENDING.value
    order.sale_id = None
    current_app.logger.info("Order %s reverted to pending", order_id)
    return order
