# backend/stockgrid/services/transfer_service.py
"""
Internal transfers: stock leaving the shelf without a sale.

KAHON transfers move product into the cashier's storage box: the tier is
decremented, a KahonItem is recorded and an item row is appended to the
KAHON sheet, all in one transaction. Every other type is recorded as a
standalone Transfer row.

LIFECYCLE:
- transfer_product: the only path that touches stock
- edit_transfer / delete_transfer: ledger metadata only, stock untouched
"""
from __future__ import annotations

from flask import current_app

from ..constants import TierKind, TransferType
from ..extensions import db
from ..models import KahonItem, Transfer
from ..numbers import to_decimal
from .catalog_service import claim_product, get_cashier, get_product, movement_name, resolve_tier_for_product
from .concurrency import Deadline, run_in_transaction
from .errors import NotFoundError, ValidationError
from .kahon_service import record_kahon_item
from .stock_counter_service import decrement_stock, line_quantity, tier_ref_from_payload


def _transfer_type(value) -> TransferType:
    if value in (None, ""):
        return TransferType.KAHON
    try:
        return TransferType(value)
    except ValueError:
        raise ValidationError(
            "Unknown transfer type",
            details={"type": value, "allowed": [t.value for t in TransferType]},
        )


def record_delivery_movement(cashier_id: int, name: str, quantity=0) -> KahonItem:
    """
    Audit movement for a delivery (no commit, no grid row).

    Runs inside the delivery's transaction so it disappears with it.
    """
    if not name:
        raise ValidationError("Movement name is required")
    return record_kahon_item(cashier_id, name, to_decimal(quantity, field="quantity"), with_row=False)


def transfer_product(cashier_id: int, payload: dict) -> KahonItem | Transfer:
    """
    Move product off the shelf.

    payload: {"type"? (default KAHON),
              "product": {"id", "sack_price": {"id", "quantity"}} |
                         {"id", "per_kilo_price": {"id", "quantity"}}}

    Returns the KahonItem for KAHON transfers, otherwise the Transfer row.
    """
    transfer_type = _transfer_type(payload.get("type"))
    line = payload.get("product") or {}
    product_id = line.get("id", line.get("product_id"))
    if product_id is None:
        raise ValidationError("product.id is required")
    ref = tier_ref_from_payload(line)
    qty = line_quantity(line, ref)

    def _op(deadline: Deadline):
        get_cashier(cashier_id)
        product = claim_product(get_product(int(product_id)), cashier_id)
        tier = resolve_tier_for_product(product, ref, lock=True)
        name = movement_name(product, ref, tier, qty)

        decrement_stock(ref, qty)
        deadline.check("record transfer")

        if transfer_type == TransferType.KAHON:
            # Per-kilo movements keep the weight in the name, not the quantity
            kahon_qty = qty if ref.kind == TierKind.SACK else 0
            return record_kahon_item(cashier_id, name, kahon_qty, with_row=True)

        transfer = Transfer(
            cashier_id=cashier_id,
            name=name,
            quantity=qty,
            type=transfer_type.value,
        )
        db.session.add(transfer)
        db.session.flush()
        return transfer

    result = run_in_transaction(_op, label="transfer_product")
    current_app.logger.info(
        "Cashier %s transferred %s of product %s (%s)",
        cashier_id, qty, product_id, transfer_type.value,
    )
    return result


def get_transfer(transfer_id: int) -> Transfer:
    transfer = db.session.get(Transfer, transfer_id)
    if transfer is None:
        raise NotFoundError(f"Transfer {transfer_id} not found", details={"transfer_id": transfer_id})
    return transfer


def list_transfers_by_cashier(cashier_id: int) -> list[Transfer]:
    return (
        db.session.query(Transfer)
        .filter(Transfer.cashier_id == cashier_id)
        .order_by(Transfer.created_at.desc(), Transfer.id.desc())
        .all()
    )


def edit_transfer(transfer_id: int, payload: dict) -> Transfer:
    """Rename/requantify/retype a standalone transfer record."""
    name = payload.get("name")
    if "name" in payload and not name:
        raise ValidationError("name must not be empty")
    quantity = to_decimal(payload["quantity"], field="quantity") if "quantity" in payload else None
    transfer_type = _transfer_type(payload["type"]) if "type" in payload else None
    if transfer_type == TransferType.KAHON:
        raise ValidationError("Standalone transfers cannot become KAHON transfers")

    def _op(deadline: Deadline) -> Transfer:
        transfer = get_transfer(transfer_id)
        if name:
            transfer.name = name
        if quantity is not None:
            transfer.quantity = quantity
        if transfer_type is not None:
            transfer.type = transfer_type.value
        return transfer

    transfer = run_in_transaction(_op, label="edit_transfer")
    current_app.logger.info("Transfer %s edited", transfer_id)
    return transfer


def delete_transfer(transfer_id: int) -> None:
    def _op(deadline: Deadline) -> None:
        db.session.delete(get_transfer(transfer_id))

    run_in_transaction(_op, label="delete_transfer")
    current_app.logger.info("Transfer %s deleted", transfer_id)
