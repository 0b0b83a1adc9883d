# Overview: The cashier's inventory ledger and its INVENTORY and EXPENSES sheets.

from __future__ import annotations

from typing import Optional

from flask import current_app

from ..business_day import DayRange
from ..constants import (
    DEFAULT_EXPENSES_SHEET_NAME,
    DEFAULT_INVENTORY_NAME,
    DEFAULT_INVENTORY_SHEET_NAME,
    SheetKind,
)
from ..extensions import db
from ..models import Cashier, Inventory, InventoryItem, Sheet
from ..numbers import to_decimal
from .catalog_service import get_cashier
from .concurrency import Deadline, run_in_transaction
from .errors import ValidationError
from .grid_service import append_item_row, ensure_sheet, find_sheet, insert_item_row, list_rows
"""
Inventory invariants

- One Inventory per cashier, created on first use together with its two
  sheets: INVENTORY ("Default Sheet") and EXPENSES ("Expenses").
- InventoryItems are the back-references of item rows on both sheets.
- Inventory items never touch stock counters; stock moves only through
  sales, deliveries and transfers.
"""

_SHEET_NAMES = {
    SheetKind.INVENTORY: DEFAULT_INVENTORY_SHEET_NAME,
    SheetKind.EXPENSES: DEFAULT_EXPENSES_SHEET_NAME,
}


def ensure_inventory(cashier_id: int) -> Inventory:
    """Get-or-create the cashier's Inventory (no commit)."""
    inventory = db.session.query(Inventory).filter_by(cashier_id=cashier_id).first()
    if inventory is None:
        get_cashier(cashier_id)
        inventory = Inventory(cashier_id=cashier_id, name=DEFAULT_INVENTORY_NAME)
        db.session.add(inventory)
        db.session.flush()
        current_app.logger.info("Created inventory %s for cashier %s", inventory.id, cashier_id)
    return inventory


def ensure_inventory_sheet(cashier_id: int, kind: SheetKind) -> tuple[Inventory, Sheet]:
    if kind not in _SHEET_NAMES:
        raise ValidationError("Not an inventory sheet kind", details={"kind": kind.value})
    inventory = ensure_inventory(cashier_id)
    return inventory, ensure_sheet(kind, inventory.id, _SHEET_NAMES[kind])


def get_inventory_by_cashier(cashier_id: int) -> dict:
    """Inventory header plus the ids of both sheets, creating them if needed."""

    def _op(deadline: Deadline) -> tuple[Inventory, Sheet, Sheet]:
        inventory, inventory_sheet = ensure_inventory_sheet(cashier_id, SheetKind.INVENTORY)
        _, expenses_sheet = ensure_inventory_sheet(cashier_id, SheetKind.EXPENSES)
        return inventory, inventory_sheet, expenses_sheet

    inventory, inventory_sheet, expenses_sheet = run_in_transaction(_op, label="ensure_inventory")
    data = inventory.to_dict()
    data["inventory_sheet_id"] = inventory_sheet.id
    data["expenses_sheet_id"] = expenses_sheet.id
    return data


def get_inventory_sheets_by_user(
    user_id: int,
    kind: SheetKind | str = SheetKind.INVENTORY,
    window: Optional[DayRange] = None,
) -> list[dict]:
    """
    The INVENTORY or EXPENSES sheet of every cashier reporting to user_id.

    Read-only: cashiers that never opened their inventory are skipped rather
    than given empty sheets. Rows are limited to window when given.
    """
    try:
        kind = SheetKind(kind)
    except ValueError:
        raise ValidationError("Unknown sheet kind", details={"kind": kind})
    if kind not in _SHEET_NAMES:
        raise ValidationError("Not an inventory sheet kind", details={"kind": kind.value})

    cashiers = (
        db.session.query(Cashier)
        .filter(Cashier.user_id == user_id)
        .order_by(Cashier.name.asc(), Cashier.id.asc())
        .all()
    )
    result = []
    for cashier in cashiers:
        inventory = db.session.query(Inventory).filter_by(cashier_id=cashier.id).first()
        if inventory is None:
            continue
        sheet = find_sheet(kind, inventory.id)
        if sheet is None:
            continue
        entry = {"cashier_id": cashier.id, "cashier_name": cashier.name, "inventory_id": inventory.id}
        entry.update(sheet.to_dict(rows=list_rows(sheet.id, window)))
        if window is not None:
            entry["day"] = window.to_dict()
        result.append(entry)
    return result


def add_inventory_item(
    cashier_id: int,
    *,
    name: str,
    quantity=0,
    kind: SheetKind | str = SheetKind.INVENTORY,
    row_index: int | None = None,
) -> tuple[InventoryItem, object]:
    """
    Create an InventoryItem and its item row on the INVENTORY or EXPENSES sheet.

    Without row_index the row is appended after the last row.
    """
    if not name or not str(name).strip():
        raise ValidationError("name is required")
    try:
        kind = SheetKind(kind)
    except ValueError:
        raise ValidationError("Unknown sheet kind", details={"kind": kind})
    amount = to_decimal(quantity, field="quantity")
    if row_index is not None:
        try:
            row_index = int(row_index)
        except (TypeError, ValueError):
            raise ValidationError("row_index must be an integer", details={"row_index": row_index})
        if row_index < 0:
            raise ValidationError("row_index must not be negative", details={"row_index": row_index})

    def _op(deadline: Deadline):
        inventory, sheet = ensure_inventory_sheet(cashier_id, kind)
        item = InventoryItem(inventory_id=inventory.id, name=str(name).strip(), quantity=amount)
        db.session.add(item)
        db.session.flush()
        deadline.check("inventory row")
        if row_index is None:
            row = append_item_row(sheet, item)
        else:
            row = insert_item_row(sheet, item, row_index)
        return item, row

    item, row = run_in_transaction(_op, label="add_inventory_item")
    current_app.logger.info(
        "Inventory item %s added to %s sheet of cashier %s", item.id, kind.value, cashier_id
    )
    return item, row
