# Overview: The cashier's storage box ("Kahon"): its items and its KAHON sheet.

from __future__ import annotations

from typing import Optional

from flask import current_app

from ..business_day import DayRange
from ..constants import KAHON_NAME, SheetKind
from ..extensions import db
from ..models import Cashier, Kahon, KahonItem, Sheet
from ..numbers import to_decimal
from .catalog_service import get_cashier
from .concurrency import Deadline, run_in_transaction
from .errors import NotFoundError, ValidationError
from .grid_service import append_item_row, ensure_sheet, list_rows


def ensure_kahon(cashier_id: int) -> Kahon:
    """Get-or-create the cashier's Kahon (no commit)."""
    kahon = db.session.query(Kahon).filter_by(cashier_id=cashier_id).first()
    if kahon is None:
        get_cashier(cashier_id)
        kahon = Kahon(cashier_id=cashier_id, name=KAHON_NAME)
        db.session.add(kahon)
        db.session.flush()
        current_app.logger.info("Created kahon %s for cashier %s", kahon.id, cashier_id)
    return kahon


def ensure_kahon_sheet(cashier_id: int) -> tuple[Kahon, Sheet]:
    kahon = ensure_kahon(cashier_id)
    return kahon, ensure_sheet(SheetKind.KAHON, kahon.id, KAHON_NAME)


def record_kahon_item(cashier_id: int, name: str, quantity, *, with_row: bool = True) -> KahonItem:
    """
    Record a storage-box movement (no commit).

    with_row also appends an item row to the cashier's KAHON sheet; delivery
    audit movements are recorded without one.
    """
    kahon = ensure_kahon(cashier_id)
    item = KahonItem(kahon_id=kahon.id, name=name, quantity=quantity)
    db.session.add(item)
    db.session.flush()
    if with_row:
        sheet = ensure_sheet(SheetKind.KAHON, kahon.id, KAHON_NAME)
        append_item_row(sheet, item)
    return item


def get_kahon_items(kahon_id: int, day: Optional[DayRange] = None) -> list[KahonItem]:
    query = db.session.query(KahonItem).filter(KahonItem.kahon_id == kahon_id)
    if day is not None:
        query = query.filter(KahonItem.created_at >= day.start, KahonItem.created_at <= day.end)
    return query.order_by(KahonItem.created_at.asc(), KahonItem.id.asc()).all()


def _kahon_payload(kahon: Kahon, sheet: Sheet, day: Optional[DayRange]) -> dict:
    data = kahon.to_dict()
    data["items"] = [item.to_dict() for item in get_kahon_items(kahon.id, day)]
    data["sheets"] = [sheet.to_dict(rows=list_rows(sheet.id, day))]
    if day is not None:
        data["day"] = day.to_dict()
    return data


def get_kahon_by_cashier(cashier_id: int, day: Optional[DayRange] = None) -> dict:
    """Kahon with its items and sheet, both limited to day when given."""
    kahon, sheet = run_in_transaction(
        lambda deadline: ensure_kahon_sheet(cashier_id), label="ensure_kahon"
    )
    return _kahon_payload(kahon, sheet, day)


def get_kahons_by_user(user_id: int, day: Optional[DayRange] = None) -> list[dict]:
    """Every existing kahon of the cashiers reporting to a back-office user."""
    cashiers = (
        db.session.query(Cashier)
        .filter(Cashier.user_id == user_id)
        .order_by(Cashier.name.asc(), Cashier.id.asc())
        .all()
    )
    result = []
    for cashier in cashiers:
        kahon = db.session.query(Kahon).filter_by(cashier_id=cashier.id).first()
        if kahon is None:
            continue
        sheet = db.session.query(Sheet).filter_by(kind=SheetKind.KAHON.value, owner_id=kahon.id).first()
        entry = {"cashier_id": cashier.id, "cashier_name": cashier.name}
        if sheet is None:
            entry.update(kahon.to_dict())
            entry["items"] = [item.to_dict() for item in get_kahon_items(kahon.id, day)]
            entry["sheets"] = []
        else:
            entry.update(_kahon_payload(kahon, sheet, day))
        result.append(entry)
    return result


def edit_kahon_items(kahon_id: int, items: list[dict]) -> list[KahonItem]:
    """
    Rename or requantify kahon items ({"id", "name"?, "quantity"?}).

    Ledger metadata only: stock counters and existing grid cells are left
    as they are.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    def _op(deadline: Deadline) -> list[KahonItem]:
        if db.session.get(Kahon, kahon_id) is None:
            raise NotFoundError(f"Kahon {kahon_id} not found", details={"kahon_id": kahon_id})
        edited = []
        for entry in items:
            deadline.check("kahon item")
            item = db.session.get(KahonItem, entry.get("id"))
            if item is None or item.kahon_id != kahon_id:
                raise NotFoundError(
                    "Kahon item not found",
                    details={"kahon_id": kahon_id, "item_id": entry.get("id")},
                )
            if "name" in entry:
                if not entry["name"]:
                    raise ValidationError("name must not be empty", details={"item_id": item.id})
                item.name = entry["name"]
            if "quantity" in entry:
                item.quantity = to_decimal(entry["quantity"], field="quantity")
            edited.append(item)
        return edited

    edited = run_in_transaction(_op, label="edit_kahon_items")
    current_app.logger.info("Edited %d items of kahon %s", len(edited), kahon_id)
    return edited

