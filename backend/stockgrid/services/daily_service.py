# backend/stockgrid/services/daily_service.py
"""
Day-partitioned reads.

Every function takes a YYYY-MM-DD string (None = today at UTC+8) and turns
it into bounds with resolve_day(); the *_for_range sheet reads take a
start/end pair and go through resolve_range() instead. Nothing here does its
own day arithmetic. A malformed date raises ValidationError from the resolver.

Sheets are get-or-created on read so a cashier's first visit sees an empty
grid instead of a 404.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..business_day import DayRange, resolve_day, resolve_range
from ..constants import PaymentMethod, SheetKind
from ..extensions import db
from ..models import Delivery, Sale, Transfer
from ..numbers import decimal_to_str
from . import stock_report_service
from .concurrency import Deadline, run_in_transaction
from .grid_service import list_rows
from .inventory_service import ensure_inventory_sheet
from .kahon_service import ensure_kahon_sheet, get_kahon_items


def _sheet_for_window(sheet, window: DayRange) -> dict:
    data = sheet.to_dict(rows=list_rows(sheet.id, window))
    data["day"] = window.to_dict()
    return data


def _kahon_sheet(cashier_id: int, window: DayRange) -> dict:
    kahon, sheet = run_in_transaction(
        lambda deadline: ensure_kahon_sheet(cashier_id), label="ensure_kahon"
    )
    data = _sheet_for_window(sheet, window)
    data["kahon_id"] = kahon.id
    data["items"] = [item.to_dict() for item in get_kahon_items(kahon.id, window)]
    return data


def get_kahon_sheet_for_day(cashier_id: int, date_str: Optional[str] = None) -> dict:
    return _kahon_sheet(cashier_id, resolve_day(date_str))


def get_kahon_sheet_for_range(
    cashier_id: int, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> dict:
    """Kahon sheet rows and items created from start_date through end_date."""
    return _kahon_sheet(cashier_id, resolve_range(start_date, end_date))


def _inventory_sheet(cashier_id: int, kind: SheetKind, window: DayRange) -> dict:

    def _op(deadline: Deadline):
        return ensure_inventory_sheet(cashier_id, kind)

    inventory, sheet = run_in_transaction(_op, label="ensure_inventory")
    data = _sheet_for_window(sheet, window)
    data["inventory_id"] = inventory.id
    return data


def get_inventory_sheet_for_day(cashier_id: int, date_str: Optional[str] = None) -> dict:
    return _inventory_sheet(cashier_id, SheetKind.INVENTORY, resolve_day(date_str))


def get_expenses_sheet_for_day(cashier_id: int, date_str: Optional[str] = None) -> dict:
    return _inventory_sheet(cashier_id, SheetKind.EXPENSES, resolve_day(date_str))


def get_inventory_sheet_for_range(
    cashier_id: int, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> dict:
    return _inventory_sheet(cashier_id, SheetKind.INVENTORY, resolve_range(start_date, end_date))


def get_expenses_sheet_for_range(
    cashier_id: int, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> dict:
    return _inventory_sheet(cashier_id, SheetKind.EXPENSES, resolve_range(start_date, end_date))


def _in_day(query, column, day):
    return query.filter(column >= day.start, column <= day.end)


def get_sales_for_day(cashier_id: int, date_str: Optional[str] = None) -> list[Sale]:
    day = resolve_day(date_str)
    query = db.session.query(Sale).filter(Sale.cashier_id == cashier_id)
    return _in_day(query, Sale.created_at, day).order_by(Sale.created_at.asc(), Sale.id.asc()).all()


def get_cash_sales_for_day(cashier_id: int, date_str: Optional[str] = None) -> dict:
    """Non-void CASH sales of the day and their summed total."""
    day = resolve_day(date_str)
    query = db.session.query(Sale).filter(
        Sale.cashier_id == cashier_id,
        Sale.payment_method == PaymentMethod.CASH.value,
        Sale.is_void.is_(False),
    )
    sales = _in_day(query, Sale.created_at, day).order_by(Sale.created_at.asc(), Sale.id.asc()).all()
    total = sum((Decimal(s.total_amount) for s in sales), Decimal(0))
    return {
        "day": day.to_dict(),
        "sales": [s.to_dict() for s in sales],
        "count": len(sales),
        "total_amount": decimal_to_str(total),
    }


def get_deliveries_for_day(cashier_id: int, date_str: Optional[str] = None) -> list[Delivery]:
    day = resolve_day(date_str)
    query = db.session.query(Delivery).filter(Delivery.cashier_id == cashier_id)
    return (
        _in_day(query, Delivery.created_at, day)
        .order_by(Delivery.created_at.asc(), Delivery.id.asc())
        .all()
    )


def get_transfers_for_day(cashier_id: int, date_str: Optional[str] = None) -> list[Transfer]:
    day = resolve_day(date_str)
    query = db.session.query(Transfer).filter(Transfer.cashier_id == cashier_id)
    return (
        _in_day(query, Transfer.created_at, day)
        .order_by(Transfer.created_at.asc(), Transfer.id.asc())
        .all()
    )


def get_stock_statistics(cashier_id: int, date_str: Optional[str] = None) -> dict:
    return stock_report_service.get_stock_statistics(cashier_id, resolve_day(date_str))
