# Overview: Flask API routes for the cashier's inventory and expenses sheets.

from flask import Blueprint, request, jsonify, g

from ..business_day import resolve_window
from ..services import daily_service, inventory_service
from ..decorators import require_cashier, handle_ledger_errors


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/")
@require_cashier
@handle_ledger_errors
def get_inventory_route():
    """Inventory header plus the ids of its INVENTORY and EXPENSES sheets."""
    return jsonify(inventory_service.get_inventory_by_cashier(g.cashier_id)), 200


@inventory_bp.get("/sheet")
@require_cashier
@handle_ledger_errors
def get_inventory_sheet_route():
    """Rows of ?date=, or of ?start_date=&end_date= when either is given."""
    start, end = request.args.get("start_date"), request.args.get("end_date")
    if start or end:
        data = daily_service.get_inventory_sheet_for_range(g.cashier_id, start, end)
    else:
        data = daily_service.get_inventory_sheet_for_day(g.cashier_id, request.args.get("date"))
    return jsonify(data), 200


@inventory_bp.get("/expenses")
@require_cashier
@handle_ledger_errors
def get_expenses_sheet_route():
    start, end = request.args.get("start_date"), request.args.get("end_date")
    if start or end:
        data = daily_service.get_expenses_sheet_for_range(g.cashier_id, start, end)
    else:
        data = daily_service.get_expenses_sheet_for_day(g.cashier_id, request.args.get("date"))
    return jsonify(data), 200


@inventory_bp.get("/user/<int:user_id>")
@handle_ledger_errors
def get_user_inventory_sheets_route(user_id: int):
    """
    INVENTORY (default) or EXPENSES sheets of every cashier reporting to user_id.

    Query: ?kind=, and ?date= or ?start_date=&end_date= (default today).
    """
    window = resolve_window(
        request.args.get("date"), request.args.get("start_date"), request.args.get("end_date")
    )
    sheets = inventory_service.get_inventory_sheets_by_user(
        user_id, request.args.get("kind", "INVENTORY"), window
    )
    return jsonify({"items": sheets, "count": len(sheets)}), 200


@inventory_bp.post("/items")
@require_cashier
@handle_ledger_errors
def add_inventory_item_route():
    """
    Body: {"name", "quantity"?, "kind"? ("INVENTORY" | "EXPENSES"), "row_index"?}

    Creates the item and its row; without row_index the row is appended.
    """
    data = request.get_json() or {}
    item, row = inventory_service.add_inventory_item(
        g.cashier_id,
        name=data.get("name"),
        quantity=data.get("quantity", 0),
        kind=data.get("kind", "INVENTORY"),
        row_index=data.get("row_index"),
    )
    return jsonify({"item": item.to_dict(), "row": row.to_dict()}), 201
