# Overview: Flask API routes for the cashier's storage box (Kahon).

from flask import Blueprint, request, jsonify, g

from ..business_day import resolve_window
from ..services import daily_service, kahon_service
from ..decorators import require_cashier, handle_ledger_errors


kahon_bp = Blueprint("kahon", __name__, url_prefix="/api/kahon")


@kahon_bp.get("/")
@require_cashier
@handle_ledger_errors
def get_kahon_route():
    """Kahon with items and sheet rows of ?date= or ?start_date=&end_date= (default today)."""
    day = resolve_window(
        request.args.get("date"), request.args.get("start_date"), request.args.get("end_date")
    )
    return jsonify(kahon_service.get_kahon_by_cashier(g.cashier_id, day)), 200


@kahon_bp.get("/sheet")
@require_cashier
@handle_ledger_errors
def get_kahon_sheet_route():
    """Sheet rows of ?date=, or of ?start_date=&end_date= when either is given."""
    start, end = request.args.get("start_date"), request.args.get("end_date")
    if start or end:
        data = daily_service.get_kahon_sheet_for_range(g.cashier_id, start, end)
    else:
        data = daily_service.get_kahon_sheet_for_day(g.cashier_id, request.args.get("date"))
    return jsonify(data), 200


@kahon_bp.get("/user/<int:user_id>")
@handle_ledger_errors
def get_user_kahons_route(user_id: int):
    """Every kahon of the cashiers reporting to user_id, for ?date= or ?start_date=&end_date=."""
    day = resolve_window(
        request.args.get("date"), request.args.get("start_date"), request.args.get("end_date")
    )
    kahons = kahon_service.get_kahons_by_user(user_id, day)
    return jsonify({"items": kahons, "count": len(kahons)}), 200


@kahon_bp.put("/<int:kahon_id>/items")
@handle_ledger_errors
def edit_kahon_items_route(kahon_id: int):
    """Body: {"items": [{"id", "name"?, "quantity"?}]}"""
    data = request.get_json() or {}
    items = kahon_service.edit_kahon_items(kahon_id, data.get("items"))
    return jsonify({"items": [item.to_dict() for item in items]}), 200
