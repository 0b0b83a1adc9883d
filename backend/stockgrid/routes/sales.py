# Overview: Flask API routes for the sales ledger; parses input and returns JSON responses.

# backend/stockgrid/routes/sales.py
"""Sales API routes (acting cashier from X-Cashier-Id)"""

from flask import Blueprint, request, jsonify, g

from ..services import daily_service, sales_service
from ..decorators import require_cashier, handle_ledger_errors


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/")
@require_cashier
@handle_ledger_errors
def create_sale_route():
    """
    Record a sale and decrement stock for every item.

    Body: {"payment_method", "total_amount", "change_amount"?, "order_id"?, "items": [...]}
    """
    data = request.get_json() or {}
    sale = sales_service.create_sale(g.cashier_id, data)
    return jsonify({"sale": sale.to_dict()}), 201


@sales_bp.get("/")
@require_cashier
@handle_ledger_errors
def list_sales_route():
    """
    Sales of the acting cashier.

    With ?date=YYYY-MM-DD only that business day; otherwise the whole history.
    """
    date = request.args.get("date")
    if date:
        sales = daily_service.get_sales_for_day(g.cashier_id, date)
    else:
        include_void = request.args.get("include_void", "true").lower() == "true"
        sales = sales_service.list_sales_by_cashier(
            g.cashier_id,
            include_void=include_void,
            limit=request.args.get("limit", type=int),
        )
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/cash")
@require_cashier
@handle_ledger_errors
def cash_sales_route():
    """Non-void CASH sales of ?date= (default today) with their total."""
    return jsonify(daily_service.get_cash_sales_for_day(g.cashier_id, request.args.get("date"))), 200


@sales_bp.get("/<int:sale_id>")
@handle_ledger_errors
def get_sale_route(sale_id: int):
    return jsonify({"sale": sales_service.get_sale(sale_id).to_dict()}), 200


@sales_bp.put("/<int:sale_id>")
@handle_ledger_errors
def edit_sale_route(sale_id: int):
    """Full replace of items and header; stock is restored then re-taken."""
    data = request.get_json() or {}
    sale = sales_service.edit_sale(sale_id, data)
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.delete("/<int:sale_id>")
@handle_ledger_errors
def delete_sale_route(sale_id: int):
    sales_service.delete_sale(sale_id)
    return jsonify({"deleted": True, "sale_id": sale_id}), 200


@sales_bp.post("/<int:sale_id>/void")
@handle_ledger_errors
def void_sale_route(sale_id: int):
    sale = sales_service.void_sale(sale_id)
    return jsonify({"sale": sale.to_dict()}), 200
