from flask import Blueprint, jsonify, request, g

from stockgrid.business_day import resolve_day
from stockgrid.decorators import require_cashier, handle_ledger_errors
from stockgrid.services import daily_service, stock_report_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/stock-statistics")
@require_cashier
@handle_ledger_errors
def stock_statistics_report():
    """Sold + transferred per product for ?date= (default today), by category."""
    report = daily_service.get_stock_statistics(g.cashier_id, request.args.get("date"))
    return jsonify(report), 200


@reports_bp.get("/stock-statistics/user/<int:user_id>")
@handle_ledger_errors
def user_stock_statistics_report(user_id: int):
    day = resolve_day(request.args.get("date"))
    return jsonify(stock_report_service.get_stock_statistics_by_user(user_id, day)), 200
