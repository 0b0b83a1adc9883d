# Overview: Flask API routes for inbound deliveries.

from flask import Blueprint, request, jsonify, g

from ..services import daily_service, delivery_service
from ..decorators import require_cashier, handle_ledger_errors


deliveries_bp = Blueprint("deliveries", __name__, url_prefix="/api/deliveries")


@deliveries_bp.post("/")
@require_cashier
@handle_ledger_errors
def create_delivery_route():
    """
    Receive a delivery and increment stock.

    Body: {"driver_name", "delivery_time_start" (Manila local), "items": [...]}
    Products owned by another cashier are rejected with 403.
    """
    data = request.get_json() or {}
    delivery = delivery_service.create_delivery(g.cashier_id, data)
    return jsonify({"delivery": delivery.to_dict()}), 201


@deliveries_bp.get("/")
@require_cashier
@handle_ledger_errors
def list_deliveries_route():
    date = request.args.get("date")
    if date:
        deliveries = daily_service.get_deliveries_for_day(g.cashier_id, date)
    else:
        deliveries = delivery_service.list_deliveries_by_cashier(g.cashier_id)
    return jsonify({"items": [d.to_dict() for d in deliveries], "count": len(deliveries)}), 200


@deliveries_bp.get("/<int:delivery_id>")
@handle_ledger_errors
def get_delivery_route(delivery_id: int):
    return jsonify({"delivery": delivery_service.get_delivery(delivery_id).to_dict()}), 200


@deliveries_bp.put("/<int:delivery_id>")
@require_cashier
@handle_ledger_errors
def edit_delivery_route(delivery_id: int):
    data = request.get_json() or {}
    delivery = delivery_service.edit_delivery(g.cashier_id, delivery_id, data)
    return jsonify({"delivery": delivery.to_dict()}), 200


@deliveries_bp.delete("/<int:delivery_id>")
@require_cashier
@handle_ledger_errors
def delete_delivery_route(delivery_id: int):
    delivery_service.delete_delivery(g.cashier_id, delivery_id)
    return jsonify({"deleted": True, "delivery_id": delivery_id}), 200
