# Overview: Flask API routes for internal transfers (storage box and standalone records).

from flask import Blueprint, request, jsonify, g

from ..models import Transfer
from ..services import daily_service, transfer_service
from ..decorators import require_cashier, handle_ledger_errors


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.post("/")
@require_cashier
@handle_ledger_errors
def transfer_product_route():
    """
    Move product off the shelf.

    Body: {"type"? (default KAHON), "product": {"id", "sack_price"|"per_kilo_price": {"id", "quantity"}}}
    KAHON transfers answer with the storage-box item, others with the transfer record.
    """
    data = request.get_json() or {}
    result = transfer_service.transfer_product(g.cashier_id, data)
    key = "transfer" if isinstance(result, Transfer) else "kahon_item"
    return jsonify({key: result.to_dict()}), 201


@transfers_bp.get("/")
@require_cashier
@handle_ledger_errors
def list_transfers_route():
    date = request.args.get("date")
    if date:
        transfers = daily_service.get_transfers_for_day(g.cashier_id, date)
    else:
        transfers = transfer_service.list_transfers_by_cashier(g.cashier_id)
    return jsonify({"items": [t.to_dict() for t in transfers], "count": len(transfers)}), 200


@transfers_bp.get("/<int:transfer_id>")
@handle_ledger_errors
def get_transfer_route(transfer_id: int):
    return jsonify({"transfer": transfer_service.get_transfer(transfer_id).to_dict()}), 200


@transfers_bp.put("/<int:transfer_id>")
@handle_ledger_errors
def edit_transfer_route(transfer_id: int):
    data = request.get_json() or {}
    transfer = transfer_service.edit_transfer(transfer_id, data)
    return jsonify({"transfer": transfer.to_dict()}), 200


@transfers_bp.delete("/<int:transfer_id>")
@handle_ledger_errors
def delete_transfer_route(transfer_id: int):
    transfer_service.delete_transfer(transfer_id)
    return jsonify({"deleted": True, "transfer_id": transfer_id}), 200
