# Overview: Flask API routes for catalog reads (products with their stock tiers).

from flask import Blueprint, request, jsonify, g

from ..extensions import db
from ..services import catalog_service
from ..decorators import require_cashier, handle_ledger_errors


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("/")
@require_cashier
@handle_ledger_errors
def list_products_route():
    """Products of the acting cashier plus unassigned ones (?include_unassigned=false to skip)."""
    include_unassigned = request.args.get("include_unassigned", "true").lower() == "true"
    products = catalog_service.list_products(g.cashier_id, include_unassigned=include_unassigned)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/<int:product_id>")
@handle_ledger_errors
def get_product_route(product_id: int):
    return jsonify({"product": catalog_service.get_product(product_id).to_dict()}), 200


@products_bp.post("/")
@require_cashier
@handle_ledger_errors
def create_product_route():
    """
    Body: {"name", "sack_prices"?: [...], "per_kilo_price"?: {...}, "unassigned"?: bool}

    The product belongs to the acting cashier unless "unassigned" is true.
    """
    data = request.get_json() or {}
    product = catalog_service.create_product(
        name=data.get("name"),
        cashier_id=None if data.get("unassigned") else g.cashier_id,
        sack_prices=data.get("sack_prices"),
        per_kilo_price=data.get("per_kilo_price"),
    )
    db.session.commit()
    return jsonify({"product": product.to_dict()}), 201
