# Overview: Flask API routes for the generic grid engine (sheets, rows, cells).

from flask import Blueprint, request, jsonify

from ..business_day import resolve_window
from ..services import grid_service
from ..decorators import handle_ledger_errors


sheets_bp = Blueprint("sheets", __name__, url_prefix="/api/sheets")


@sheets_bp.post("/")
@handle_ledger_errors
def create_sheet_route():
    """Body: {"kind", "owner_id", "name", "columns"?}"""
    data = request.get_json() or {}
    sheet = grid_service.create_sheet(
        data.get("kind"),
        data.get("owner_id"),
        data.get("name"),
        data.get("columns"),
    )
    return jsonify({"sheet": sheet.to_dict()}), 201


@sheets_bp.get("/<int:sheet_id>")
@handle_ledger_errors
def get_sheet_route(sheet_id: int):
    """
    Sheet with rows and cells.

    ?date= limits rows to that business day, ?start_date=&end_date= to a span
    of days; without either every row is returned.
    """
    date, start, end = (request.args.get(k) for k in ("date", "start_date", "end_date"))
    day = resolve_window(date, start, end) if (date or start or end) else None
    return jsonify({"sheet": grid_service.get_sheet_with_data(sheet_id, day)}), 200


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

@sheets_bp.post("/<int:sheet_id>/item-rows")
@handle_ledger_errors
def add_item_row_route(sheet_id: int):
    """Body: {"item_id", "row_index"}"""
    data = request.get_json() or {}
    row = grid_service.add_item_row(sheet_id, data.get("item_id"), data.get("row_index"))
    return jsonify({"row": row.to_dict()}), 201


@sheets_bp.post("/<int:sheet_id>/calculation-rows")
@handle_ledger_errors
def add_calculation_rows_route(sheet_id: int):
    """
    Body: {"row_index", "description"?} for one row, or
          {"rows": [row_index | {"row_index", "description"?}, ...]} for several.
    """
    data = request.get_json() or {}
    if "rows" in data:
        rows = grid_service.add_calculation_rows(sheet_id, data.get("rows") or [])
        return jsonify({"rows": [row.to_dict() for row in rows]}), 201
    row = grid_service.add_calculation_row(
        sheet_id, data.get("row_index"), data.get("description") or ""
    )
    return jsonify({"row": row.to_dict()}), 201


@sheets_bp.delete("/rows/<int:row_id>")
@handle_ledger_errors
def delete_row_route(row_id: int):
    grid_service.delete_row(row_id)
    return jsonify({"deleted": True, "row_id": row_id}), 200


@sheets_bp.post("/<int:sheet_id>/row-positions/validate")
@handle_ledger_errors
def validate_row_positions_route(sheet_id: int):
    """Body: {"mappings": [{"row_id", "new_row_index"}]}; never mutates."""
    data = request.get_json() or {}
    grid_service.get_sheet(sheet_id)
    validation = grid_service.validate_row_mappings(data.get("mappings"), sheet_id)
    return jsonify(validation.to_dict()), 200


@sheets_bp.put("/<int:sheet_id>/row-positions")
@handle_ledger_errors
def update_row_positions_route(sheet_id: int):
    data = request.get_json() or {}
    rows = grid_service.batch_update_row_positions(sheet_id, data.get("mappings"))
    return jsonify({"rows": [row.to_dict() for row in rows]}), 200


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------

@sheets_bp.post("/cells")
@handle_ledger_errors
def add_cell_route():
    """Body: {"row_id", "column_index", "value"?, "formula"?, "color"?}"""
    data = request.get_json() or {}
    cell = grid_service.add_cell(data)
    return jsonify({"cell": cell.to_dict()}), 201


@sheets_bp.post("/cells/bulk")
@handle_ledger_errors
def add_cells_route():
    data = request.get_json() or {}
    cells = grid_service.add_cells(data.get("cells") or [])
    return jsonify({"cells": [cell.to_dict() for cell in cells]}), 201


@sheets_bp.put("/cells/<int:cell_id>")
@handle_ledger_errors
def update_cell_route(cell_id: int):
    """Body: any of {"value", "formula", "color"}"""
    data = request.get_json() or {}
    cell = grid_service.update_cell(cell_id, data)
    return jsonify({"cell": cell.to_dict()}), 200


@sheets_bp.put("/cells")
@handle_ledger_errors
def update_cells_route():
    """Body: {"cells": [{"id", "value"?, "formula"?, "color"?}]}"""
    data = request.get_json() or {}
    cells = grid_service.update_cells(data.get("cells") or [])
    return jsonify({"cells": [cell.to_dict() for cell in cells]}), 200


@sheets_bp.delete("/cells/<int:cell_id>")
@handle_ledger_errors
def delete_cell_route(cell_id: int):
    grid_service.delete_cell(cell_id)
    return jsonify({"deleted": True, "cell_id": cell_id}), 200


@sheets_bp.post("/cells/batch")
@handle_ledger_errors
def batch_update_cells_route():
    """Body: {"changes": [{"type": "add"|"update", ...}]}; all-or-nothing."""
    data = request.get_json() or {}
    cells = grid_service.batch_update_cells(data.get("changes"))
    return jsonify({"cells": [cell.to_dict() for cell in cells]}), 200
