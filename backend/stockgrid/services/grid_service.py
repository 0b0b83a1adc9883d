# Overview: Generic sheet/row/cell engine shared by the Kahon, Inventory and Expenses grids.

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional

from flask import current_app
from sqlalchemy import update

from ..business_day import DayRange
from ..constants import NAME_COLUMN, QUANTITY_COLUMN, SheetKind
from ..extensions import db
from ..models import Cell, InventoryItem, KahonItem, Row, Sheet
from ..numbers import decimal_to_str
from .concurrency import Deadline, lock_for_update, run_in_transaction
from .errors import NotFoundError, ValidationError
"""
Grid invariants (authoritative)

- (sheet_id, row_index) and (row_id, column_index) are unique; the database
  enforces both, so every index move happens in two phases: first to
  distinct negative indexes, then to the final ones.
- Inserting at an occupied index shifts that row and every later row down
  by one. Deleting a row leaves a gap (no compaction).
- Item rows are materialised with all `columns` cells; column 0 holds the
  item quantity and column 1 its name.
- Formulas are opaque client payloads; is_calculated only records whether
  one is present.
- Public mutations commit in their own bounded transaction. Helpers marked
  "no commit" run inside a caller's transaction (transfers use them).
"""

_ITEM_MODELS = {
    SheetKind.KAHON.value: KahonItem,
    SheetKind.INVENTORY.value: InventoryItem,
    SheetKind.EXPENSES.value: InventoryItem,
}


def _int(value: Any, name: str) -> int:
    """Whole-number input only; 1.5 is rejected rather than truncated to 1."""
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{name} must be an integer", details={name: value})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", details={name: value})


def _row_index(value: Any) -> int:
    index = _int(value, "row_index")
    if index < 0:
        raise ValidationError("row_index must not be negative", details={"row_index": index})
    return index


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_sheet(sheet_id: int, *, lock: bool = False) -> Sheet:
    query = db.session.query(Sheet).filter_by(id=sheet_id)
    if lock:
        query = lock_for_update(query)
    sheet = query.first()
    if sheet is None:
        raise NotFoundError(f"Sheet {sheet_id} not found", details={"sheet_id": sheet_id})
    return sheet


def get_row(row_id: int) -> Row:
    row = db.session.get(Row, row_id)
    if row is None:
        raise NotFoundError(f"Row {row_id} not found", details={"row_id": row_id})
    return row


def get_cell(cell_id: int) -> Cell:
    cell = db.session.get(Cell, cell_id)
    if cell is None:
        raise NotFoundError(f"Cell {cell_id} not found", details={"cell_id": cell_id})
    return cell


def find_sheet(kind: SheetKind, owner_id: int) -> Optional[Sheet]:
    return (
        db.session.query(Sheet)
        .filter(Sheet.kind == kind.value, Sheet.owner_id == owner_id)
        .order_by(Sheet.id.asc())
        .first()
    )


def _item_for(sheet: Sheet, item_id: int):
    model = _ITEM_MODELS[sheet.kind]
    item = db.session.get(model, item_id)
    if item is None:
        raise NotFoundError(
            f"{model.__name__} {item_id} not found",
            details={"item_id": item_id, "sheet_id": sheet.id},
        )
    return item


def list_rows(sheet_id: int, day: Optional[DayRange] = None) -> list[Row]:
    """Rows ordered by row_index, optionally limited to rows created within day."""
    query = db.session.query(Row).filter(Row.sheet_id == sheet_id)
    if day is not None:
        query = query.filter(Row.created_at >= day.start, Row.created_at <= day.end)
    return query.order_by(Row.row_index.asc()).all()


def get_sheet_with_data(sheet_id: int, day: Optional[DayRange] = None) -> dict:
    sheet = get_sheet(sheet_id)
    return sheet.to_dict(rows=list_rows(sheet.id, day))


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------

def ensure_sheet(kind: SheetKind, owner_id: int, name: str, columns: int | None = None) -> Sheet:
    """Get-or-create the owner's sheet of this kind (no commit)."""
    sheet = find_sheet(kind, owner_id)
    if sheet is not None:
        return sheet
    if columns is None:
        columns = current_app.config.get("GRID_DEFAULT_COLUMNS", 10)
    columns = _int(columns, "columns")
    if columns < 2:
        # Item rows need the quantity and name columns
        raise ValidationError("A sheet needs at least 2 columns", details={"columns": columns})
    sheet = Sheet(kind=kind.value, owner_id=owner_id, name=name, columns=columns)
    db.session.add(sheet)
    db.session.flush()
    current_app.logger.info("Created %s sheet %s for owner %s", kind.value, sheet.id, owner_id)
    return sheet


def create_sheet(kind: SheetKind | str, owner_id: int, name: str, columns: int | None = None) -> Sheet:
    try:
        kind = SheetKind(kind)
    except ValueError:
        raise ValidationError("Unknown sheet kind", details={"kind": kind})
    if not name:
        raise ValidationError("Sheet name is required")
    owner_id = _int(owner_id, "owner_id")

    def _op(deadline: Deadline) -> Sheet:
        if find_sheet(kind, owner_id) is not None:
            raise ValidationError(
                "Sheet already exists for owner",
                details={"kind": kind.value, "owner_id": owner_id},
            )
        return ensure_sheet(kind, owner_id, name, columns)

    return run_in_transaction(_op, label="create_sheet")


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def _make_room(sheet_id: int, row_index: int) -> None:
    """If row_index is taken, shift it and every later row down by one."""
    occupied = (
        db.session.query(Row.id)
        .filter(Row.sheet_id == sheet_id, Row.row_index == row_index)
        .first()
    )
    if occupied is None:
        return
    # v -> -(v + 2) -> v + 1; negatives never collide with live indexes
    db.session.execute(
        update(Row)
        .where(Row.sheet_id == sheet_id, Row.row_index >= row_index)
        .values(row_index=Row.row_index * -1 - 2)
        .execution_options(synchronize_session="fetch")
    )
    db.session.execute(
        update(Row)
        .where(Row.sheet_id == sheet_id, Row.row_index < 0)
        .values(row_index=Row.row_index * -1 - 1)
        .execution_options(synchronize_session="fetch")
    )
    current_app.logger.debug("Shifted rows of sheet %s from index %s", sheet_id, row_index)


def _next_row_index(sheet_id: int) -> int:
    current = (
        db.session.query(db.func.max(Row.row_index))
        .filter(Row.sheet_id == sheet_id)
        .scalar()
    )
    return 0 if current is None else current + 1


def _blank_cells(columns: int, prefilled: dict[int, str]) -> list[Cell]:
    return [
        Cell(column_index=col, value=prefilled.get(col, ""), is_calculated=False)
        for col in range(columns)
    ]


def insert_item_row(sheet: Sheet, item, row_index: int) -> Row:
    """Place an item row at row_index, shifting if needed (no commit)."""
    _make_room(sheet.id, row_index)
    row = Row(sheet_id=sheet.id, row_index=row_index, is_item_row=True, item_id=item.id)
    row.cells = _blank_cells(sheet.columns, {
        QUANTITY_COLUMN: decimal_to_str(item.quantity) or "0",
        NAME_COLUMN: item.name,
    })
    db.session.add(row)
    db.session.flush()
    return row


def append_item_row(sheet: Sheet, item) -> Row:
    """Item row after the last one (no commit)."""
    return insert_item_row(sheet, item, _next_row_index(sheet.id))


def insert_calculation_row(sheet: Sheet, row_index: int, description: str = "") -> Row:
    _make_room(sheet.id, row_index)
    row = Row(sheet_id=sheet.id, row_index=row_index, is_item_row=False, item_id=None)
    row.cells = _blank_cells(sheet.columns, {NAME_COLUMN: description or ""})
    db.session.add(row)
    db.session.flush()
    return row


def add_item_row(sheet_id: int, item_id: int, row_index: Any) -> Row:
    index = _row_index(row_index)

    def _op(deadline: Deadline) -> Row:
        sheet = get_sheet(sheet_id, lock=True)
        item = _item_for(sheet, _int(item_id, "item_id"))
        return insert_item_row(sheet, item, index)

    row = run_in_transaction(_op, label="add_item_row")
    current_app.logger.info("Item row %s added to sheet %s at %s", row.id, sheet_id, index)
    return row


def add_calculation_row(sheet_id: int, row_index: Any, description: str = "") -> Row:
    index = _row_index(row_index)

    def _op(deadline: Deadline) -> Row:
        return insert_calculation_row(get_sheet(sheet_id, lock=True), index, description)

    return run_in_transaction(_op, label="add_calculation_row")


def add_calculation_rows(sheet_id: int, rows: Iterable[Any]) -> list[Row]:
    """
    Insert several calculation rows in one transaction.

    rows: row indexes, or {"row_index", "description"} mappings; applied in
    the given order, each insertion seeing the shifts of the previous ones.
    """
    planned = []
    for entry in rows:
        if isinstance(entry, dict):
            planned.append((_row_index(entry.get("row_index")), entry.get("description") or ""))
        else:
            planned.append((_row_index(entry), ""))
    if not planned:
        raise ValidationError("No rows to add")

    def _op(deadline: Deadline) -> list[Row]:
        sheet = get_sheet(sheet_id, lock=True)
        created = []
        for index, description in planned:
            deadline.check(f"calculation row {index}")
            created.append(insert_calculation_row(sheet, index, description))
        return created

    return run_in_transaction(_op, label="add_calculation_rows")


def delete_row(row_id: int) -> None:
    def _op(deadline: Deadline) -> None:
        row = get_row(row_id)
        for cell in list(row.cells):
            db.session.delete(cell)
        db.session.flush()
        db.session.delete(row)

    run_in_transaction(_op, label="delete_row")
    current_app.logger.info("Row %s deleted", row_id)


# ---------------------------------------------------------------------------
# Row repositioning
# ---------------------------------------------------------------------------

@dataclass
class RowMappingValidation:
    """Outcome of checking a batch of row moves; never raises."""

    errors: list[str] = field(default_factory=list)
    duplicate_targets: list[int] = field(default_factory=list)
    unknown_row_ids: list[Any] = field(default_factory=list)
    negative_targets: list[int] = field(default_factory=list)
    occupied_targets: list[int] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        data = asdict(self)
        data["valid"] = self.valid
        return data


def _parse_mappings(mappings, result: RowMappingValidation) -> list[tuple[int, int]]:
    parsed = []
    if not isinstance(mappings, list) or not mappings:
        result.errors.append("mappings must be a non-empty list")
        return parsed
    for idx, mapping in enumerate(mappings):
        try:
            row_id = _int(mapping["row_id"], "row_id")
            target = _int(mapping["new_row_index"], "new_row_index")
        except (KeyError, TypeError, ValidationError):
            result.errors.append(f"mapping {idx} needs integer row_id and new_row_index")
            continue
        parsed.append((row_id, target))
    return parsed


def validate_row_mappings(mappings, sheet_id: int) -> RowMappingValidation:
    """
    Check a batch of {"row_id", "new_row_index"} moves against the sheet.

    Reports duplicate targets, row ids that are unknown or live on another
    sheet, negative targets, and targets held by rows outside the batch.
    """
    result = RowMappingValidation()
    parsed = _parse_mappings(mappings, result)
    if not parsed:
        return result

    seen_targets: set[int] = set()
    seen_rows: set[int] = set()
    for row_id, target in parsed:
        if target < 0 and target not in result.negative_targets:
            result.negative_targets.append(target)
        if target in seen_targets and target not in result.duplicate_targets:
            result.duplicate_targets.append(target)
        if row_id in seen_rows:
            result.errors.append(f"row {row_id} appears more than once")
        seen_targets.add(target)
        seen_rows.add(row_id)

    sheet_rows = dict(
        db.session.query(Row.id, Row.row_index).filter(Row.sheet_id == sheet_id).all()
    )
    result.unknown_row_ids = [row_id for row_id, _ in parsed if row_id not in sheet_rows]

    held_outside = {
        index: row_id for row_id, index in sheet_rows.items() if row_id not in seen_rows
    }
    result.occupied_targets = sorted(
        target for target in seen_targets if target in held_outside
    )

    if result.duplicate_targets:
        result.errors.append(f"duplicate target indexes: {sorted(result.duplicate_targets)}")
    if result.unknown_row_ids:
        result.errors.append(f"rows not in sheet {sheet_id}: {result.unknown_row_ids}")
    if result.negative_targets:
        result.errors.append(f"negative target indexes: {sorted(result.negative_targets)}")
    if result.occupied_targets:
        result.errors.append(f"target indexes held by other rows: {result.occupied_targets}")
    return result


def batch_update_row_positions(sheet_id: int, mappings) -> list[Row]:
    """
    Move several rows at once.

    Invalid batches raise ValidationError (details = the validation report)
    before any row changes. Valid batches park every moved row on a distinct
    negative index, flush, then write the targets, all in one transaction.
    """

    def _op(deadline: Deadline) -> list[Row]:
        get_sheet(sheet_id, lock=True)
        validation = validate_row_mappings(mappings, sheet_id)
        if not validation.valid:
            raise ValidationError("Invalid row mappings", details=validation.to_dict())

        moves = [(get_row(row_id), target) for row_id, target in _parse_mappings(mappings, validation)]
        for parked, (row, _) in enumerate(moves, start=1):
            row.row_index = -parked
        db.session.flush()
        deadline.check("reposition rows")
        for row, target in moves:
            row.row_index = target
        db.session.flush()
        return [row for row, _ in moves]

    rows = run_in_transaction(_op, label="batch_update_row_positions")
    current_app.logger.info("Repositioned %d rows on sheet %s", len(rows), sheet_id)
    return rows


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------

_UNSET = object()


def _apply_cell_fields(cell: Cell, value=_UNSET, formula=_UNSET, color=_UNSET) -> None:
    if value is not _UNSET:
        cell.value = "" if value is None else str(value)
    if formula is not _UNSET:
        cell.formula = formula or None
        cell.is_calculated = bool(formula)
    if color is not _UNSET:
        cell.color = color or None


def insert_cell(data: dict) -> Cell:
    """data: {"row_id", "column_index", "value"?, "formula"?, "color"?} (no commit)."""
    row = get_row(_int(data.get("row_id"), "row_id"))
    column_index = _int(data.get("column_index"), "column_index")
    columns = row.sheet.columns
    if not 0 <= column_index < columns:
        raise ValidationError(
            "column_index out of range",
            details={"column_index": column_index, "columns": columns},
        )
    taken = (
        db.session.query(Cell.id)
        .filter(Cell.row_id == row.id, Cell.column_index == column_index)
        .first()
    )
    if taken is not None:
        raise ValidationError(
            "Cell already exists at column",
            details={"row_id": row.id, "column_index": column_index},
        )
    cell = Cell(row_id=row.id, column_index=column_index, value="", is_calculated=False)
    _apply_cell_fields(
        cell,
        value=data.get("value", ""),
        formula=data.get("formula"),
        color=data.get("color"),
    )
    db.session.add(cell)
    db.session.flush()
    return cell


def change_cell(cell_id: int, changes: dict) -> Cell:
    """Apply whichever of value/formula/color are present (no commit)."""
    cell = get_cell(_int(cell_id, "cell_id"))
    _apply_cell_fields(cell, **{k: changes[k] for k in ("value", "formula", "color") if k in changes})
    return cell


def add_cell(data: dict) -> Cell:
    return run_in_transaction(lambda deadline: insert_cell(data), label="add_cell")


def add_cells(cell_data: list[dict]) -> list[Cell]:
    def _op(deadline: Deadline) -> list[Cell]:
        created = []
        for idx, data in enumerate(cell_data):
            deadline.check(f"cell {idx}")
            created.append(insert_cell(data))
        return created

    return run_in_transaction(_op, label="add_cells")


def update_cell(cell_id: int, changes: dict) -> Cell:
    return run_in_transaction(lambda deadline: change_cell(cell_id, changes), label="update_cell")


def update_cells(updates: list[dict]) -> list[Cell]:
    """updates: [{"id", "value"?, "formula"?, "color"?}]"""

    def _op(deadline: Deadline) -> list[Cell]:
        changed = []
        for idx, entry in enumerate(updates):
            deadline.check(f"cell {idx}")
            changed.append(change_cell(entry.get("id"), entry))
        return changed

    return run_in_transaction(_op, label="update_cells")


def delete_cell(cell_id: int) -> None:
    def _op(deadline: Deadline) -> None:
        db.session.delete(get_cell(cell_id))

    run_in_transaction(_op, label="delete_cell")


def batch_update_cells(changes: list[dict]) -> list[Cell]:
    """
    Apply queued client edits all-or-nothing.

    changes: [{"type": "add", "row_id", "column_index", ...} |
              {"type": "update", "id", "value"?, "formula"?, "color"?}]
    """
    if not isinstance(changes, list) or not changes:
        raise ValidationError("changes must be a non-empty list")

    def _op(deadline: Deadline) -> list[Cell]:
        applied = []
        for idx, change in enumerate(changes):
            deadline.check(f"change {idx}")
            kind = change.get("type")
            if kind == "add":
                applied.append(insert_cell(change))
            elif kind == "update":
                applied.append(change_cell(change.get("id"), change))
            else:
                raise ValidationError(
                    "change type must be 'add' or 'update'",
                    details={"index": idx, "type": kind},
                )
        return applied

    cells = run_in_transaction(_op, label="batch_update_cells")
    current_app.logger.info("Applied %d cell changes", len(cells))
    return cells
