# Overview: Pytest coverage for the sheet/row/cell engine.

import pytest
from stockgrid.constants import SheetKind
from stockgrid.models import Cell
from stockgrid.services import grid_service, inventory_service
from stockgrid.services.errors import NotFoundError, ValidationError


@pytest.fixture
def sheet(db_session):
    return grid_service.create_sheet(SheetKind.EXPENSES, 1, "Expenses", columns=4)


@pytest.fixture
def three_rows(sheet):
    """Calculation rows a, b, c at indexes 0, 1, 2."""
    return grid_service.add_calculation_rows(sheet.id, [
        {"row_index": 0, "description": "a"},
        {"row_index": 1, "description": "b"},
        {"row_index": 2, "description": "c"},
    ])


def _layout(sheet_id):
    """[(row_index, description)] in sheet order."""
    return [
        (row.row_index, {c.column_index: c.value for c in row.cells}[1])
        for row in grid_service.list_rows(sheet_id)
    ]


def _indexes(sheet_id):
    return {row.id: row.row_index for row in grid_service.list_rows(sheet_id)}


class TestSheets:

    def test_create_sheet(self, db_session):
        sheet = grid_service.create_sheet("KAHON", 5, "Kahon")
        assert sheet.columns == 10
        assert grid_service.find_sheet(SheetKind.KAHON, 5).id == sheet.id

    def test_duplicate_sheet_rejected(self, sheet):
        with pytest.raises(ValidationError):
            grid_service.create_sheet(SheetKind.EXPENSES, 1, "Again")

    def test_too_few_columns(self, db_session):
        with pytest.raises(ValidationError):
            grid_service.create_sheet(SheetKind.INVENTORY, 1, "Narrow", columns=1)

    def test_unknown_kind(self, db_session):
        with pytest.raises(ValidationError):
            grid_service.create_sheet("LEDGER", 1, "Nope")

    @pytest.mark.parametrize("owner_id", [None, "abc", 1.5])
    def test_owner_id_must_be_integer(self, db_session, owner_id):
        with pytest.raises(ValidationError):
            grid_service.create_sheet(SheetKind.INVENTORY, owner_id, "Orphan")

    def test_get_sheet_with_data(self, sheet, three_rows):
        data = grid_service.get_sheet_with_data(sheet.id)
        assert [row["row_index"] for row in data["rows"]] == [0, 1, 2]
        assert all(len(row["cells"]) == 4 for row in data["rows"])

    def test_missing_sheet(self, db_session):
        with pytest.raises(NotFoundError):
            grid_service.get_sheet(99999)


class TestRows:

    def test_insert_shifts_following_rows(self, sheet, three_rows):
        grid_service.add_calculation_row(sheet.id, 1, "x")
        assert _layout(sheet.id) == [(0, "a"), (1, "x"), (2, "b"), (3, "c")]

    def test_insert_into_gap_does_not_shift(self, sheet):
        grid_service.add_calculation_rows(sheet.id, [0, 5])
        grid_service.add_calculation_row(sheet.id, 3, "mid")
        assert [index for index, _ in _layout(sheet.id)] == [0, 3, 5]

    def test_batch_insert_sees_previous_shifts(self, sheet, three_rows):
        grid_service.add_calculation_rows(sheet.id, [
            {"row_index": 0, "description": "top"},
            {"row_index": 0, "description": "toptop"},
        ])
        assert _layout(sheet.id)[:3] == [(0, "toptop"), (1, "top"), (2, "a")]

    def test_delete_leaves_gap(self, db_session, sheet, three_rows):
        removed = three_rows[1].id
        grid_service.delete_row(removed)
        assert _layout(sheet.id) == [(0, "a"), (2, "c")]
        assert db_session.query(Cell).filter_by(row_id=removed).count() == 0

    def test_negative_index_rejected(self, sheet):
        with pytest.raises(ValidationError):
            grid_service.add_calculation_row(sheet.id, -1)

    def test_item_row_prefilled(self, db_session, cashier):
        item, row = inventory_service.add_inventory_item(cashier.id, name="Bigas", quantity="2.5")

        stored = grid_service.get_row(row.id)
        values = {c.column_index: c.value for c in stored.cells}
        assert stored.is_item_row is True
        assert stored.item_id == item.id
        assert len(values) == 10
        assert values[0] == "2.5"
        assert values[1] == "Bigas"
        assert all(values[col] == "" for col in range(2, 10))

    def test_item_row_inserted_at_index(self, db_session, cashier):
        first, _ = inventory_service.add_inventory_item(cashier.id, name="Sako")
        second, row = inventory_service.add_inventory_item(cashier.id, name="Tali", row_index=0)

        rows = grid_service.list_rows(row.sheet_id)
        assert [(r.row_index, r.item_id) for r in rows] == [(0, second.id), (1, first.id)]

    def test_add_item_row_unknown_item(self, db_session, cashier):
        info = inventory_service.get_inventory_by_cashier(cashier.id)
        with pytest.raises(NotFoundError):
            grid_service.add_item_row(info["inventory_sheet_id"], 99999, 0)


class TestRowRepositioning:

    def test_validate_reports_every_problem(self, sheet, three_rows):
        other = grid_service.create_sheet(SheetKind.KAHON, 9, "Other")
        foreign = grid_service.add_calculation_row(other.id, 0)
        a, b, c = three_rows

        result = grid_service.validate_row_mappings([
            {"row_id": a.id, "new_row_index": 5},
            {"row_id": b.id, "new_row_index": 5},
            {"row_id": foreign.id, "new_row_index": 7},
            {"row_id": 99999, "new_row_index": -1},
        ], sheet.id)

        assert result.valid is False
        assert result.duplicate_targets == [5]
        assert set(result.unknown_row_ids) == {foreign.id, 99999}
        assert result.negative_targets == [-1]

    def test_validate_occupied_target(self, sheet, three_rows):
        a, b, c = three_rows
        result = grid_service.validate_row_mappings([{"row_id": a.id, "new_row_index": 2}], sheet.id)
        assert result.occupied_targets == [2]
        assert result.to_dict()["valid"] is False

    def test_validate_accepts_swap(self, sheet, three_rows):
        a, b, c = three_rows
        result = grid_service.validate_row_mappings([
            {"row_id": a.id, "new_row_index": 1},
            {"row_id": b.id, "new_row_index": 0},
        ], sheet.id)
        assert result.valid is True
        assert result.errors == []

    def test_validate_malformed_mapping(self, sheet):
        assert grid_service.validate_row_mappings([], sheet.id).valid is False
        assert grid_service.validate_row_mappings([{"row_id": "x"}], sheet.id).valid is False

    def test_fractional_target_not_truncated(self, sheet, three_rows):
        a, b, c = three_rows
        before = _indexes(sheet.id)

        result = grid_service.validate_row_mappings([{"row_id": a.id, "new_row_index": 1.5}], sheet.id)
        assert result.valid is False
        with pytest.raises(ValidationError):
            grid_service.batch_update_row_positions(sheet.id, [{"row_id": a.id, "new_row_index": 3.5}])

        assert _indexes(sheet.id) == before
        # Whole floats from JSON are still accepted
        assert grid_service.validate_row_mappings([{"row_id": a.id, "new_row_index": 3.0}], sheet.id).valid is True

    def test_invalid_batch_mutates_nothing(self, sheet, three_rows):
        a, b, c = three_rows
        before = _indexes(sheet.id)

        with pytest.raises(ValidationError) as exc:
            grid_service.batch_update_row_positions(sheet.id, [
                {"row_id": a.id, "new_row_index": 4},
                {"row_id": b.id, "new_row_index": 4},
            ])

        assert exc.value.details["duplicate_targets"] == [4]
        assert _indexes(sheet.id) == before

    def test_swap(self, sheet, three_rows):
        a, b, c = three_rows
        grid_service.batch_update_row_positions(sheet.id, [
            {"row_id": a.id, "new_row_index": 1},
            {"row_id": b.id, "new_row_index": 0},
        ])
        assert _layout(sheet.id) == [(0, "b"), (1, "a"), (2, "c")]

    def test_rotate_into_free_index(self, sheet, three_rows):
        a, b, c = three_rows
        grid_service.batch_update_row_positions(sheet.id, [
            {"row_id": a.id, "new_row_index": 2},
            {"row_id": b.id, "new_row_index": 0},
            {"row_id": c.id, "new_row_index": 10},
        ])
        assert _layout(sheet.id) == [(0, "b"), (2, "a"), (10, "c")]


class TestCells:

    def test_add_cell_into_free_column(self, sheet, three_rows):
        row = three_rows[0]
        last = next(c for c in row.cells if c.column_index == 3)
        grid_service.delete_cell(last.id)

        cell = grid_service.add_cell({"row_id": row.id, "column_index": 3, "value": "42", "color": "#ff0"})

        assert cell.value == "42"
        assert cell.color == "#ff0"
        assert cell.is_calculated is False

    def test_add_cell_out_of_range(self, sheet, three_rows):
        with pytest.raises(ValidationError):
            grid_service.add_cell({"row_id": three_rows[0].id, "column_index": 4})
        with pytest.raises(ValidationError):
            grid_service.add_cell({"row_id": three_rows[0].id, "column_index": -1})

    def test_add_cell_duplicate_column(self, sheet, three_rows):
        with pytest.raises(ValidationError):
            grid_service.add_cell({"row_id": three_rows[0].id, "column_index": 0})

    def test_formula_sets_is_calculated(self, sheet, three_rows):
        cell = three_rows[0].cells[2]

        updated = grid_service.update_cell(cell.id, {"formula": "=A1*2", "value": "84"})
        assert updated.is_calculated is True
        assert updated.formula == "=A1*2"

        cleared = grid_service.update_cell(cell.id, {"formula": ""})
        assert cleared.is_calculated is False
        assert cleared.formula is None
        assert cleared.value == "84"

    def test_update_cells(self, sheet, three_rows):
        first, second = three_rows[0].cells[2], three_rows[1].cells[2]
        grid_service.update_cells([{"id": first.id, "value": "1"}, {"id": second.id, "value": "2"}])
        assert grid_service.get_cell(first.id).value == "1"
        assert grid_service.get_cell(second.id).value == "2"

    def test_batch_is_all_or_nothing(self, sheet, three_rows):
        cell = three_rows[0].cells[2]

        with pytest.raises(ValidationError):
            grid_service.batch_update_cells([
                {"type": "update", "id": cell.id, "value": "changed"},
                {"type": "add", "row_id": three_rows[0].id, "column_index": 0},
            ])

        assert grid_service.get_cell(cell.id).value == ""

    def test_batch_applies_adds_and_updates(self, sheet, three_rows):
        row = three_rows[1]
        free = next(c for c in row.cells if c.column_index == 3)
        grid_service.delete_cell(free.id)
        target = row.cells[0]

        cells = grid_service.batch_update_cells([
            {"type": "add", "row_id": row.id, "column_index": 3, "value": "new"},
            {"type": "update", "id": target.id, "value": "7"},
        ])

        assert [c.value for c in cells] == ["new", "7"]

    def test_batch_unknown_type(self, sheet, three_rows):
        with pytest.raises(ValidationError):
            grid_service.batch_update_cells([{"type": "move", "id": 1}])

    def test_missing_cell(self, db_session):
        with pytest.raises(NotFoundError):
            grid_service.update_cell(99999, {"value": "x"})
