from __future__ import annotations

from typing import Iterable, Optional

from ..extensions import db
from stockgrid.time_utils import to_utc_z, utcnow


class Sheet(db.Model):
    """
    Generic rows-and-cells grid.

    OWNER: (kind, owner_id) names the owning entity. KAHON sheets belong to a
    Kahon, INVENTORY and EXPENSES sheets to an Inventory. The grid engine
    never looks at the owner beyond resolving item-row back-references.

    INVARIANTS:
    - row_index is unique within a sheet (uq_grid_rows_sheet_index)
    - cell column_index is unique within a row and in [0, columns)
    """
    __tablename__ = "grid_sheets"
    __table_args__ = (
        db.Index("ix_grid_sheets_owner", "kind", "owner_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(16), nullable=False)  # SheetKind
    owner_id = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(255), nullable=False)
    columns = db.Column(db.Integer, nullable=False, default=10)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    rows = db.relationship(
        "Row",
        back_populates="sheet",
        cascade="all, delete-orphan",
        order_by="Row.row_index",
    )

    def __repr__(self) -> str:
        return f"<Sheet id={self.id} kind={self.kind} owner_id={self.owner_id} name={self.name!r}>"

    def to_dict(self, rows: Optional[Iterable["Row"]] = None) -> dict:
        """Serialize with all rows, or with the given (already filtered) rows."""
        selected = self.rows if rows is None else rows
        return {
            "id": self.id,
            "kind": self.kind,
            "owner_id": self.owner_id,
            "name": self.name,
            "columns": self.columns,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "rows": [row.to_dict() for row in selected],
        }


class Row(db.Model):
    """
    Grid row. Item rows point back at the KahonItem/InventoryItem they were
    materialized from (item_id, resolved through the sheet kind);
    calculation rows carry subtotals and annotations.
    """
    __tablename__ = "grid_rows"
    __table_args__ = (
        db.UniqueConstraint("sheet_id", "row_index", name="uq_grid_rows_sheet_index"),
        db.Index("ix_grid_rows_sheet_created", "sheet_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sheet_id = db.Column(db.Integer, db.ForeignKey("grid_sheets.id"), nullable=False, index=True)

    row_index = db.Column(db.Integer, nullable=False)
    is_item_row = db.Column(db.Boolean, nullable=False, default=False)
    item_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    sheet = db.relationship("Sheet", back_populates="rows")
    cells = db.relationship(
        "Cell",
        back_populates="row",
        cascade="all, delete-orphan",
        order_by="Cell.column_index",
    )

    def __repr__(self) -> str:
        return f"<Row id={self.id} sheet_id={self.sheet_id} row_index={self.row_index}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sheet_id": self.sheet_id,
            "row_index": self.row_index,
            "is_item_row": self.is_item_row,
            "item_id": self.item_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "cells": [cell.to_dict() for cell in self.cells],
        }


class Cell(db.Model):
    """
    Grid cell. formula is an opaque client payload, never evaluated here;
    is_calculated is derived (true iff formula is non-empty).
    """
    __tablename__ = "grid_cells"
    __table_args__ = (
        db.UniqueConstraint("row_id", "column_index", name="uq_grid_cells_row_column"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    row_id = db.Column(db.Integer, db.ForeignKey("grid_rows.id"), nullable=False, index=True)

    column_index = db.Column(db.Integer, nullable=False)
    value = db.Column(db.Text, nullable=False, default="")
    formula = db.Column(db.Text, nullable=True)
    is_calculated = db.Column(db.Boolean, nullable=False, default=False)
    color = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    row = db.relationship("Row", back_populates="cells")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "row_id": self.row_id,
            "column_index": self.column_index,
            "value": self.value,
            "formula": self.formula,
            "is_calculated": self.is_calculated,
            "color": self.color,
        }
