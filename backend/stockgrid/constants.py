"""Enumerations shared across the ledger, grid and query layers.

Values are stored as plain strings in the database so that migrations and
ad hoc SQL stay readable.
"""

from __future__ import annotations

from enum import Enum


class SackType(str, Enum):
    """Sack sizes a product can be priced and stocked in."""

    FIFTY_KG = "FIFTY_KG"
    TWENTY_FIVE_KG = "TWENTY_FIVE_KG"
    FIVE_KG = "FIVE_KG"

    @property
    def label(self) -> str:
        return SACK_LABELS[self]


SACK_LABELS = {
    SackType.FIFTY_KG: "50KG",
    SackType.TWENTY_FIVE_KG: "25KG",
    SackType.FIVE_KG: "5KG",
}


class TierKind(str, Enum):
    """Which stock counter a line item draws from."""

    SACK = "SACK"
    PER_KILO = "PER_KILO"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CHECK = "CHECK"
    BANK_TRANSFER = "BANK_TRANSFER"
    GCASH = "GCASH"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TransferType(str, Enum):
    """Categorical internal movements; KAHON goes to the storage-box grid."""

    OWN_CONSUMPTION = "OWN_CONSUMPTION"
    RETURN_TO_WAREHOUSE = "RETURN_TO_WAREHOUSE"
    KAHON = "KAHON"
    REPACK = "REPACK"
    DISTRIBUTION = "DISTRIBUTION"


# Transfer types counted as stock leaving the shelf in daily statistics.
STATISTICS_TRANSFER_TYPES = (TransferType.OWN_CONSUMPTION, TransferType.KAHON)


class SheetKind(str, Enum):
    """Owner flavour of a grid sheet."""

    KAHON = "KAHON"
    INVENTORY = "INVENTORY"
    EXPENSES = "EXPENSES"


KAHON_NAME = "Kahon"
DEFAULT_INVENTORY_NAME = "Default Inventory"
DEFAULT_INVENTORY_SHEET_NAME = "Default Sheet"
DEFAULT_EXPENSES_SHEET_NAME = "Expenses"

# Item rows pre-populate these columns from the referenced item.
QUANTITY_COLUMN = 0
NAME_COLUMN = 1


__all__ = [
    "SackType",
    "SACK_LABELS",
    "TierKind",
    "PaymentMethod",
    "OrderStatus",
    "TransferType",
    "STATISTICS_TRANSFER_TYPES",
    "SheetKind",
    "KAHON_NAME",
    "DEFAULT_INVENTORY_NAME",
    "DEFAULT_INVENTORY_SHEET_NAME",
    "DEFAULT_EXPENSES_SHEET_NAME",
    "QUANTITY_COLUMN",
    "NAME_COLUMN",
]

# Per-kilo weights and line quantities are stored as Numeric(14, 3).
QUANTITY_DECIMAL_PLACES = 3
