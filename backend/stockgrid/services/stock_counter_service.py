# Overview: Per-tier stock counters; atomic increment/decrement inside the caller's transaction.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from flask import current_app
from sqlalchemy import update

from ..constants import QUANTITY_DECIMAL_PLACES, TierKind
from ..extensions import db
from ..models import PerKiloPrice, SackPrice
from ..numbers import to_decimal
from .concurrency import lock_for_update
from .errors import InsufficientStockError, NotFoundError, ValidationError
"""
Stock counter invariants (authoritative)

- Stock is a mutable quantity on the tier row (SackPrice.stock is an integer
  count of sacks, PerKiloPrice.stock a decimal weight).
- Only the movement ledger calls increment_stock/decrement_stock, and always
  inside run_in_transaction(); nothing here commits.
- Each mutation is a single UPDATE ... SET stock = stock +/- :qty so two
  concurrent writers serialize on the store's row lock instead of
  overwriting each other's read-modify-write.
- No floor check unless ALLOW_NEGATIVE_STOCK is False; then the UPDATE is
  conditional (stock >= :qty) and a refused decrement raises
  InsufficientStockError.
"""

Quantity = Union[int, Decimal]

_TIER_MODELS = {
    TierKind.SACK: SackPrice,
    TierKind.PER_KILO: PerKiloPrice,
}


@dataclass(frozen=True)
class TierRef:
    """Points at one stock counter: a sack tier or the per-kilo tier."""

    kind: TierKind
    id: int

    @property
    def model(self):
        return _TIER_MODELS[self.kind]

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "id": self.id}


def tier_ref_from_payload(item: dict) -> TierRef:
    """
    Pick the tier a line item references.

    Line items carry exactly one of "sack_price" or "per_kilo_price", each a
    mapping with at least an "id".
    """
    sack = item.get("sack_price")
    per_kilo = item.get("per_kilo_price")
    if bool(sack) == bool(per_kilo):
        raise ValidationError(
            "Line item must reference exactly one of sack_price or per_kilo_price",
            details={"item": item.get("id") or item.get("product_id")},
        )
    chosen, kind = (sack, TierKind.SACK) if sack else (per_kilo, TierKind.PER_KILO)
    tier_id = chosen.get("id") if isinstance(chosen, dict) else None
    if tier_id is None:
        raise ValidationError(f"{kind.value.lower()} tier id is required")
    try:
        return TierRef(kind=kind, id=int(tier_id))
    except (TypeError, ValueError):
        raise ValidationError("Tier id must be an integer", details={"id": tier_id})


def line_quantity(item: dict, ref: TierRef) -> Quantity:
    """Quantity of a payload line, read from its tier mapping or the line itself."""
    key = "sack_price" if ref.kind == TierKind.SACK else "per_kilo_price"
    raw = item[key].get("quantity", item.get("quantity"))
    if raw is None:
        raise ValidationError("quantity is required", details={"tier": ref.to_dict()})
    return coerce_quantity(ref.kind, raw)


def coerce_quantity(kind: TierKind, value: Any, *, field: str = "quantity") -> Quantity:
    """
    Capture a quantity in the numeric type of its tier.

    Sack tiers count whole sacks (int); per-kilo tiers keep the exact decimal
    weight. A fractional sack count is rejected rather than rounded, and so is
    a weight finer than the stored precision, so the counter and the line that
    recorded the movement always hold the same number.
    """
    qty = to_decimal(value, field=field)
    if qty < 0:
        raise ValidationError(f"{field} must not be negative", details={field: str(qty)})
    if kind == TierKind.SACK:
        if qty != qty.to_integral_value():
            raise ValidationError(
                f"{field} must be a whole number of sacks",
                details={field: str(qty)},
            )
        return int(qty)
    if qty.normalize().as_tuple().exponent < -QUANTITY_DECIMAL_PLACES:
        raise ValidationError(
            f"{field} allows at most {QUANTITY_DECIMAL_PLACES} decimal places",
            details={field: str(qty)},
        )
    return qty


def get_tier(ref: TierRef, *, lock: bool = False):
    query = db.session.query(ref.model).filter_by(id=ref.id)
    if lock:
        query = lock_for_update(query)
    tier = query.first()
    if tier is None:
        raise NotFoundError(
            f"{'Sack price' if ref.kind == TierKind.SACK else 'Per-kilo price'} {ref.id} not found",
            details=ref.to_dict(),
        )
    return tier


def _apply_delta(ref: TierRef, qty: Quantity, *, sign: int) -> None:
    model = ref.model
    stmt = update(model).where(model.id == ref.id)
    guarded = sign < 0 and not current_app.config.get("ALLOW_NEGATIVE_STOCK", True)
    if guarded:
        stmt = stmt.where(model.stock >= qty)
    stmt = stmt.values(stock=model.stock + qty if sign > 0 else model.stock - qty)

    result = db.session.execute(stmt)
    if result.rowcount == 0:
        tier = get_tier(ref)  # raises NotFoundError for an unknown id
        raise InsufficientStockError(
            "Insufficient stock",
            details={
                **ref.to_dict(),
                "requested_quantity": str(qty),
                "on_hand": str(tier.stock),
            },
        )


def increment_stock(ref: TierRef, qty: Any) -> Quantity:
    """Add qty to the tier's stock. Returns the captured quantity."""
    amount = coerce_quantity(ref.kind, qty)
    _apply_delta(ref, amount, sign=1)
    current_app.logger.debug("stock +%s on %s %s", amount, ref.kind.value, ref.id)
    return amount


def decrement_stock(ref: TierRef, qty: Any) -> Quantity:
    """Subtract qty from the tier's stock. Returns the captured quantity."""
    amount = coerce_quantity(ref.kind, qty)
    _apply_delta(ref, amount, sign=-1)
    current_app.logger.debug("stock -%s on %s %s", amount, ref.kind.value, ref.id)
    return amount


def tier_ref_for_line(line) -> TierRef:
    """TierRef recorded on a persisted SaleItem/DeliveryItem."""
    if line.sack_price_id is not None:
        return TierRef(kind=TierKind.SACK, id=line.sack_price_id)
    return TierRef(kind=TierKind.PER_KILO, id=line.per_kilo_price_id)


def current_stock(ref: TierRef) -> Quantity:
    tier = get_tier(ref)
    db.session.refresh(tier)
    return tier.stock
