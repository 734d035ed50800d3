import math
from dataclasses import dataclass
from typing import Optional

from medstock.config import get_settings
from medstock.core.constants import MAX_QUANTITY
from medstock.core.exceptions import StockValidationError


@dataclass(frozen=True)
class StockPolicy:
    low_stock_threshold: int
    default_restock_qty: int

    def is_low(self, qty: int) -> bool:
        return qty <= self.low_stock_threshold


def default_policy() -> StockPolicy:
    settings = get_settings()
    return StockPolicy(
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
        default_restock_qty=settings.DEFAULT_RESTOCK_QTY,
    )


def resolve_policy(ledger=None, base: Optional[StockPolicy] = None) -> StockPolicy:
    """Per-pharmacy overrides on the ledger win over the configured defaults."""
    policy = base or default_policy()
    if ledger is None:
        return policy
    threshold = policy.low_stock_threshold
    restock_qty = policy.default_restock_qty
    if ledger.low_stock_threshold is not None:
        threshold = ledger.low_stock_threshold
    if ledger.default_restock_qty is not None:
        restock_qty = ledger.default_restock_qty
    return StockPolicy(low_stock_threshold=threshold, default_restock_qty=restock_qty)


def coerce_quantity(value) -> int:
    """Lenient quantity parsing: anything non-numeric becomes 0, negatives clamp to 0.

    Quantities too large to store are rejected rather than clamped.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    except OverflowError as exc:
        raise StockValidationError(f"qty must not exceed {MAX_QUANTITY}") from exc
    if math.isnan(number) or math.isinf(number):
        return 0
    if number > MAX_QUANTITY:
        raise StockValidationError(f"qty must not exceed {MAX_QUANTITY}")
    return max(0, int(number))


def resolve_approved_qty(approved_qty, requested_qty) -> int:
    amount = coerce_quantity(approved_qty)
    if amount > 0:
        return amount
    return coerce_quantity(requested_qty)


def low_stock_message(name: str, qty: int) -> str:
    return "Low stock alert: {} only {} left".format(name, qty)


def stock_increased_message(name: str, qty: int) -> str:
    return "Stock increased: {} +{}".format(name, qty)


__all__ = [
    "StockPolicy",
    "coerce_quantity",
    "default_policy",
    "low_stock_message",
    "resolve_approved_qty",
    "resolve_policy",
    "stock_increased_message",
]
