"""Pharmacy stock mutations.

Every public function here is one database transaction: the ledger change,
the alerts it raises and any restock requests it opens are committed
together or not at all.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from medstock.core.constants import MAX_QUANTITY
from medstock.core.exceptions import StockValidationError
from medstock.core.stock_rules import StockPolicy, coerce_quantity, resolve_policy
from medstock.database.transaction import run_in_transaction
from medstock.models.stock import StockLedger
from medstock.services.alert_service import record_low_stock, record_stock_increase
from medstock.services.ledger import (
    add_quantity,
    get_ledger,
    get_or_create_ledger,
    normalize_entries,
    require_ledger,
    require_pharmacy_id,
    set_quantity,
    subtract_quantity,
    touch,
)
from medstock.services.restock_service import open_request_if_absent

logger = logging.getLogger(__name__)


def _optional_setting(value, field) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_QUANTITY:
        raise StockValidationError(f"{field} must be an integer between 0 and {MAX_QUANTITY}")
    return value


def _handle_low_stock(db: Session, ledger: StockLedger, medicines, policy: StockPolicy) -> dict:
    """Alert and queue a restock request for each medicine at or under the threshold."""
    counts = {"alerts": 0, "requests": 0}
    for medicine in medicines:
        if not policy.is_low(medicine.qty):
            continue
        record_low_stock(db, ledger.pharmacy_id, medicine)
        counts["alerts"] += 1
        if open_request_if_absent(db, ledger.pharmacy_id, medicine, policy.default_restock_qty):
            counts["requests"] += 1
    return counts


def _initialize(db: Session, pharmacy_id, medicines, low_stock_threshold, default_restock_qty):
    existing = get_ledger(db, pharmacy_id)
    if existing is not None:
        return False, existing

    ledger = StockLedger(
        pharmacy_id=pharmacy_id,
        low_stock_threshold=low_stock_threshold,
        default_restock_qty=default_restock_qty,
    )
    db.add(ledger)
    for name, qty in normalize_entries(medicines):
        set_quantity(ledger, name, qty)
    db.flush()
    return True, ledger


def initialize_stock(
    db: Session,
    pharmacy_id,
    medicines=None,
    *,
    low_stock_threshold: Optional[int] = None,
    default_restock_qty: Optional[int] = None,
) -> tuple[bool, StockLedger]:
    """Create the pharmacy's ledger once; later calls leave it untouched.

    Returns ``(created, ledger)``.
    """
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    low_stock_threshold = _optional_setting(low_stock_threshold, "lowStockThreshold")
    default_restock_qty = _optional_setting(default_restock_qty, "defaultRestockQty")
    created, ledger = run_in_transaction(
        db,
        _initialize,
        pharmacy_id,
        medicines,
        low_stock_threshold,
        default_restock_qty,
    )
    if created:
        logger.info(
            "Initialized stock for pharmacy %s with %d medicine(s)",
            pharmacy_id,
            len(ledger.medicines),
            extra={"pharmacy_id": pharmacy_id},
        )
    else:
        logger.info("Stock for pharmacy %s already initialized", pharmacy_id)
    return created, ledger


def read_stock(db: Session, pharmacy_id) -> list:
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    ledger = get_ledger(db, pharmacy_id)
    if ledger is None:
        return []
    return list(ledger.medicines)


def _bulk_set(db: Session, pharmacy_id, stock_map, policy):
    ledger = get_or_create_ledger(db, pharmacy_id, for_update=True)
    touched = []
    for name, qty in stock_map.items():
        medicine = set_quantity(ledger, name, qty)
        if medicine not in touched:
            touched.append(medicine)
    touch(ledger)
    db.flush()
    counts = _handle_low_stock(db, ledger, touched, resolve_policy(ledger, policy))
    return ledger, counts


def bulk_set_stock(db: Session, pharmacy_id, stock, *, policy: Optional[StockPolicy] = None) -> StockLedger:
    """Overwrite quantities with absolute values (not deltas).

    ``stock`` maps medicine name to the desired quantity. Values that are not
    numbers count as 0. The ledger is created when the pharmacy has none.
    """
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    if stock is None:
        raise StockValidationError("stock is required")
    stock_map = {}
    for name, qty in stock.items():
        name = str(name).strip()
        if name:
            stock_map[name] = coerce_quantity(qty)

    ledger, counts = run_in_transaction(db, _bulk_set, pharmacy_id, stock_map, policy)
    logger.info(
        "Set %d stock level(s) for pharmacy %s (%d low-stock alert(s), %d new request(s))",
        len(stock_map),
        pharmacy_id,
        counts["alerts"],
        counts["requests"],
        extra={"pharmacy_id": pharmacy_id},
    )
    return ledger


def _reduce(db: Session, pharmacy_id, entries, policy):
    ledger = require_ledger(db, pharmacy_id, for_update=True)
    touched = []
    for name, delta in entries:
        medicine = subtract_quantity(ledger, name, delta)
        if medicine is None:
            continue
        if medicine not in touched:
            touched.append(medicine)
    touch(ledger)
    db.flush()
    counts = _handle_low_stock(db, ledger, touched, resolve_policy(ledger, policy))
    return ledger, counts


def reduce_stock(db: Session, pharmacy_id, medicines, *, policy: Optional[StockPolicy] = None) -> StockLedger:
    """Subtract dispensed quantities, never going below zero.

    Medicines the pharmacy does not stock are ignored.
    """
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    entries = normalize_entries(medicines)
    ledger, counts = run_in_transaction(db, _reduce, pharmacy_id, entries, policy)
    logger.info(
        "Reduced %d stock line(s) for pharmacy %s (%d low-stock alert(s), %d new request(s))",
        len(entries),
        pharmacy_id,
        counts["alerts"],
        counts["requests"],
        extra={"pharmacy_id": pharmacy_id},
    )
    return ledger


def _increase(db: Session, pharmacy_id, entries):
    ledger = require_ledger(db, pharmacy_id, for_update=True)
    changes = []
    for name, delta in entries:
        changes.append((add_quantity(ledger, name, delta), delta))
    touch(ledger)
    db.flush()
    # Informational: raised on every increase, whatever the resulting level.
    for medicine, delta in changes:
        record_stock_increase(db, pharmacy_id, medicine, delta)
    return ledger


def increase_stock(db: Session, pharmacy_id, medicines) -> StockLedger:
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    entries = normalize_entries(medicines)
    ledger = run_in_transaction(db, _increase, pharmacy_id, entries)
    logger.info(
        "Increased %d stock line(s) for pharmacy %s",
        len(entries),
        pharmacy_id,
        extra={"pharmacy_id": pharmacy_id},
    )
    return ledger


def _update_policy(db: Session, pharmacy_id, low_stock_threshold, default_restock_qty):
    ledger = require_ledger(db, pharmacy_id, for_update=True)
    ledger.low_stock_threshold = low_stock_threshold
    ledger.default_restock_qty = default_restock_qty
    db.flush()
    return ledger


def update_policy(
    db: Session,
    pharmacy_id,
    *,
    low_stock_threshold: Optional[int] = None,
    default_restock_qty: Optional[int] = None,
) -> StockPolicy:
    """Set per-pharmacy overrides; ``None`` falls back to the configured default."""
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    low_stock_threshold = _optional_setting(low_stock_threshold, "lowStockThreshold")
    default_restock_qty = _optional_setting(default_restock_qty, "defaultRestockQty")
    ledger = run_in_transaction(db, _update_policy, pharmacy_id, low_stock_threshold, default_restock_qty)
    policy = resolve_policy(ledger)
    logger.info(
        "Stock policy for pharmacy %s: threshold=%d, restock qty=%d",
        pharmacy_id,
        policy.low_stock_threshold,
        policy.default_restock_qty,
        extra={"pharmacy_id": pharmacy_id},
    )
    return policy


def read_policy(db: Session, pharmacy_id) -> StockPolicy:
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    return resolve_policy(require_ledger(db, pharmacy_id))


__all__ = [
    "bulk_set_stock",
    "increase_stock",
    "initialize_stock",
    "read_policy",
    "read_stock",
    "reduce_stock",
    "update_policy",
]
