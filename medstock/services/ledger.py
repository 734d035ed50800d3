from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from medstock.core.constants import MAX_QUANTITY, MSG_STOCK_NOT_FOUND
from medstock.core.exceptions import NotFoundError, StockValidationError
from medstock.core.stock_rules import coerce_quantity
from medstock.models.stock import StockLedger, StockMedicine


def require_pharmacy_id(pharmacy_id) -> str:
    value = str(pharmacy_id).strip() if pharmacy_id is not None else ""
    if not value:
        raise StockValidationError("pharmacyId is required")
    return value


def get_ledger(db: Session, pharmacy_id: str, *, for_update: bool = False) -> StockLedger | None:
    stmt = select(StockLedger).where(StockLedger.pharmacy_id == pharmacy_id)
    if for_update:
        # Serializes read-modify-write cycles per pharmacy (no-op on SQLite).
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalars().first()


def require_ledger(db: Session, pharmacy_id: str, *, for_update: bool = False) -> StockLedger:
    ledger = get_ledger(db, pharmacy_id, for_update=for_update)
    if ledger is None:
        raise NotFoundError(MSG_STOCK_NOT_FOUND)
    return ledger


def get_or_create_ledger(db: Session, pharmacy_id: str, *, for_update: bool = False) -> StockLedger:
    ledger = get_ledger(db, pharmacy_id, for_update=for_update)
    if ledger is None:
        ledger = StockLedger(pharmacy_id=pharmacy_id)
        db.add(ledger)
        db.flush()
    return ledger


def normalize_entries(medicines) -> list[tuple[str, int]]:
    """Turn ``[{name, qty}]`` (dicts or objects) into ``(name, qty)`` pairs.

    Entries without a usable name are dropped.
    """
    entries = []
    for item in medicines or []:
        if isinstance(item, dict):
            name = item.get("name")
            qty = item.get("qty")
        else:
            name = getattr(item, "name", None)
            qty = getattr(item, "qty", None)
        name = str(name).strip() if name is not None else ""
        if not name:
            continue
        entries.append((name, coerce_quantity(qty)))
    return entries


def set_quantity(ledger: StockLedger, name: str, qty: int) -> StockMedicine:
    medicine = ledger.find_medicine(name)
    if medicine is None:
        medicine = StockMedicine(name=name, qty=qty)
        ledger.medicines.append(medicine)
    else:
        medicine.qty = qty
    return medicine


def add_quantity(ledger: StockLedger, name: str, delta: int) -> StockMedicine:
    medicine = ledger.find_medicine(name)
    current = medicine.qty if medicine is not None else 0
    if current + delta > MAX_QUANTITY:
        raise StockValidationError(f"{name} stock would exceed {MAX_QUANTITY}")
    if medicine is None:
        medicine = StockMedicine(name=name, qty=delta)
        ledger.medicines.append(medicine)
    else:
        medicine.qty = max(0, current + delta)
    return medicine


def subtract_quantity(ledger: StockLedger, name: str, delta: int) -> StockMedicine | None:
    medicine = ledger.find_medicine(name)
    if medicine is None:
        return None
    medicine.qty = max(0, medicine.qty - delta)
    return medicine


def touch(ledger: StockLedger) -> None:
    # Child-row edits do not fire the parent's onupdate.
    ledger.updated_at = datetime.now(timezone.utc)


__all__ = [
    "add_quantity",
    "get_ledger",
    "get_or_create_ledger",
    "normalize_entries",
    "require_ledger",
    "require_pharmacy_id",
    "set_quantity",
    "subtract_quantity",
    "touch",
]
