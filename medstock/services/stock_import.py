import logging
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.orm import Session

from medstock.core.exceptions import StockValidationError
from medstock.core.stock_rules import coerce_quantity
from medstock.services.ledger import require_pharmacy_id
from medstock.services.stock_service import bulk_set_stock

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    "name": "name",
    "medicine": "name",
    "medicine_name": "name",
    "medicinename": "name",
    "item": "name",
    "item_name": "name",
    "drug": "name",
    "drug_name": "name",
    "qty": "qty",
    "quantity": "qty",
    "stock": "qty",
    "stock_qty": "qty",
    "units": "qty",
    "on_hand": "qty",
    "onhand": "qty",
    "current_stock": "qty",
}
REQUIRED_COLUMNS = {"name", "qty"}

_PLACEHOLDER_VALUES = {"none", "[none]", "null", "[null]", "na", "n/a", "nan", "-", "--"}


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_text(value):
    if _is_blank(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.lower() in _PLACEHOLDER_VALUES:
        return None
    return text


def _is_summary_value(value):
    if isinstance(value, str):
        value_text = value.strip().lower()
        if value_text and "total" in value_text:
            return True
    return False


def normalize_header(value):
    if value is None:
        return ""
    value_text = str(value).strip().lower()
    if not value_text:
        return ""
    for char in (" ", "-", ".", "/"):
        value_text = value_text.replace(char, "_")
    value_text = "_".join(part for part in value_text.split("_") if part)
    alias = HEADER_ALIASES.get(value_text)
    if alias:
        return alias
    alias = HEADER_ALIASES.get(value_text.replace("_", ""))
    if alias:
        return alias
    return value_text


def load_stock_rows(worksheet):
    """Read ``{name, qty}`` records from a sheet whose first row is the header."""
    rows_iter = worksheet.iter_rows(values_only=True)
    headers = next(rows_iter, None)
    if not headers:
        return [], set()
    header_keys = [normalize_header(header) for header in headers]
    columns = {key for key in header_keys if key}
    name_idx = header_keys.index("name") if "name" in header_keys else None
    qty_idx = header_keys.index("qty") if "qty" in header_keys else None
    if name_idx is None or qty_idx is None:
        return [], columns

    rows = []
    for row in rows_iter:
        if row is None or all(_is_blank(value) for value in row):
            continue
        name = _clean_text(row[name_idx]) if name_idx < len(row) else None
        if name is None or _is_summary_value(name):
            continue
        if normalize_header(name) == "name":
            # repeated header row
            continue
        qty = row[qty_idx] if qty_idx < len(row) else None
        rows.append({"name": name, "qty": qty})
    return rows, columns


def validate_columns(columns):
    missing = sorted(REQUIRED_COLUMNS - columns)
    if missing:
        raise StockValidationError(
            "stock sheet missing columns: {}".format(", ".join(missing))
        )


def rows_to_stock_map(rows):
    # Later rows win, matching a plain dict update.
    stock_map = {}
    for row in rows:
        stock_map[row["name"]] = coerce_quantity(row["qty"])
    return stock_map


def read_stock_workbook(workbook_path, sheet=None):
    workbook_path = Path(workbook_path)
    if not workbook_path.exists():
        raise StockValidationError(f"File not found: {workbook_path}")
    if workbook_path.suffix.lower() != ".xlsx":
        raise StockValidationError("Only .xlsx files are supported.")

    try:
        workbook = load_workbook(workbook_path, read_only=True, data_only=True)
    except (OSError, InvalidFileException) as exc:
        raise StockValidationError(f"Unable to read workbook: {exc}") from exc

    try:
        if sheet:
            if sheet not in workbook.sheetnames:
                raise StockValidationError(f"Sheet not found: {sheet}")
            worksheet = workbook[sheet]
        else:
            worksheet = workbook[workbook.sheetnames[0]]
        rows, columns = load_stock_rows(worksheet)
    finally:
        workbook.close()

    validate_columns(columns)
    return rows_to_stock_map(rows)


def import_stock_workbook(db: Session, pharmacy_id, workbook_path, *, sheet=None, dry_run=False):
    """Load a stock sheet and apply it as absolute quantities.

    Returns ``(stock_map, ledger)``; ``ledger`` is ``None`` on a dry run.
    """
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    stock_map = read_stock_workbook(workbook_path, sheet=sheet)
    logger.info(
        "Read %d stock row(s) from %s for pharmacy %s%s",
        len(stock_map),
        workbook_path,
        pharmacy_id,
        " (dry run)" if dry_run else "",
    )
    if dry_run:
        return stock_map, None
    ledger = bulk_set_stock(db, pharmacy_id, stock_map)
    return stock_map, ledger


__all__ = [
    "import_stock_workbook",
    "load_stock_rows",
    "normalize_header",
    "read_stock_workbook",
    "rows_to_stock_map",
]
