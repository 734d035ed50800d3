import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy.exc import SQLAlchemyError

from medstock.core.exceptions import StockError
from medstock.core.logging import setup_logging
from medstock.database.session import session_scope
from medstock.main import init_schema
from medstock.services.stock_import import import_stock_workbook


def parse_args():
    parser = argparse.ArgumentParser(
        description="Set a pharmacy's stock levels from an Excel stock sheet."
    )
    parser.add_argument("--pharmacy-id", required=True, help="Pharmacy identifier.")
    parser.add_argument("--path", required=True, help="Path to .xlsx workbook.")
    parser.add_argument("--sheet", default=None, help="Sheet to read. Default: first sheet.")
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving.")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    init_schema()
    with session_scope() as db:
        try:
            stock_map, ledger = import_stock_workbook(
                db,
                args.pharmacy_id,
                args.path,
                sheet=args.sheet,
                dry_run=args.dry_run,
            )
        except (StockError, SQLAlchemyError) as exc:
            raise SystemExit(f"Import failed: {exc}") from exc

        for name, qty in stock_map.items():
            print(f"  {name}: {qty}")

        if ledger is None:
            print("Dry run complete, no changes committed.")
            return
        print(
            f"Import complete: {len(stock_map)} row(s) applied, "
            f"{len(ledger.medicines)} medicine(s) on file for pharmacy {ledger.pharmacy_id}."
        )


if __name__ == "__main__":
    main()
