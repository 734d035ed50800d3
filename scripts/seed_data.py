import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import delete

from medstock.core.logging import setup_logging
from medstock.database.session import session_scope
from medstock.main import init_schema
from medstock.models import Alert, RestockRequest, StockLedger, StockMedicine
from medstock.services.stock_service import initialize_stock, reduce_stock

SAMPLE_PHARMACY_ID = "P1"
SAMPLE_MEDICINES = [
    {"name": "Paracetamol", "qty": 15},
    {"name": "Ibuprofen", "qty": 40},
    {"name": "Amoxicillin", "qty": 25},
    {"name": "Cetirizine", "qty": 12},
]


def parse_args():
    parser = argparse.ArgumentParser(description="Seed a sample pharmacy stock ledger.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing stock, alerts and restock requests before seeding.",
    )
    parser.add_argument(
        "--pharmacy-id",
        default=SAMPLE_PHARMACY_ID,
        help="Pharmacy identifier to seed (default: %(default)s).",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    init_schema()

    with session_scope() as db:
        if args.reset:
            db.execute(delete(Alert))
            db.execute(delete(RestockRequest))
            db.execute(delete(StockMedicine))
            db.execute(delete(StockLedger))
            db.commit()

        created, _ledger = initialize_stock(db, args.pharmacy_id, SAMPLE_MEDICINES)
        if not created:
            print(f"Seed skipped: pharmacy {args.pharmacy_id} already has stock.")
            return

        # One dispense that crosses the low-stock threshold, so the admin queue is not empty.
        reduce_stock(db, args.pharmacy_id, [{"name": "Paracetamol", "qty": 6}])
        print(f"Seed data created for pharmacy {args.pharmacy_id}.")


if __name__ == "__main__":
    main()
