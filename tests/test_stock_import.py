from pathlib import Path
import tempfile
import unittest

from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medstock.core.exceptions import StockValidationError
from medstock.database.base import Base
from medstock.services.stock_import import (
    import_stock_workbook,
    load_stock_rows,
    normalize_header,
    read_stock_workbook,
    rows_to_stock_map,
    validate_columns,
)
from medstock.services.stock_service import read_stock


def _stock_workbook():
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Stock"
    worksheet.append(["Medicine Name", "On Hand"])
    worksheet.append(["Paracetamol", 15])
    worksheet.append(["Ibuprofen", "n/a"])
    worksheet.append([None, None])
    worksheet.append(["Amoxicillin", "8"])
    worksheet.append(["Total", 23])
    return workbook


class StockImportTest(unittest.TestCase):
    def test_header_aliases(self):
        self.assertEqual(normalize_header("Medicine Name"), "name")
        self.assertEqual(normalize_header("On-Hand"), "qty")
        self.assertEqual(normalize_header("Quantity"), "qty")
        self.assertEqual(normalize_header("Batch No."), "batch_no")

    def test_load_stock_rows(self):
        rows, columns = load_stock_rows(_stock_workbook().active)
        self.assertEqual(columns, {"name", "qty"})
        self.assertEqual([row["name"] for row in rows], ["Paracetamol", "Ibuprofen", "Amoxicillin"])
        self.assertEqual(
            rows_to_stock_map(rows),
            {"Paracetamol": 15, "Ibuprofen": 0, "Amoxicillin": 8},
        )

    def test_missing_columns(self):
        workbook = Workbook()
        workbook.active.append(["Medicine", "Batch"])
        _rows, columns = load_stock_rows(workbook.active)
        with self.assertRaises(StockValidationError) as ctx:
            validate_columns(columns)
        self.assertIn("qty", str(ctx.exception))

    def test_rejects_missing_file_and_wrong_suffix(self):
        with self.assertRaises(StockValidationError):
            read_stock_workbook("does-not-exist.xlsx")
        with tempfile.TemporaryDirectory() as tmp_dir:
            csv_path = Path(tmp_dir) / "stock.csv"
            csv_path.write_text("name,qty\n")
            with self.assertRaises(StockValidationError):
                read_stock_workbook(csv_path)

    def test_import_sets_stock(self):
        engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        db = sessionmaker(bind=engine, expire_on_commit=False)()

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "stock.xlsx"
            _stock_workbook().save(path)

            stock_map, ledger = import_stock_workbook(db, "P1", path, dry_run=True)
            self.assertIsNone(ledger)
            self.assertEqual(len(stock_map), 3)
            self.assertEqual(read_stock(db, "P1"), [])

            with self.assertRaises(StockValidationError):
                import_stock_workbook(db, "P1", path, sheet="Missing")

            _stock_map, ledger = import_stock_workbook(db, "P1", path, sheet="Stock")
            self.assertEqual(
                {medicine.name: medicine.qty for medicine in ledger.medicines},
                {"Paracetamol": 15, "Ibuprofen": 0, "Amoxicillin": 8},
            )
        db.close()


if __name__ == "__main__":
    unittest.main()
