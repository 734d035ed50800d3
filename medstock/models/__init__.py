import importlib

from medstock.models.alert import Alert
from medstock.models.restock_request import RestockRequest
from medstock.models.stock import StockLedger, StockMedicine


def import_all_models() -> None:
    for module_name in (
        "medstock.models.alert",
        "medstock.models.restock_request",
        "medstock.models.stock",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Alert",
    "RestockRequest",
    "StockLedger",
    "StockMedicine",
    "import_all_models",
]
