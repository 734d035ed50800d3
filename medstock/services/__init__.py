from medstock.services.alert_service import list_alerts, mark_alerts_read
from medstock.services.restock_service import approve_request, list_requests, reject_request
from medstock.services.stock_import import import_stock_workbook
from medstock.services.stock_service import (
    bulk_set_stock,
    increase_stock,
    initialize_stock,
    read_policy,
    read_stock,
    reduce_stock,
    update_policy,
)

__all__ = [
    "approve_request",
    "bulk_set_stock",
    "import_stock_workbook",
    "increase_stock",
    "initialize_stock",
    "list_alerts",
    "list_requests",
    "mark_alerts_read",
    "read_policy",
    "read_stock",
    "reduce_stock",
    "reject_request",
    "update_policy",
]
