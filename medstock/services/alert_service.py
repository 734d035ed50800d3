import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from medstock.core.constants import (
    ALERT_LOW_STOCK,
    ALERT_READ,
    ALERT_STOCK_INCREASED,
    ALERT_UNREAD,
)
from medstock.core.stock_rules import low_stock_message, stock_increased_message
from medstock.database.transaction import run_in_transaction
from medstock.models.alert import Alert
from medstock.services.ledger import require_pharmacy_id

logger = logging.getLogger(__name__)


def record_alert(db: Session, pharmacy_id, medicine, alert_type, message) -> Alert:
    alert = Alert(
        pharmacy_id=pharmacy_id,
        medicine=medicine.name,
        medicine_id=medicine.id,
        alert_type=alert_type,
        message=message,
    )
    db.add(alert)
    return alert


def record_low_stock(db: Session, pharmacy_id, medicine) -> Alert:
    logger.info(
        "Low stock for %s at pharmacy %s (qty=%d)",
        medicine.name,
        pharmacy_id,
        medicine.qty,
        extra={"pharmacy_id": pharmacy_id},
    )
    return record_alert(
        db,
        pharmacy_id,
        medicine,
        ALERT_LOW_STOCK,
        low_stock_message(medicine.name, medicine.qty),
    )


def record_stock_increase(db: Session, pharmacy_id, medicine, delta) -> Alert:
    return record_alert(
        db,
        pharmacy_id,
        medicine,
        ALERT_STOCK_INCREASED,
        stock_increased_message(medicine.name, delta),
    )


def list_alerts(db: Session, pharmacy_id, *, unread_only=False) -> list[Alert]:
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    stmt = select(Alert).where(Alert.pharmacy_id == pharmacy_id)
    if unread_only:
        stmt = stmt.where(Alert.status == ALERT_UNREAD)
    stmt = stmt.order_by(Alert.created_at.desc(), Alert.id.desc())
    return list(db.execute(stmt).scalars().all())


def _mark_alerts_read(db: Session, pharmacy_id) -> int:
    result = db.execute(
        update(Alert)
        .where(Alert.pharmacy_id == pharmacy_id, Alert.status == ALERT_UNREAD)
        .values(status=ALERT_READ)
    )
    return result.rowcount or 0


def mark_alerts_read(db: Session, pharmacy_id) -> int:
    pharmacy_id = require_pharmacy_id(pharmacy_id)
    updated = run_in_transaction(db, _mark_alerts_read, pharmacy_id)
    logger.info("Marked %d alert(s) read for pharmacy %s", updated, pharmacy_id)
    return updated


__all__ = [
    "list_alerts",
    "mark_alerts_read",
    "record_alert",
    "record_low_stock",
    "record_stock_increase",
]
