"""Restock request queue and its admin adjudication.

A request is opened automatically when a stock mutation leaves a medicine at
or below the pharmacy's low-stock threshold. An administrator then either
approves it (the approved amount is added to the ledger) or rejects it. Both
outcomes are terminal.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from medstock.core.constants import (
    MSG_REQUEST_NOT_FOUND,
    REQUEST_APPROVED,
    REQUEST_REJECTED,
    REQUEST_REQUESTED,
    REQUEST_STATUSES,
)
from medstock.core.exceptions import ConflictError, NotFoundError, StockValidationError
from medstock.core.stock_rules import resolve_approved_qty
from medstock.database.transaction import run_in_transaction
from medstock.models.restock_request import RestockRequest
from medstock.services.ledger import add_quantity, get_or_create_ledger, touch

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def find_open_request(db: Session, pharmacy_id, medicine_name) -> RestockRequest | None:
    stmt = (
        select(RestockRequest)
        .where(
            RestockRequest.pharmacy_id == pharmacy_id,
            RestockRequest.medicine == medicine_name,
            RestockRequest.status == REQUEST_REQUESTED,
        )
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def open_request_if_absent(db: Session, pharmacy_id, medicine, requested_qty) -> RestockRequest | None:
    """Queue a restock request unless one is already open for this medicine.

    The flush surfaces a unique-index violation right away when another
    writer opened the same request concurrently.
    """
    if find_open_request(db, pharmacy_id, medicine.name) is not None:
        return None
    request = RestockRequest(
        pharmacy_id=pharmacy_id,
        medicine=medicine.name,
        medicine_id=medicine.id,
        requested_qty=requested_qty,
        status=REQUEST_REQUESTED,
    )
    db.add(request)
    db.flush()
    logger.info(
        "Opened restock request %s for %s at pharmacy %s (qty=%d)",
        request.id,
        medicine.name,
        pharmacy_id,
        requested_qty,
        extra={"pharmacy_id": pharmacy_id},
    )
    return request


def list_requests(db: Session, pharmacy_id=None, status=None) -> list[RestockRequest]:
    stmt = select(RestockRequest)
    if pharmacy_id:
        stmt = stmt.where(RestockRequest.pharmacy_id == pharmacy_id)
    if status:
        if status not in REQUEST_STATUSES:
            raise StockValidationError(
                "status must be one of: {}".format(", ".join(REQUEST_STATUSES))
            )
        stmt = stmt.where(RestockRequest.status == status)
    stmt = stmt.order_by(RestockRequest.created_at.desc(), RestockRequest.id.desc())
    return list(db.execute(stmt).scalars().all())


def _load_pending(db: Session, request_id) -> RestockRequest:
    request = db.get(RestockRequest, request_id) if request_id is not None else None
    if request is None:
        raise NotFoundError(MSG_REQUEST_NOT_FOUND)
    if request.status != REQUEST_REQUESTED:
        raise ConflictError()
    return request


def _close_request(db: Session, request, status, *, processed_by, notes, approved_qty=None) -> None:
    # Conditional on the status so two admins cannot both close the same request.
    values = dict(
        status=status,
        processed_at=utc_now(),
        processed_by=processed_by,
        notes=notes or "",
    )
    if approved_qty is not None:
        values["approved_qty"] = approved_qty
    result = db.execute(
        update(RestockRequest)
        .where(
            RestockRequest.id == request.id,
            RestockRequest.status == REQUEST_REQUESTED,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError()
    db.refresh(request)


def _approve(db: Session, request_id, approved_qty, processed_by, notes):
    request = _load_pending(db, request_id)
    amount = resolve_approved_qty(approved_qty, request.requested_qty)

    _close_request(
        db,
        request,
        REQUEST_APPROVED,
        processed_by=processed_by,
        notes=notes,
        approved_qty=amount,
    )

    ledger = get_or_create_ledger(db, request.pharmacy_id, for_update=True)
    medicine = add_quantity(ledger, request.medicine, amount)
    touch(ledger)
    db.flush()
    if request.medicine_id is None:
        request.medicine_id = medicine.id
    return request, ledger


def approve_request(db: Session, request_id, approved_qty=None, processed_by=None, notes=None):
    request, ledger = run_in_transaction(db, _approve, request_id, approved_qty, processed_by, notes)
    logger.info(
        "Approved restock request %s: %s +%d at pharmacy %s (by %s)",
        request.id,
        request.medicine,
        request.approved_qty,
        request.pharmacy_id,
        processed_by or "unknown",
        extra={"pharmacy_id": request.pharmacy_id},
    )
    return request, ledger


def _reject(db: Session, request_id, processed_by, notes):
    request = _load_pending(db, request_id)
    _close_request(db, request, REQUEST_REJECTED, processed_by=processed_by, notes=notes)
    return request


def reject_request(db: Session, request_id, processed_by=None, notes=None) -> RestockRequest:
    request = run_in_transaction(db, _reject, request_id, processed_by, notes)
    logger.info(
        "Rejected restock request %s for %s at pharmacy %s (by %s)",
        request.id,
        request.medicine,
        request.pharmacy_id,
        processed_by or "unknown",
        extra={"pharmacy_id": request.pharmacy_id},
    )
    return request


__all__ = [
    "approve_request",
    "find_open_request",
    "list_requests",
    "open_request_if_absent",
    "reject_request",
]
