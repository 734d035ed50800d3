import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medstock.core.constants import MSG_ALREADY_INITIALIZED, MSG_SERVER_ERROR
from medstock.dependencies import get_db
from medstock.schemas.alert import AlertListResponse, AlertsReadResponse
from medstock.schemas.stock import (
    PolicyResponse,
    PolicyUpdateRequest,
    StockAdjustRequest,
    StockInitRequest,
    StockResponse,
    StockUpdateRequest,
)
from medstock.services.alert_service import list_alerts, mark_alerts_read
from medstock.services.stock_service import (
    bulk_set_stock,
    increase_stock,
    initialize_stock,
    read_policy,
    read_stock,
    reduce_stock,
    update_policy,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pharmacy", tags=["Pharmacy Stock"])


def _server_error(exc: SQLAlchemyError) -> HTTPException:
    logger.error("Database error: %s", exc, exc_info=exc)
    return HTTPException(status_code=500, detail=MSG_SERVER_ERROR)


@router.post("/init/{pharmacy_id}", response_model=StockResponse, response_model_exclude_none=True)
def init_stock(
    pharmacy_id: str,
    payload: Optional[StockInitRequest] = Body(None),
    db: Session = Depends(get_db),
):
    payload = payload or StockInitRequest()
    try:
        created, ledger = initialize_stock(
            db,
            pharmacy_id,
            payload.medicines,
            low_stock_threshold=payload.low_stock_threshold,
            default_restock_qty=payload.default_restock_qty,
        )
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    if not created:
        return {"success": False, "message": MSG_ALREADY_INITIALIZED, "stock": []}
    return {"success": True, "message": "Stock initialized", "stock": ledger.medicines}


@router.get("/stock/{pharmacy_id}", response_model=StockResponse, response_model_exclude_none=True)
def get_stock(pharmacy_id: str, db: Session = Depends(get_db)):
    try:
        medicines = read_stock(db, pharmacy_id)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "stock": medicines}


@router.post("/updatestock", response_model=StockResponse, response_model_exclude_none=True)
def update_stock(payload: StockUpdateRequest, db: Session = Depends(get_db)):
    try:
        ledger = bulk_set_stock(db, payload.pharmacy_id, payload.stock)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "message": "Stock updated", "stock": ledger.medicines}


@router.post("/reduce", response_model=StockResponse, response_model_exclude_none=True)
def reduce(payload: StockAdjustRequest, db: Session = Depends(get_db)):
    try:
        ledger = reduce_stock(db, payload.pharmacy_id, payload.medicines)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "message": "Stock reduced", "stock": ledger.medicines}


@router.post("/increase", response_model=StockResponse, response_model_exclude_none=True)
def increase(payload: StockAdjustRequest, db: Session = Depends(get_db)):
    try:
        ledger = increase_stock(db, payload.pharmacy_id, payload.medicines)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "message": "Stock increased", "stock": ledger.medicines}


@router.get("/alerts/{pharmacy_id}", response_model=AlertListResponse)
def get_alerts(
    pharmacy_id: str,
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(get_db),
):
    try:
        alerts = list_alerts(db, pharmacy_id, unread_only=unread_only)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "alerts": alerts}


@router.post("/alerts/{pharmacy_id}/read", response_model=AlertsReadResponse)
def read_alerts(pharmacy_id: str, db: Session = Depends(get_db)):
    try:
        updated = mark_alerts_read(db, pharmacy_id)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "updated": updated}


@router.put("/policy/{pharmacy_id}", response_model=PolicyResponse)
def put_policy(pharmacy_id: str, payload: PolicyUpdateRequest, db: Session = Depends(get_db)):
    try:
        policy = update_policy(
            db,
            pharmacy_id,
            low_stock_threshold=payload.low_stock_threshold,
            default_restock_qty=payload.default_restock_qty,
        )
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "policy": policy}


@router.get("/policy/{pharmacy_id}", response_model=PolicyResponse)
def get_policy(pharmacy_id: str, db: Session = Depends(get_db)):
    try:
        policy = read_policy(db, pharmacy_id)
    except SQLAlchemyError as exc:
        raise _server_error(exc) from exc
    return {"success": True, "policy": policy}


__all__ = ["router"]
