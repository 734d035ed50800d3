import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medstock.core.constants import MSG_SERVER_ERROR
from medstock.core.security import principal_name
from medstock.dependencies import get_db, require_auth
from medstock.schemas.restock import (
    ApproveRequest,
    ApproveResponse,
    RejectRequest,
    RejectResponse,
    RestockListResponse,
)
from medstock.services.restock_service import approve_request, list_requests, reject_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Stock"])


@router.get("/stockrequests", response_model=RestockListResponse)
def get_stock_requests(
    pharmacy_id: Optional[str] = Query(None, alias="pharmacyId"),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    try:
        requests = list_requests(db, pharmacy_id=pharmacy_id, status=status)
    except SQLAlchemyError as exc:
        logger.error("Failed to list restock requests: %s", exc, exc_info=exc)
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR) from exc
    return {"success": True, "requests": requests}


@router.post("/stockrequests/approve", response_model=ApproveResponse)
def approve_stock_request(
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    auth=Depends(require_auth),
):
    try:
        request, ledger = approve_request(
            db,
            payload.request_id,
            approved_qty=payload.approved_qty,
            processed_by=payload.processed_by or principal_name(auth),
            notes=payload.notes,
        )
    except SQLAlchemyError as exc:
        logger.error("Failed to approve request %s: %s", payload.request_id, exc, exc_info=exc)
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR) from exc
    return {"success": True, "request": request, "stock": ledger.medicines}


@router.post("/stockrequests/reject", response_model=RejectResponse)
def reject_stock_request(
    payload: RejectRequest,
    db: Session = Depends(get_db),
    auth=Depends(require_auth),
):
    try:
        request = reject_request(
            db,
            payload.request_id,
            processed_by=payload.processed_by or principal_name(auth),
            notes=payload.notes,
        )
    except SQLAlchemyError as exc:
        logger.error("Failed to reject request %s: %s", payload.request_id, exc, exc_info=exc)
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR) from exc
    return {"success": True, "request": request}


__all__ = ["router"]
