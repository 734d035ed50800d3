from datetime import datetime
from typing import Any, List, Optional

from pydantic import ConfigDict, Field

from medstock.schemas.common import CamelModel
from medstock.schemas.stock import MedicineRead


class RestockRequestRead(CamelModel):
    id: int
    pharmacy_id: str
    medicine: str
    medicine_id: Optional[int]
    requested_qty: int
    approved_qty: Optional[int]
    status: str
    created_at: datetime
    processed_at: Optional[datetime]
    processed_by: Optional[str]
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class RestockListResponse(CamelModel):
    success: bool = True
    requests: List[RestockRequestRead] = Field(default_factory=list)


class ApproveRequest(CamelModel):
    request_id: int
    approved_qty: Any = None
    processed_by: Optional[str] = None
    notes: Optional[str] = None


class RejectRequest(CamelModel):
    request_id: int
    processed_by: Optional[str] = None
    notes: Optional[str] = None


class ApproveResponse(CamelModel):
    success: bool = True
    message: str = "Request approved"
    request: RestockRequestRead
    stock: List[MedicineRead] = Field(default_factory=list)


class RejectResponse(CamelModel):
    success: bool = True
    message: str = "Request rejected"
    request: RestockRequestRead
