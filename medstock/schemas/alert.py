from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from medstock.schemas.common import CamelModel


class AlertRead(CamelModel):
    id: int
    pharmacy_id: str
    medicine: str
    medicine_id: Optional[int]
    alert_type: str
    message: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertListResponse(CamelModel):
    success: bool = True
    alerts: List[AlertRead] = Field(default_factory=list)


class AlertsReadResponse(CamelModel):
    success: bool = True
    updated: int = 0
