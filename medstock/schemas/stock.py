from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from medstock.schemas.common import CamelModel


class MedicineQty(CamelModel):
    name: str
    qty: Any = 0


class MedicineRead(CamelModel):
    id: int
    name: str
    qty: int

    model_config = ConfigDict(from_attributes=True)


class StockInitRequest(CamelModel):
    medicines: List[MedicineQty] = Field(default_factory=list)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    default_restock_qty: Optional[int] = Field(default=None, ge=0)


class StockUpdateRequest(CamelModel):
    pharmacy_id: str
    stock: Dict[str, Any]


class StockAdjustRequest(CamelModel):
    pharmacy_id: str
    medicines: List[MedicineQty]


class StockResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    stock: List[MedicineRead] = Field(default_factory=list)


class PolicyUpdateRequest(CamelModel):
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    default_restock_qty: Optional[int] = Field(default=None, ge=0)


class PolicyRead(CamelModel):
    low_stock_threshold: int
    default_restock_qty: int

    model_config = ConfigDict(from_attributes=True)


class PolicyResponse(CamelModel):
    success: bool = True
    policy: PolicyRead
