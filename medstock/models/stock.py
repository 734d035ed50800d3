from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from medstock.database.base import Base


class StockLedger(Base):
    """One row per pharmacy; the medicines hang off it in entry order."""

    __tablename__ = "pharmacy_stocks"

    id = Column(Integer, primary_key=True)
    pharmacy_id = Column(String(64), nullable=False, unique=True)

    # NULL means "use the configured default".
    low_stock_threshold = Column(Integer)
    default_restock_qty = Column(Integer)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    medicines = relationship(
        "StockMedicine",
        back_populates="ledger",
        order_by="StockMedicine.id",
        cascade="all, delete-orphan",
    )

    def find_medicine(self, name):
        for medicine in self.medicines:
            if medicine.name == name:
                return medicine
        return None


class StockMedicine(Base):
    __tablename__ = "pharmacy_stock_medicines"

    id = Column(Integer, primary_key=True)
    ledger_id = Column(Integer, ForeignKey("pharmacy_stocks.id"), nullable=False)
    name = Column(String(200), nullable=False)
    qty = Column(Integer, nullable=False, default=0)

    ledger = relationship("StockLedger", back_populates="medicines")

    __table_args__ = (
        UniqueConstraint("ledger_id", "name", name="uq_stock_medicines_ledger_name"),
        CheckConstraint("qty >= 0", name="ck_stock_medicines_qty_non_negative"),
        Index("idx_stock_medicines_ledger", "ledger_id"),
    )


__all__ = ["StockLedger", "StockMedicine"]
