from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text

from medstock.core.constants import REQUEST_REQUESTED
from medstock.database.base import Base


class RestockRequest(Base):
    __tablename__ = "restock_requests"

    id = Column(Integer, primary_key=True)
    pharmacy_id = Column(String(64), nullable=False)
    medicine = Column(String(200), nullable=False)
    medicine_id = Column(Integer, ForeignKey("pharmacy_stock_medicines.id", ondelete="SET NULL"))

    requested_qty = Column(Integer, nullable=False)
    approved_qty = Column(Integer)
    status = Column(String(16), nullable=False, default=REQUEST_REQUESTED)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    processed_at = Column(DateTime(timezone=True))
    processed_by = Column(String(120))
    notes = Column(String)

    __table_args__ = (
        # At most one open request per (pharmacy, medicine).
        Index(
            "uq_restock_requests_open",
            "pharmacy_id",
            "medicine",
            unique=True,
            sqlite_where=text("status = 'requested'"),
            postgresql_where=text("status = 'requested'"),
        ),
        Index("idx_restock_requests_pharmacy_created", "pharmacy_id", "created_at"),
        Index("idx_restock_requests_status", "status"),
    )


__all__ = ["RestockRequest"]
