from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from medstock.core.constants import ALERT_LOW_STOCK, ALERT_UNREAD
from medstock.database.base import Base


class Alert(Base):
    __tablename__ = "stock_alerts"

    id = Column(Integer, primary_key=True)
    pharmacy_id = Column(String(64), nullable=False)
    medicine = Column(String(200), nullable=False)
    medicine_id = Column(Integer, ForeignKey("pharmacy_stock_medicines.id", ondelete="SET NULL"))

    alert_type = Column(String(32), nullable=False, default=ALERT_LOW_STOCK)
    message = Column(String, nullable=False)
    status = Column(String(16), nullable=False, default=ALERT_UNREAD)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_stock_alerts_pharmacy_created", "pharmacy_id", "created_at"),
        Index("idx_stock_alerts_pharmacy_status", "pharmacy_id", "status"),
    )


__all__ = ["Alert"]
