import uuid

from sqlalchemy import Column, String, Integer, Float, DateTime, JSON, ForeignKey, UniqueConstraint
from hr_ledger.database import Base


class OvertimeSettlement(Base):
    """One audit row per (user, year, month). Upserted, never appended."""
    __tablename__ = "overtime_settlements"
    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_settlement_user_period"),
    )

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)

    applied_hours = Column(Float, default=0.0, nullable=False)
    actual_hours = Column(Float, default=0.0, nullable=False)   # base
    paid_hours = Column(Float, default=0.0, nullable=False)
    remaining_hours = Column(Float, default=0.0, nullable=False)

    # {"name", "role", "timestamp"}
    base_auth = Column(JSON, nullable=True)
    pay_auth = Column(JSON, nullable=True)

    settled_at = Column(DateTime(timezone=True), nullable=True)
    settled_by = Column(String, nullable=True)
