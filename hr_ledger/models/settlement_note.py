import uuid

from sqlalchemy import Column, String, Integer, DateTime
from hr_ledger.database import Base


class SettlementNote(Base):
    """Free-text review note attached to a settlement month."""
    __tablename__ = "settlement_notes"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    year = Column(Integer, index=True, nullable=False)
    month = Column(Integer, index=True, nullable=False)
    note = Column(String, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    updated_by = Column(String, nullable=False)
    updated_by_id = Column(String, nullable=True)
