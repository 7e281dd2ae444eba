import uuid

from sqlalchemy import Column, String, Float
from hr_ledger.database import Base


class WarningRule(Base):
    __tablename__ = "warning_rules"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    target_type = Column(String, index=True, nullable=False)  # leave category watched
    threshold = Column(Float, nullable=False)
    message = Column(String, nullable=False)
    color = Column(String, default="yellow", nullable=False)
