"""
Employee model.

The overtime quota is a cached snapshot of the latest settlement balance.
It is written only by ``hr_ledger.services.balance_sync``; everything else
reads it through the ``overtime_quota`` property.
"""
import enum
import uuid

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from hr_ledger.database import Base


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    employee_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    department = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    gender = Column(String, nullable=True)

    workflow_group_id = Column(String, ForeignKey("workflow_groups.id"), nullable=True)

    # {"2024": 14.0, "2025": 15.0}; JSON object keys are always strings
    annual_quota = Column(JSON, default=dict, nullable=False)
    # Day-equivalent units, derived from the settlement ledger
    _overtime_quota = Column("overtime_quota", Float, default=0.0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    leave_requests = relationship("LeaveRequest", back_populates="user", cascade="all, delete-orphan")
    workflow_group = relationship("WorkflowGroup")

    def __repr__(self):
        return f"<User {self.employee_id} ({self.name})>"

    @property
    def overtime_quota(self) -> float:
        return self._overtime_quota or 0.0

    def annual_entitlement(self, year: int) -> float:
        return float((self.annual_quota or {}).get(str(year), 0.0))
