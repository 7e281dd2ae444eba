import enum
import uuid

from sqlalchemy import Column, String, Date, Float, Boolean, Integer, ForeignKey, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from hr_ledger.database import Base


class RequestStatus(str, enum.Enum):
    IN_PROCESS = "IN_PROCESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = (RequestStatus.REJECTED.value, RequestStatus.CANCELLED.value)


class LeaveType(str, enum.Enum):
    """Built-in categories. Deployments may add more as LeaveCategory rows."""
    ANNUAL = "ANNUAL"
    OVERTIME = "OVERTIME"
    COMPENSATORY = "COMPENSATORY"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    BEREAVEMENT = "BEREAVEMENT"
    MARRIAGE = "MARRIAGE"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"


class LogAction(str, enum.Enum):
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    UPDATE = "UPDATE"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    user_name = Column(String, nullable=True)
    type = Column(String, index=True, nullable=False)

    # Submitted span
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_partial_day = Column(Boolean, default=False, nullable=False)
    start_time = Column(String(5), nullable=True)  # "HH:MM"
    end_time = Column(String(5), nullable=True)

    reason = Column(String, nullable=True)
    deputy = Column(String, nullable=True)
    status = Column(String, default=RequestStatus.IN_PROCESS.value, index=True, nullable=False)

    # Workflow progress
    current_step = Column(Integer, default=1, nullable=False)
    total_steps = Column(Integer, default=1, nullable=False)
    step_approved_by = Column(JSON, default=list, nullable=False)
    logs = Column(JSON, default=list, nullable=False)  # append-only

    attachment_urls = Column(JSON, default=list, nullable=False)

    # Overtime corrections entered during detail review
    actual_start_date = Column(Date, nullable=True)
    actual_end_date = Column(Date, nullable=True)
    actual_start_time = Column(String(5), nullable=True)
    actual_end_time = Column(String(5), nullable=True)
    actual_duration = Column(Float, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="leave_requests")

    @property
    def attachment_url(self) -> str:
        """Legacy single-attachment view: the first reference, or empty."""
        urls = self.attachment_urls or []
        return urls[0] if urls else ""
