import uuid

from sqlalchemy import Column, String, JSON
from hr_ledger.database import Base


class WorkflowGroup(Base):
    """Approval chain configuration. Managed elsewhere; read by the engine."""
    __tablename__ = "workflow_groups"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    # [{"level": 1, "approver_role": "MANAGER"}, ...]
    steps = Column(JSON, default=list, nullable=False)
    # [{"job_title": "Engineer", "max_level": 1}, ...]
    title_rules = Column(JSON, default=list, nullable=False)
