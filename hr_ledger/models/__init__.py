# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, workflow_group, leave_category, leave_request,
    settlement, settlement_note, warning_rule
)

# Explicit class exports for cleaner imports
from .user import User, Gender
from .workflow_group import WorkflowGroup
from .leave_category import LeaveCategory, GenderRestriction
from .leave_request import LeaveRequest, LeaveType, RequestStatus, LogAction
from .settlement import OvertimeSettlement
from .settlement_note import SettlementNote
from .warning_rule import WarningRule

__all__ = [
    "User",
    "Gender",
    "WorkflowGroup",
    "LeaveCategory",
    "GenderRestriction",
    "LeaveRequest",
    "LeaveType",
    "RequestStatus",
    "LogAction",
    "OvertimeSettlement",
    "SettlementNote",
    "WarningRule",
]
