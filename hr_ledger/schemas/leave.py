from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

CLOCK_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"

class LeaveRequestCreate(BaseModel):
    user_id: str
    type: str
    start_date: date
    end_date: date
    is_partial_day: bool = False
    start_time: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    reason: Optional[str] = None
    deputy: Optional[str] = None
    attachment_urls: List[str] = []

class LeaveRequestResponse(BaseModel):
    id: str
    user_id: str
    user_name: Optional[str] = None
    type: str
    start_date: date
    end_date: date
    is_partial_day: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    deputy: Optional[str] = None
    status: str
    current_step: int
    total_steps: int
    step_approved_by: List[str] = []
    logs: List[Dict[str, Any]] = []
    attachment_urls: List[str] = []
    attachment_url: str = ""
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    actual_start_time: Optional[str] = None
    actual_end_time: Optional[str] = None
    actual_duration: Optional[float] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LeaveDecision(BaseModel):
    approve: bool
    approver_id: Optional[str] = None
    approver_name: str
    comment: Optional[str] = None

class LeaveCancel(BaseModel):
    actor_id: Optional[str] = None
    actor_name: str

class QuotaResponse(BaseModel):
    category: str
    year: int
    entitlement: Optional[float] = None
    used: float
    pending: float
    remaining: Optional[float] = None

class OverlapCheck(BaseModel):
    user_id: str
    start_date: date
    end_date: date
    exclude_id: Optional[str] = None

class OverlapResponse(BaseModel):
    overlap: bool
    conflicting_request: Optional[LeaveRequestResponse] = None
