from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Dict, List, Optional

from hr_ledger.schemas.leave import CLOCK_PATTERN, LeaveRequestResponse
from hr_ledger.services.settlement import SettlementActionType

class SignerIn(BaseModel):
    name: str
    role: str
    id: Optional[str] = None

class AuthSignature(BaseModel):
    name: str
    role: str
    timestamp: datetime

class SettlementActionRequest(BaseModel):
    type: SettlementActionType
    year: int = Field(ge=1900, le=9999)
    month: int = Field(ge=1, le=12)
    signer: SignerIn
    user_id: Optional[str] = None
    base_inputs: Dict[str, float] = {}
    pay_inputs: Dict[str, float] = {}

class SettlementRecordResponse(BaseModel):
    id: str
    user_id: str
    year: int
    month: int
    applied_hours: float
    actual_hours: float
    paid_hours: float
    remaining_hours: float
    base_auth: Optional[AuthSignature] = None
    pay_auth: Optional[AuthSignature] = None
    settled_at: Optional[datetime] = None
    settled_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class RangeViolationResponse(BaseModel):
    user_id: str
    year: int
    month: int
    base: float
    minimum: float
    maximum: float

class SettlementResult(BaseModel):
    records: List[SettlementRecordResponse]
    violations: List[RangeViolationResponse] = []
    balances: Dict[str, float] = {}

class DetailEditIn(BaseModel):
    start_date: date
    end_date: date
    start_time: str = Field(default="00:00", pattern=CLOCK_PATTERN)
    end_time: str = Field(default="00:00", pattern=CLOCK_PATTERN)
    duration: Optional[float] = Field(default=None, ge=0)

class DetailReviewRequest(BaseModel):
    year: int = Field(ge=1900, le=9999)
    month: int = Field(ge=1, le=12)
    signer: SignerIn
    edits: Dict[str, DetailEditIn] = {}
    verified_ids: List[str] = []

class DetailReviewResult(SettlementResult):
    requests: List[LeaveRequestResponse] = []

class DetailRow(BaseModel):
    request: LeaveRequestResponse
    applied_hours: float
    edit: DetailEditIn
    verified: bool

class RowHoursRequest(BaseModel):
    start_date: date
    end_date: date
    start_time: str = Field(default="00:00", pattern=CLOCK_PATTERN)
    end_time: str = Field(default="00:00", pattern=CLOCK_PATTERN)

class SheetRow(BaseModel):
    user_id: str
    employee_id: str
    name: str
    department: Optional[str] = None
    live_balance: float
    applied_hours: float
    compensatory_hours: float
    actual_hours: float
    paid_hours: float
    remaining_hours: float
    base_auth: Optional[AuthSignature] = None
    pay_auth: Optional[AuthSignature] = None
    settled: bool
    base_out_of_range: bool

class NoteIn(BaseModel):
    note: str = Field(min_length=1)
    author_name: str
    author_id: Optional[str] = None

class NoteResponse(BaseModel):
    id: str
    year: int
    month: int
    note: str
    updated_at: datetime
    updated_by: str
    updated_by_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
