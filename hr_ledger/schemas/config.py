from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional

from hr_ledger.models.leave_category import GenderRestriction
from hr_ledger.models.user import Gender

class UserCreate(BaseModel):
    employee_id: str
    name: str
    department: Optional[str] = None
    job_title: Optional[str] = None
    gender: Optional[Gender] = None
    workflow_group_id: Optional[str] = None
    annual_quota: Dict[str, float] = {}

class UserResponse(BaseModel):
    id: str
    employee_id: str
    name: str
    department: Optional[str] = None
    job_title: Optional[str] = None
    gender: Optional[str] = None
    workflow_group_id: Optional[str] = None
    annual_quota: Dict[str, float] = {}
    overtime_quota: float

    model_config = ConfigDict(from_attributes=True)

class AnnualQuotaUpdate(BaseModel):
    year: int
    days: float = Field(ge=0)

class CategoryCreate(BaseModel):
    name: str
    allowed_gender: GenderRestriction = GenderRestriction.ALL

class CategoryResponse(BaseModel):
    id: str
    name: str
    allowed_gender: str

    model_config = ConfigDict(from_attributes=True)

class TitleRule(BaseModel):
    job_title: str
    max_level: int = Field(ge=1)

class WorkflowGroupCreate(BaseModel):
    name: str
    steps: List[dict] = []
    title_rules: List[TitleRule] = []

class WorkflowGroupResponse(BaseModel):
    id: str
    name: str
    steps: List[dict]
    title_rules: List[dict]

    model_config = ConfigDict(from_attributes=True)

class WarningRuleCreate(BaseModel):
    name: str
    target_type: str
    threshold: float = Field(gt=0)
    message: str
    color: str = "yellow"

class WarningRuleResponse(WarningRuleCreate):
    id: str

    model_config = ConfigDict(from_attributes=True)

class ActiveWarningResponse(BaseModel):
    rule_id: str
    rule_name: str
    message: str
    color: str
    current_value: float
