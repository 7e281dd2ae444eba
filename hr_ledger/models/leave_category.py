import enum
import uuid

from sqlalchemy import Column, String
from hr_ledger.database import Base


class GenderRestriction(str, enum.Enum):
    ALL = "ALL"
    MALE_ONLY = "MALE_ONLY"
    FEMALE_ONLY = "FEMALE_ONLY"


class LeaveCategory(Base):
    __tablename__ = "leave_categories"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, unique=True, index=True, nullable=False)  # matches LeaveRequest.type
    allowed_gender = Column(String, default=GenderRestriction.ALL.value, nullable=False)
