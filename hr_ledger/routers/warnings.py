from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr_ledger.database import get_db
from hr_ledger.models.warning_rule import WarningRule
from hr_ledger.schemas.config import ActiveWarningResponse, WarningRuleCreate, WarningRuleResponse
from hr_ledger.services import leave_service
from hr_ledger.services.stores import RuleStore, commit

router = APIRouter(prefix="/warnings", tags=["warnings"])


@router.get("/rules", response_model=List[WarningRuleResponse])
def list_rules(db: Session = Depends(get_db)):
    return RuleStore(db).list()


@router.post("/rules", response_model=WarningRuleResponse)
def create_rule(payload: WarningRuleCreate, db: Session = Depends(get_db)):
    rule = RuleStore(db).create(WarningRule(**payload.model_dump()))
    commit(db)
    db.refresh(rule)
    return rule


@router.delete("/rules/{rule_id}")
def delete_rule(rule_id: str, db: Session = Depends(get_db)):
    RuleStore(db).delete(rule_id)
    commit(db)
    return {"success": True}


@router.get("/users/{user_id}", response_model=List[ActiveWarningResponse])
def get_user_warnings(user_id: str, db: Session = Depends(get_db)):
    """Rules currently fired by the user's approved history."""
    return [w.to_dict() for w in leave_service.get_user_warnings(db, user_id)]
