"""
Approval rule configuration routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload
from typing import List
from expenseflow.db.session import get_db
from expenseflow.models.user import User
from expenseflow.models.approval import ApprovalRule, ApprovalStep, RuleType
from expenseflow.schemas.approval import ApprovalRuleCreate, ApprovalRuleResponse
from expenseflow.api.dependencies import get_current_user, get_current_admin

router = APIRouter(prefix="/approval-rules", tags=["approval-rules"])


@router.get("", response_model=List[ApprovalRuleResponse])
async def list_approval_rules(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the company's approval rules with their ordered steps."""
    return db.query(ApprovalRule).options(
        selectinload(ApprovalRule.steps)
    ).filter(
        ApprovalRule.company_id == current_user.company_id
    ).order_by(ApprovalRule.id.asc()).all()


@router.post("", response_model=ApprovalRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_approval_rule(
    rule_data: ApprovalRuleCreate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Create a sequential approval rule.

    Only the company's first sequential rule is applied to new expenses.
    Rules cannot be edited afterwards, so in-flight expenses always see the
    steps they started with.
    """
    rule = ApprovalRule(
        company_id=current_user.company_id,
        name=rule_data.name,
        rule_type=RuleType.SEQUENTIAL
    )
    for step in rule_data.steps:
        rule.steps.append(ApprovalStep(step_sequence=step.step_sequence, name=step.name))

    db.add(rule)
    db.commit()
    db.refresh(rule)

    return rule
