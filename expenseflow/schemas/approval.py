"""
Pydantic schemas for approval rules and manager actions.
"""
from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from expenseflow.models.approval import RuleType, ApprovalAction
from expenseflow.models.expense import ExpenseStatus


class ApprovalStepCreate(BaseModel):
    """One step of a new rule."""
    step_sequence: int
    name: Optional[str] = None


class ApprovalRuleCreate(BaseModel):
    """Schema for creating a sequential approval rule."""
    name: str
    steps: List[ApprovalStepCreate]

    @field_validator("steps")
    @classmethod
    def strictly_increasing(cls, v: List[ApprovalStepCreate]) -> List[ApprovalStepCreate]:
        """Steps must be listed in strictly increasing step_sequence order."""
        if not v:
            raise ValueError("a rule needs at least one step")
        sequences = [step.step_sequence for step in v]
        if any(later <= earlier for earlier, later in zip(sequences, sequences[1:])):
            raise ValueError("step_sequence values must be strictly increasing")
        return v


class ApprovalStepResponse(BaseModel):
    id: int
    step_sequence: int
    name: Optional[str] = None

    class Config:
        from_attributes = True


class ApprovalRuleResponse(BaseModel):
    """Schema for approval rule response."""
    id: int
    company_id: int
    name: str
    rule_type: RuleType
    steps: List[ApprovalStepResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseAction(BaseModel):
    """
    Schema for a manager's action on an expense.

    ``action`` is kept as a plain string so unknown values reach the
    workflow and are reported as an invalid action.
    """
    action: str
    comments: Optional[str] = None
    approved_amount: Optional[Decimal] = None


class ExpenseActionResponse(BaseModel):
    """Result of an action."""
    message: str
    expense_id: int
    status: ExpenseStatus


class PendingExpenseItem(BaseModel):
    """Pending expense as shown to managers."""
    id: int
    description: Optional[str] = None
    amount: Decimal
    currency: str
    expense_date: date
    category: Optional[str] = None
    employee_name: str
    approvers: Optional[str] = None  # Comma-separated names of managers who approved
    current_step_id: Optional[int] = None
    converted_amount: Optional[Decimal] = None  # Advisory, in the company's default currency


class PendingExpensesResponse(BaseModel):
    expenses: List[PendingExpenseItem]
    default_currency: str


class ManagerKPIResponse(BaseModel):
    total_pending: Decimal
    total_approved_month: Decimal
    avg_approval_time: str


class TopSpenderResponse(BaseModel):
    employee_name: str
    total_spent: Decimal


class ProcessedExpenseResponse(BaseModel):
    id: int
    description: Optional[str] = None
    employee_name: str
    action: ApprovalAction
    action_date: datetime
