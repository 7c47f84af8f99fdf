"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from expenseflow.models.expense import ExpenseStatus, ApprovalPolicy
from expenseflow.models.approval import ApprovalAction


class ExpenseCreate(BaseModel):
    """Schema for expense submission."""
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Decimal
    currency: str
    expense_date: date

    @field_validator("amount")
    @classmethod
    def positive_amount(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("amount must be greater than zero")
        return v

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("currency must be a 3-letter currency code")
        return v


class ExpenseSubmitResponse(BaseModel):
    """Schema for expense submission response."""
    message: str
    expense_id: int
    approval_policy: ApprovalPolicy


class ExpenseResponse(BaseModel):
    """Schema for expense list item."""
    id: int
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Decimal
    approved_amount: Optional[Decimal] = None
    currency: str
    expense_date: date
    status: ExpenseStatus

    class Config:
        from_attributes = True


class ApprovalHistoryResponse(BaseModel):
    """One entry of an expense's approval history."""
    action: ApprovalAction
    comments: Optional[str] = None
    step_approved_amount: Optional[Decimal] = None
    action_date: datetime
    approver_name: str


class ExpenseDetailResponse(ExpenseResponse):
    """Schema for expense detail with approval history."""
    employee_id: int
    company_id: int
    approval_policy: ApprovalPolicy
    rule_id: Optional[int] = None
    current_step_id: Optional[int] = None
    created_at: datetime
    history: List[ApprovalHistoryResponse] = []


class EmployeeKPIResponse(BaseModel):
    """Totals per status for the logged-in employee."""
    total_approved: Decimal
    total_pending: Decimal
    total_rejected: Decimal
