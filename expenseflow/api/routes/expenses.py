"""
Expense routes for employees.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from expenseflow.db.session import get_db
from expenseflow.models.user import User
from expenseflow.schemas.expense import (
    ExpenseCreate, ExpenseSubmitResponse, ExpenseResponse, ExpenseDetailResponse,
    ApprovalHistoryResponse, EmployeeKPIResponse
)
from expenseflow.api.dependencies import get_current_user
from expenseflow.services.expense_service import (
    submit_expense, list_employee_expenses, get_employee_expense, get_employee_totals
)

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=List[ExpenseResponse])
async def get_my_expenses(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all expenses of the logged-in user."""
    return list_employee_expenses(current_user.id, db)


@router.get("/kpis", response_model=EmployeeKPIResponse)
async def get_my_kpis(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Approved, pending and rejected totals of the logged-in user."""
    return get_employee_totals(current_user.id, db)


@router.get("/{expense_id}", response_model=ExpenseDetailResponse)
async def get_expense_detail(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get an expense with its approval history."""
    expense = get_employee_expense(expense_id, current_user.id, db)
    if not expense:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found or you do not have permission to view it."
        )

    history = [
        ApprovalHistoryResponse(
            action=entry.action,
            comments=entry.comments,
            step_approved_amount=entry.step_approved_amount,
            action_date=entry.action_date,
            approver_name=entry.approver.name
        )
        for entry in expense.history
    ]

    return ExpenseDetailResponse(
        id=expense.id,
        employee_id=expense.employee_id,
        company_id=expense.company_id,
        category=expense.category,
        description=expense.description,
        amount=expense.amount,
        approved_amount=expense.approved_amount,
        currency=expense.currency,
        expense_date=expense.expense_date,
        status=expense.status,
        approval_policy=expense.approval_policy,
        rule_id=expense.rule_id,
        current_step_id=expense.current_step_id,
        created_at=expense.created_at,
        history=history
    )


@router.post("", response_model=ExpenseSubmitResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit a new expense for approval."""
    expense = submit_expense(
        employee_id=current_user.id,
        company_id=current_user.company_id,
        amount=expense_data.amount,
        currency=expense_data.currency,
        expense_date=expense_data.expense_date,
        category=expense_data.category,
        description=expense_data.description,
        db=db
    )

    return ExpenseSubmitResponse(
        message="Expense submitted successfully!",
        expense_id=expense.id,
        approval_policy=expense.approval_policy
    )
