"""
Expense service for submission and employee-facing queries.
"""
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from expenseflow.models.expense import Expense, ExpenseStatus
from expenseflow.models.approval import ApprovalHistory
from expenseflow.services.approval_workflow import initial_position

logger = logging.getLogger(__name__)


def submit_expense(
    employee_id: int,
    company_id: int,
    amount: Decimal,
    currency: str,
    expense_date: date,
    category: Optional[str] = None,
    description: Optional[str] = None,
    db: Session = None
) -> Expense:
    """Create a pending expense placed at the start of its approval workflow."""
    policy, rule_id, step_id = initial_position(db, company_id)

    expense = Expense(
        employee_id=employee_id,
        company_id=company_id,
        category=category,
        description=description,
        amount=amount,
        currency=currency.upper(),
        expense_date=expense_date,
        status=ExpenseStatus.PENDING,
        approval_policy=policy,
        rule_id=rule_id,
        current_step_id=step_id
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)

    logger.info(f"Expense {expense.id} submitted by user {employee_id} under {policy.value} policy")
    return expense


def list_employee_expenses(employee_id: int, db: Session) -> List[Expense]:
    """Expenses of an employee, most recent expense date first."""
    return db.query(Expense).filter(
        Expense.employee_id == employee_id
    ).order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def get_employee_expense(expense_id: int, employee_id: int, db: Session) -> Optional[Expense]:
    """Expense with its approval history, only if owned by the employee."""
    return db.query(Expense).options(
        selectinload(Expense.history).selectinload(ApprovalHistory.approver)
    ).filter(
        Expense.id == expense_id,
        Expense.employee_id == employee_id
    ).first()


def get_employee_totals(employee_id: int, db: Session) -> Dict[str, Decimal]:
    """
    Totals per status for an employee.

    Approved expenses count their approved amount; pending and rejected
    ones count the amount originally claimed.
    """
    def _sum(column, status: ExpenseStatus) -> Decimal:
        total = db.query(func.sum(column)).filter(
            Expense.employee_id == employee_id,
            Expense.status == status
        ).scalar()
        return Decimal(total) if total is not None else Decimal("0")

    return {
        "total_approved": _sum(Expense.approved_amount, ExpenseStatus.APPROVED),
        "total_pending": _sum(Expense.amount, ExpenseStatus.PENDING),
        "total_rejected": _sum(Expense.amount, ExpenseStatus.REJECTED),
    }
