"""
Manager dashboard queries: pending expenses, team KPIs and activity.
"""
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from expenseflow.core.config import settings
from expenseflow.models.company import Company
from expenseflow.models.expense import Expense, ExpenseStatus
from expenseflow.models.approval import ApprovalHistory, ApprovalAction
from expenseflow.models.user import User
from expenseflow.services.fx_service import RateLookup, enrich_pending_expenses


def _month_start(today: Optional[date] = None) -> datetime:
    today = today or date.today()
    return datetime(today.year, today.month, 1)


def get_company_currency(company_id: int, db: Session) -> str:
    company = db.query(Company).filter(Company.id == company_id).first()
    if company and company.default_currency:
        return company.default_currency.upper()
    return settings.DEFAULT_CURRENCY


def _approver_names(expense_ids: List[int], db: Session) -> Dict[int, str]:
    """Comma-joined names of managers who approved each expense, oldest first."""
    if not expense_ids:
        return {}
    rows = db.query(ApprovalHistory.expense_id, User.name).join(
        User, ApprovalHistory.approver_id == User.id
    ).filter(
        ApprovalHistory.expense_id.in_(expense_ids),
        ApprovalHistory.action == ApprovalAction.APPROVED
    ).order_by(ApprovalHistory.id.asc()).all()

    names = defaultdict(list)
    for expense_id, name in rows:
        names[expense_id].append(name)
    return {expense_id: ", ".join(approvers) for expense_id, approvers in names.items()}


def get_pending_expenses(company_id: int, db: Session, lookup: Optional[RateLookup] = None) -> dict:
    """
    All pending expenses of a company, with approvers so far and an
    advisory amount in the company's default currency.
    """
    rows = db.query(Expense, User.name).join(
        User, Expense.employee_id == User.id
    ).filter(
        Expense.company_id == company_id,
        Expense.status == ExpenseStatus.PENDING
    ).order_by(Expense.expense_date.asc(), Expense.id.asc()).all()

    approvers = _approver_names([expense.id for expense, _ in rows], db)
    default_currency = get_company_currency(company_id, db)

    expenses = [
        {
            "id": expense.id,
            "description": expense.description,
            "amount": expense.amount,
            "currency": expense.currency,
            "expense_date": expense.expense_date,
            "category": expense.category,
            "employee_name": employee_name,
            "approvers": approvers.get(expense.id),
            "current_step_id": expense.current_step_id,
        }
        for expense, employee_name in rows
    ]

    return {
        "expenses": enrich_pending_expenses(expenses, default_currency, lookup),
        "default_currency": default_currency,
    }


def get_team_kpis(manager_id: int, db: Session, today: Optional[date] = None) -> dict:
    """Pending total and approved-this-month total for a manager's reports."""
    pending = db.query(func.sum(Expense.amount)).join(
        User, Expense.employee_id == User.id
    ).filter(
        User.manager_id == manager_id,
        Expense.status == ExpenseStatus.PENDING
    ).scalar()

    approved = db.query(func.sum(Expense.amount)).join(
        User, Expense.employee_id == User.id
    ).filter(
        User.manager_id == manager_id,
        Expense.status == ExpenseStatus.APPROVED,
        Expense.created_at >= _month_start(today)
    ).scalar()

    return {
        "total_pending": Decimal(pending) if pending is not None else Decimal("0"),
        "total_approved_month": Decimal(approved) if approved is not None else Decimal("0"),
        # Needs action timestamps per step to compute
        "avg_approval_time": "N/A",
    }


def get_top_spenders(manager_id: int, db: Session, limit: int = 5, today: Optional[date] = None) -> List[dict]:
    """Reports of a manager with the highest approved amounts this month."""
    total_spent = func.sum(Expense.approved_amount).label("total_spent")
    rows = db.query(User.name, total_spent).join(
        Expense, Expense.employee_id == User.id
    ).filter(
        User.manager_id == manager_id,
        Expense.status == ExpenseStatus.APPROVED,
        Expense.created_at >= _month_start(today)
    ).group_by(User.id, User.name).order_by(total_spent.desc()).limit(limit).all()

    return [{"employee_name": name, "total_spent": total} for name, total in rows]


def get_recently_processed(manager_id: int, db: Session, limit: int = 10) -> List[dict]:
    """Latest actions taken by a manager."""
    rows = db.query(ApprovalHistory, Expense, User.name).join(
        Expense, ApprovalHistory.expense_id == Expense.id
    ).join(
        User, Expense.employee_id == User.id
    ).filter(
        ApprovalHistory.approver_id == manager_id
    ).order_by(ApprovalHistory.action_date.desc(), ApprovalHistory.id.desc()).limit(limit).all()

    return [
        {
            "id": expense.id,
            "description": expense.description,
            "employee_name": employee_name,
            "action": entry.action,
            "action_date": entry.action_date,
        }
        for entry, expense, employee_name in rows
    ]
