"""Models package - Import all models for SQLAlchemy registration."""
from expenseflow.models.company import Company
from expenseflow.models.user import User, UserRole
from expenseflow.models.expense import Expense, ExpenseStatus, ApprovalPolicy
from expenseflow.models.approval import (
    ApprovalRule, ApprovalStep, ApprovalHistory, ApprovalAction, RuleType
)

__all__ = [
    "Company",
    "User",
    "UserRole",
    "Expense",
    "ExpenseStatus",
    "ApprovalPolicy",
    "ApprovalRule",
    "ApprovalStep",
    "ApprovalHistory",
    "ApprovalAction",
    "RuleType",
]
