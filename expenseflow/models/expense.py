"""
Expense model for reimbursement claims.
"""
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from expenseflow.db.base import BaseModel
import enum


class ExpenseStatus(str, enum.Enum):
    """Expense status enumeration."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApprovalPolicy(str, enum.Enum):
    """How an expense is approved, fixed when it is submitted."""
    SEQUENTIAL = "Sequential"  # Walks the steps of rule_id one by one
    QUORUM = "Quorum"  # Every manager of the company must approve


class Expense(BaseModel):
    """Expense submitted by an employee and routed for approval."""
    __tablename__ = "expenses"

    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    expense_date = Column(Date, nullable=False, index=True)
    status = Column(SQLEnum(ExpenseStatus), default=ExpenseStatus.PENDING, nullable=False, index=True)
    approved_amount = Column(Numeric(15, 2), nullable=True)  # Set once the expense is resolved
    approval_policy = Column(SQLEnum(ApprovalPolicy), default=ApprovalPolicy.QUORUM, nullable=False)
    rule_id = Column(Integer, ForeignKey("approval_rules.id"), nullable=True)
    current_step_id = Column(Integer, ForeignKey("approval_steps.id"), nullable=True)

    # Relationships
    employee = relationship("User", foreign_keys=[employee_id], back_populates="expenses")
    company = relationship("Company", back_populates="expenses")
    rule = relationship("ApprovalRule")
    current_step = relationship("ApprovalStep")
    history = relationship("ApprovalHistory", back_populates="expense", order_by="ApprovalHistory.id")
