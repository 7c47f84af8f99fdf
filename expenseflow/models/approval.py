"""
Approval rule, step and history models.
"""
from sqlalchemy import (
    Column, String, Numeric, DateTime, ForeignKey, Integer, Text,
    UniqueConstraint, Enum as SQLEnum, func
)
from sqlalchemy.orm import relationship
from expenseflow.db.base import BaseModel
import enum


class RuleType(str, enum.Enum):
    """Approval rule type enumeration."""
    SEQUENTIAL = "SEQUENTIAL"


class ApprovalAction(str, enum.Enum):
    """Action a manager takes on an expense."""
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApprovalRule(BaseModel):
    """Per-company approval configuration."""
    __tablename__ = "approval_rules"

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    rule_type = Column(SQLEnum(RuleType), default=RuleType.SEQUENTIAL, nullable=False)

    # Relationships
    company = relationship("Company", back_populates="approval_rules")
    steps = relationship(
        "ApprovalStep",
        back_populates="rule",
        order_by="ApprovalStep.step_sequence",
        cascade="all, delete-orphan",
    )


class ApprovalStep(BaseModel):
    """One ordered stage of a sequential rule."""
    __tablename__ = "approval_steps"

    rule_id = Column(Integer, ForeignKey("approval_rules.id"), nullable=False, index=True)
    step_sequence = Column(Integer, nullable=False)  # Gaps allowed, e.g. 10, 20, 30
    name = Column(String(100), nullable=True)

    # Relationships
    rule = relationship("ApprovalRule", back_populates="steps")

    __table_args__ = (
        UniqueConstraint('rule_id', 'step_sequence', name='uq_rule_step_sequence'),
    )


class ApprovalHistory(BaseModel):
    """Append-only record of an approve/reject action."""
    __tablename__ = "approval_history"

    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(SQLEnum(ApprovalAction), nullable=False)
    step_approved_amount = Column(Numeric(15, 2), nullable=True)
    comments = Column(Text, nullable=True)
    action_date = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    # Relationships
    expense = relationship("Expense", back_populates="history")
    approver = relationship("User", back_populates="approval_actions")
