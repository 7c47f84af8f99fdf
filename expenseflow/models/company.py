"""
Company model, the tenant every user and expense belongs to.
"""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from expenseflow.db.base import BaseModel


class Company(BaseModel):
    """Company registered through signup."""
    __tablename__ = "companies"

    name = Column(String(200), nullable=False)
    default_currency = Column(String(3), nullable=False, default="USD")

    # Relationships
    users = relationship("User", back_populates="company", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="company", cascade="all, delete-orphan")
    approval_rules = relationship("ApprovalRule", back_populates="company", cascade="all, delete-orphan")
