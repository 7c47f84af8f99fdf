"""
User model for authentication and role management.
"""
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from expenseflow.db.base import BaseModel
import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "Admin"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"


class User(BaseModel):
    """User belonging to exactly one company."""
    __tablename__ = "users"

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), default=UserRole.EMPLOYEE, nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    company = relationship("Company", back_populates="users")
    manager = relationship("User", remote_side="User.id", back_populates="reports")
    reports = relationship("User", back_populates="manager")
    expenses = relationship("Expense", foreign_keys="Expense.employee_id", back_populates="employee")
    approval_actions = relationship("ApprovalHistory", back_populates="approver")
