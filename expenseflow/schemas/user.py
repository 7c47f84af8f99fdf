"""
Pydantic schemas for Company and User entities.
"""
from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
from datetime import datetime
from expenseflow.models.user import UserRole


class CompanySignup(BaseModel):
    """Schema for company and admin signup."""
    company_name: str
    email: EmailStr
    password: str
    default_currency: str

    @field_validator("default_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("default_currency must be a 3-letter currency code")
        return v


class SignupResponse(BaseModel):
    """Schema for signup response."""
    message: str
    company_id: int
    user_id: int


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class UserCreate(BaseModel):
    """Schema for an admin adding a user to their company."""
    name: str
    email: EmailStr
    role: UserRole
    manager_id: Optional[int] = None


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    name: str
    email: EmailStr
    role: UserRole
    company_id: int
    manager_id: Optional[int] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreateResponse(BaseModel):
    """Schema for the add-user response."""
    message: str
    user: UserResponse
    invitation_sent: bool


class TokenUser(BaseModel):
    """Claims returned alongside the token."""
    id: int
    email: EmailStr
    role: UserRole
    company_id: int


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"
    user: TokenUser
