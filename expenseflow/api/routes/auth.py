"""
Authentication routes for company signup and login.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from expenseflow.db.session import get_db, transaction_scope
from expenseflow.schemas.user import CompanySignup, SignupResponse, UserLogin, Token
from expenseflow.models.company import Company
from expenseflow.models.user import User, UserRole
from expenseflow.core.security import verify_password, get_password_hash, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(signup_data: CompanySignup, db: Session = Depends(get_db)):
    """Register a new company together with its admin user."""
    existing_user = db.query(User).filter(User.email == signup_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists."
        )

    hashed_password = get_password_hash(signup_data.password)

    # Company and admin are created together or not at all
    try:
        with transaction_scope(db):
            company = Company(
                name=signup_data.company_name,
                default_currency=signup_data.default_currency
            )
            db.add(company)
            db.flush()

            admin = User(
                company_id=company.id,
                name="Admin",
                email=signup_data.email,
                hashed_password=hashed_password,
                role=UserRole.ADMIN
            )
            db.add(admin)
            db.flush()
            company_id, user_id = company.id, admin.id
    except SQLAlchemyError as e:
        logger.error(f"Signup error: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error during signup process."
        )

    return SignupResponse(
        message="Company and admin user created successfully!",
        company_id=company_id,
        user_id=user_id
    )


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    claims = {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "company_id": user.company_id,
    }
    access_token = create_access_token(data={"sub": user.email, "user_id": user.id, **claims})

    return {"access_token": access_token, "token_type": "bearer", "user": claims}
