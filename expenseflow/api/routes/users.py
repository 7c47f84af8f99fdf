"""
User management routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from expenseflow.db.session import get_db
from expenseflow.schemas.user import UserCreate, UserResponse, UserCreateResponse
from expenseflow.models.user import User, UserRole
from expenseflow.api.dependencies import get_current_user, get_current_admin
from expenseflow.core.security import get_password_hash, generate_temporary_password
from expenseflow.services.email_service import send_invitation_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
async def list_company_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all users of the current user's company."""
    return db.query(User).filter(
        User.company_id == current_user.company_id
    ).order_by(User.id.asc()).all()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.post("/add", response_model=UserCreateResponse, status_code=status.HTTP_201_CREATED)
async def add_user(
    user_data: UserCreate,
    current_user: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Add a user to the admin's company and email them a temporary password."""
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists."
        )

    if user_data.manager_id is not None:
        manager = db.query(User).filter(
            User.id == user_data.manager_id,
            User.company_id == current_user.company_id
        ).first()
        if not manager or manager.role != UserRole.MANAGER:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="manager_id must reference a manager of your company"
            )

    temp_password = generate_temporary_password()
    new_user = User(
        company_id=current_user.company_id,
        name=user_data.name,
        email=user_data.email,
        role=user_data.role,
        manager_id=user_data.manager_id,
        hashed_password=get_password_hash(temp_password)
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    # The account exists even if the invitation cannot be delivered
    invitation_sent = send_invitation_email(new_user.email, temp_password)
    if not invitation_sent:
        logger.warning(f"User {new_user.id} created but invitation email was not sent")

    message = "User created and invitation email sent successfully!" if invitation_sent \
        else "User created, but the invitation email could not be sent."
    return UserCreateResponse(
        message=message,
        user=UserResponse.model_validate(new_user),
        invitation_sent=invitation_sent
    )
