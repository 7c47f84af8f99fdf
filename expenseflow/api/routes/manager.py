"""
Manager routes: pending expenses, dashboard figures and approval actions.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from expenseflow.db.session import get_db
from expenseflow.models.user import User
from expenseflow.schemas.approval import (
    ExpenseAction, ExpenseActionResponse, PendingExpensesResponse,
    ManagerKPIResponse, TopSpenderResponse, ProcessedExpenseResponse
)
from expenseflow.api.dependencies import get_current_manager
from expenseflow.core.exceptions import (
    NotFoundError, InvalidActionError, DuplicateActionError, TransactionFailureError
)
from expenseflow.services.approval_workflow import action_expense
from expenseflow.services import manager_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manager", tags=["manager"])


@router.get("/pending-expenses", response_model=PendingExpensesResponse)
async def get_pending_expenses(
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db)
):
    """All pending expenses of the company, converted to its default currency."""
    return manager_service.get_pending_expenses(current_user.company_id, db)


@router.get("/kpis", response_model=ManagerKPIResponse)
async def get_manager_kpis(
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db)
):
    """Figures for the manager's direct reports."""
    return manager_service.get_team_kpis(current_user.id, db)


@router.get("/top-spenders", response_model=List[TopSpenderResponse])
async def get_top_spenders(
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db)
):
    """Top spending reports of the manager this month."""
    return manager_service.get_top_spenders(current_user.id, db)


@router.get("/recently-processed", response_model=List[ProcessedExpenseResponse])
async def get_recently_processed(
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db)
):
    """The manager's latest approval actions."""
    return manager_service.get_recently_processed(current_user.id, db)


@router.post("/action-expense/{expense_id}", response_model=ExpenseActionResponse)
async def post_expense_action(
    expense_id: int,
    action_data: ExpenseAction,
    current_user: User = Depends(get_current_manager),
    db: Session = Depends(get_db)
):
    """Approve or reject an expense."""
    try:
        new_status = action_expense(
            db,
            expense_id=expense_id,
            action=action_data.action,
            approver_id=current_user.id,
            comments=action_data.comments,
            approved_amount=action_data.approved_amount,
            company_id=current_user.company_id
        )
    except InvalidActionError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid action specified."
        )
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found."
        )
    except DuplicateActionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except TransactionFailureError as e:
        logger.error(f"Action on expense {expense_id} by user {current_user.id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while processing the expense action."
        )

    return ExpenseActionResponse(
        message=f"Expense successfully {action_data.action.lower()}.",
        expense_id=expense_id,
        status=new_status
    )
