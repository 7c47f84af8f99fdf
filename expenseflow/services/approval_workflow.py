"""
Approval workflow engine.

Every approve/reject action on an expense runs through ``action_expense``:
the action is appended to the approval history, then the expense is moved
according to its approval policy. Both happen in one transaction, so a
failure anywhere leaves neither the history row nor the expense update.

Policies (chosen when the expense is submitted, see ``initial_position``):
    - Sequential: the expense walks the steps of its rule in step_sequence
      order. Approving the last step approves the expense.
    - Quorum: the expense is approved once the number of approvals reaches
      the number of managers in the company. Each manager acts once.

A rejection by any manager rejects the expense immediately, whatever the
policy and however many approvals were already recorded.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from expenseflow.core.exceptions import (
    DuplicateActionError,
    InvalidActionError,
    NotFoundError,
    TransactionFailureError,
    WorkflowError,
)
from expenseflow.db.session import transaction_scope
from expenseflow.models.approval import ApprovalAction, ApprovalHistory, ApprovalRule, ApprovalStep, RuleType
from expenseflow.models.expense import ApprovalPolicy, Expense, ExpenseStatus
from expenseflow.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sequential:
    """Expense is routed through the ordered steps of a rule."""
    rule_id: Optional[int]
    current_step_id: Optional[int]


@dataclass(frozen=True)
class Quorum:
    """Expense needs ``required_count`` approvals."""
    required_count: int


WorkflowPolicy = Union[Sequential, Quorum]


def parse_action(action) -> ApprovalAction:
    """Validate a raw action value."""
    try:
        return ApprovalAction(action)
    except ValueError:
        raise InvalidActionError(f"Invalid action specified: {action!r}") from None


def first_step(db: Session, rule_id: int) -> Optional[ApprovalStep]:
    return db.query(ApprovalStep).filter(
        ApprovalStep.rule_id == rule_id
    ).order_by(ApprovalStep.step_sequence.asc()).first()


def next_step(db: Session, rule_id: int, step_sequence: int) -> Optional[ApprovalStep]:
    """Step of the rule with the smallest sequence greater than ``step_sequence``."""
    return db.query(ApprovalStep).filter(
        ApprovalStep.rule_id == rule_id,
        ApprovalStep.step_sequence > step_sequence
    ).order_by(ApprovalStep.step_sequence.asc()).first()


def initial_position(db: Session, company_id: int) -> Tuple[ApprovalPolicy, Optional[int], Optional[int]]:
    """
    Pick the policy, rule and first step for a newly submitted expense.

    The company's first sequential rule is used when it has at least one
    step. Otherwise the expense falls back to the quorum policy.

    Returns:
        (approval_policy, rule_id, current_step_id)
    """
    rule = db.query(ApprovalRule).filter(
        ApprovalRule.company_id == company_id,
        ApprovalRule.rule_type == RuleType.SEQUENTIAL
    ).order_by(ApprovalRule.id.asc()).first()

    if rule:
        step = first_step(db, rule.id)
        if step:
            return ApprovalPolicy.SEQUENTIAL, rule.id, step.id

    return ApprovalPolicy.QUORUM, None, None


def count_company_managers(db: Session, company_id: int) -> int:
    return db.query(func.count(User.id)).filter(
        User.company_id == company_id,
        User.role == UserRole.MANAGER
    ).scalar() or 0


def resolve_policy(db: Session, expense: Expense) -> WorkflowPolicy:
    """Build the policy variant for an expense from its stored discriminant."""
    if expense.approval_policy == ApprovalPolicy.SEQUENTIAL:
        return Sequential(rule_id=expense.rule_id, current_step_id=expense.current_step_id)
    return Quorum(required_count=count_company_managers(db, expense.company_id))


def get_current_amount(db: Session, expense_id: int) -> Decimal:
    """Amount as currently stored, read inside the caller's transaction."""
    return db.query(Expense.amount).filter(Expense.id == expense_id).scalar()


def record_action(
    db: Session,
    expense: Expense,
    approver_id: int,
    action: ApprovalAction,
    comments: Optional[str] = None,
    approved_amount: Optional[Decimal] = None
) -> ApprovalHistory:
    """Append a history entry and flush it so later counts include it."""
    entry = ApprovalHistory(
        expense_id=expense.id,
        approver_id=approver_id,
        action=action,
        step_approved_amount=approved_amount if action == ApprovalAction.APPROVED else None,
        comments=comments or None
    )
    db.add(entry)
    db.flush()
    return entry


def _resolve_approved(db: Session, expense: Expense, approved_amount: Optional[Decimal]) -> None:
    if approved_amount is None:
        approved_amount = get_current_amount(db, expense.id)
    expense.status = ExpenseStatus.APPROVED
    expense.approved_amount = approved_amount
    expense.current_step_id = None
    logger.info(f"Expense {expense.id} approved for {approved_amount}")


def _reject(expense: Expense) -> None:
    expense.status = ExpenseStatus.REJECTED
    expense.approved_amount = Decimal("0")
    expense.current_step_id = None
    logger.info(f"Expense {expense.id} rejected")


def _approve_sequential(
    db: Session,
    expense: Expense,
    policy: Sequential,
    approved_amount: Optional[Decimal]
) -> None:
    if policy.rule_id is None or policy.current_step_id is None:
        raise TransactionFailureError(f"Expense {expense.id} has no current approval step")

    current = db.query(ApprovalStep).filter(ApprovalStep.id == policy.current_step_id).first()
    if current is None:
        raise TransactionFailureError(
            f"Approval step {policy.current_step_id} of expense {expense.id} does not exist"
        )

    following = next_step(db, policy.rule_id, current.step_sequence)
    if following is not None:
        expense.current_step_id = following.id
        logger.info(
            f"Expense {expense.id} advanced from step {current.step_sequence} to {following.step_sequence}"
        )
        return

    _resolve_approved(db, expense, approved_amount)


def _approve_quorum(
    db: Session,
    expense: Expense,
    policy: Quorum,
    approver_id: int,
    approved_amount: Optional[Decimal]
) -> None:
    own_actions = db.query(func.count(ApprovalHistory.id)).filter(
        ApprovalHistory.expense_id == expense.id,
        ApprovalHistory.approver_id == approver_id
    ).scalar()
    # The entry for this action is already flushed, so one row is expected
    if own_actions > 1:
        raise DuplicateActionError("You have already actioned this expense.")

    approvals = db.query(func.count(ApprovalHistory.id)).filter(
        ApprovalHistory.expense_id == expense.id,
        ApprovalHistory.action == ApprovalAction.APPROVED
    ).scalar()

    if approvals >= policy.required_count:
        _resolve_approved(db, expense, approved_amount)
    else:
        logger.info(f"Expense {expense.id} has {approvals}/{policy.required_count} approvals")


def apply_transition(
    db: Session,
    expense: Expense,
    action: ApprovalAction,
    approver_id: int,
    approved_amount: Optional[Decimal] = None
) -> ExpenseStatus:
    """Move the expense after ``action`` has been recorded."""
    if action == ApprovalAction.REJECTED:
        _reject(expense)
        return expense.status

    policy = resolve_policy(db, expense)
    if isinstance(policy, Sequential):
        _approve_sequential(db, expense, policy, approved_amount)
    else:
        _approve_quorum(db, expense, policy, approver_id, approved_amount)
    return expense.status


def action_expense(
    db: Session,
    expense_id: int,
    action,
    approver_id: int,
    comments: Optional[str] = None,
    approved_amount: Optional[Decimal] = None,
    company_id: Optional[int] = None
) -> ExpenseStatus:
    """
    Approve or reject an expense on behalf of a manager.

    The caller is trusted to be a manager; role checks happen in the API
    layer. The history insert and the expense update commit together.

    Args:
        db: Session whose transaction the action runs in
        expense_id: Expense to act on
        action: "Approved" or "Rejected"
        approver_id: Acting manager
        comments: Optional free text stored with the history entry
        approved_amount: Amount to approve; defaults to the expense amount
            when the action resolves the expense
        company_id: Company the caller belongs to; expenses of other
            companies are reported as not found

    Returns:
        Status of the expense after the action

    Raises:
        InvalidActionError: action is not recognised
        NotFoundError: expense does not exist or belongs to another company
        DuplicateActionError: manager already acted under the quorum policy
        TransactionFailureError: any other lookup or write failure
    """
    parsed_action = parse_action(action)

    try:
        with transaction_scope(db):
            query = db.query(Expense).filter(Expense.id == expense_id)
            if company_id is not None:
                query = query.filter(Expense.company_id == company_id)
            expense = query.first()
            if expense is None:
                raise NotFoundError(f"Expense {expense_id} not found")

            record_action(db, expense, approver_id, parsed_action, comments, approved_amount)
            status = apply_transition(db, expense, parsed_action, approver_id, approved_amount)
    except WorkflowError:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Error actioning expense {expense_id}: {e}", exc_info=True)
        raise TransactionFailureError("Server error while processing the expense action.") from e

    return status
