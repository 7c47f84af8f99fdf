"""
Errors raised by the approval workflow.
"""


class WorkflowError(Exception):
    """Base class for failures of an expense action."""


class NotFoundError(WorkflowError):
    """The expense does not exist."""


class InvalidActionError(WorkflowError):
    """The action is neither Approved nor Rejected."""


class DuplicateActionError(WorkflowError):
    """The manager already actioned this expense under the quorum policy."""


class TransactionFailureError(WorkflowError):
    """A lookup or write failed; the whole action was rolled back."""
