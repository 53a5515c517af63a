class WorkflowError(Exception):
    """Base exception for workflow orchestration errors."""


class WorkflowTransitionError(WorkflowError):
    """Raised when a command is not valid in the current phase."""
