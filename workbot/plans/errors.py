"""Boundary error types for plan parsing, resolution and commit.

Failures inside the date engine are data, not exceptions. These types
cover the boundaries where a request as a whole has to be rejected:
- InvalidCommandError: the command text is empty or too long
- PlanParseError: proposer output is not a usable JSON plan
- EmptyPlanError: the plan carries no actions
- TargetUserForbiddenError: the plan tries to edit someone else's schedule
- CommitBatchError: the commit request is empty or over the batch cap
- CommitAbortedError: storage failed and the whole commit was rolled back
"""


class WorkbotError(Exception):
    """Base exception for workbot errors.

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PlanParseError(WorkbotError):
    """Raised when the proposer response cannot be turned into a plan.

    Attributes:
        raw: Leading part of the raw response, for diagnostics
    """

    def __init__(self, raw: str = "") -> None:
        self.raw = raw[:500]
        super().__init__("Could not understand the command. Please try rephrasing it.")


class EmptyPlanError(WorkbotError):
    """Raised when a plan has no actions."""

    def __init__(self) -> None:
        super().__init__("No actions could be extracted from the command. Please be more specific.")


class TargetUserForbiddenError(WorkbotError):
    """Raised when a plan targets a user other than the caller."""

    def __init__(self, target_user: str) -> None:
        self.target_user = target_user
        super().__init__(
            f"You can only update your own schedule. You cannot modify {target_user}'s calendar."
        )


class CommitBatchError(WorkbotError):
    """Raised when a commit request is empty or too large."""

    pass


class CommitAbortedError(WorkbotError):
    """Raised when storage fails mid-commit and every change is rolled back.

    Attributes:
        original_error: Storage exception that aborted the transaction
    """

    def __init__(self, original_error: Exception) -> None:
        self.original_error = original_error
        super().__init__(f"Commit aborted, no changes were saved: {type(original_error).__name__}")


class InvalidCommandError(WorkbotError):
    """Raised when a command is empty after sanitising or too long."""

    pass
