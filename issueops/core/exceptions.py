"""Custom exceptions for issueops."""

from typing import Any


class IssueOpsError(Exception):
    """Base exception for issueops."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MultipleCommandsError(IssueOpsError):
    """A comment activated more than one command."""

    def __init__(self, commands: list[str]):
        super().__init__(
            "IssueOps message contains multiple commands, only one is allowed",
            {"commands": commands},
        )
        self.commands = commands


class MissingInputError(IssueOpsError):
    """A required completion input is missing or empty."""

    def __init__(self, field: str):
        super().__init__(f"no {field} provided", {"field": field})
        self.field = field


class PlatformError(IssueOpsError):
    """A call to the hosting platform failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {"operation": operation}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(f"Platform call '{operation}' failed: {message}", details)
        self.operation = operation
        self.status_code = status_code


class InvalidTransitionError(IssueOpsError):
    """A run attempted a lifecycle transition that is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Invalid lifecycle transition: {current} -> {target}",
            {"current": current, "target": target},
        )


class RunNotFoundError(IssueOpsError):
    """Run not found."""

    def __init__(self, run_id: str):
        super().__init__(f"Run not found: {run_id}", {"run_id": run_id})


class RunAlreadyCompletedError(IssueOpsError):
    """The completion phase already ran for this run."""

    def __init__(self, run_id: str):
        super().__init__(f"Run already completed: {run_id}", {"run_id": run_id})


class WebhookValidationError(IssueOpsError):
    """Webhook delivery could not be authenticated."""

    pass
