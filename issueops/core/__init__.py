"""Core functionality for issueops."""

from issueops.core.exceptions import (
    InvalidTransitionError,
    IssueOpsError,
    MissingInputError,
    MultipleCommandsError,
    PlatformError,
    RunAlreadyCompletedError,
    RunNotFoundError,
    WebhookValidationError,
)

__all__ = [
    "IssueOpsError",
    "InvalidTransitionError",
    "MissingInputError",
    "MultipleCommandsError",
    "PlatformError",
    "RunAlreadyCompletedError",
    "RunNotFoundError",
    "WebhookValidationError",
]
