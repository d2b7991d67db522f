"""Data models for issueops."""

from issueops.models.command import (
    BareCommand,
    Command,
    CommandKind,
    Modifier,
    ParsedCommand,
    TargetedCommand,
    UnrecognizedCommand,
)
from issueops.models.deployment import (
    DeploymentRecord,
    DeploymentRequest,
    DeploymentResponse,
    DeploymentStatus,
    EnvironmentTarget,
    PrecheckResult,
)
from issueops.models.event import TriggerEvent
from issueops.models.platform import CheckResult, PullRequestInfo, Review
from issueops.models.run import (
    CompletionReport,
    CompletionRequest,
    DeployMode,
    FormattedMessage,
    LifecycleState,
    RunResult,
    RunState,
)

__all__ = [
    # Command models
    "Command",
    "CommandKind",
    "Modifier",
    "ParsedCommand",
    "BareCommand",
    "TargetedCommand",
    "UnrecognizedCommand",
    # Deployment models
    "DeploymentRecord",
    "DeploymentRequest",
    "DeploymentResponse",
    "DeploymentStatus",
    "EnvironmentTarget",
    "PrecheckResult",
    # Platform models
    "TriggerEvent",
    "CheckResult",
    "PullRequestInfo",
    "Review",
    # Run models
    "CompletionReport",
    "CompletionRequest",
    "DeployMode",
    "FormattedMessage",
    "LifecycleState",
    "RunResult",
    "RunState",
]
