"""Run state models shared by the begin and completion phases."""

from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from issueops.core.exceptions import InvalidTransitionError
from issueops.models.deployment import DeploymentRecord


class DeployMode(str, Enum):
    """How a run deploys."""

    NORMAL = "normal"
    NOOP = "noop"
    MERGE_DEPLOY = "merge_deploy"


class LifecycleState(str, Enum):
    """Lifecycle of a single run."""

    IDLE = "idle"
    CLASSIFIED = "classified"
    ENVIRONMENT_RESOLVED = "environment_resolved"
    PRECHECKED = "prechecked"
    DEPLOY_CREATED = "deploy_created"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"
    SAFE_EXIT = "safe_exit"
    ERROR = "error"


TERMINAL_STATES = frozenset(
    {
        LifecycleState.SUCCESS,
        LifecycleState.FAILURE,
        LifecycleState.SAFE_EXIT,
        LifecycleState.ERROR,
    }
)

ALLOWED_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.IDLE: frozenset(
        {LifecycleState.CLASSIFIED, LifecycleState.SAFE_EXIT, LifecycleState.ERROR}
    ),
    LifecycleState.CLASSIFIED: frozenset(
        {
            LifecycleState.ENVIRONMENT_RESOLVED,
            LifecycleState.SAFE_EXIT,
            # help requested without permission
            LifecycleState.FAILURE,
            LifecycleState.ERROR,
        }
    ),
    LifecycleState.ENVIRONMENT_RESOLVED: frozenset(
        {LifecycleState.PRECHECKED, LifecycleState.FAILURE, LifecycleState.ERROR}
    ),
    LifecycleState.PRECHECKED: frozenset(
        {
            LifecycleState.DEPLOY_CREATED,
            LifecycleState.SUCCESS,
            LifecycleState.SAFE_EXIT,
            LifecycleState.ERROR,
        }
    ),
    LifecycleState.DEPLOY_CREATED: frozenset(
        {LifecycleState.IN_PROGRESS, LifecycleState.ERROR}
    ),
    LifecycleState.IN_PROGRESS: frozenset(
        {LifecycleState.SUCCESS, LifecycleState.FAILURE, LifecycleState.ERROR}
    ),
}


class StateTransition(BaseModel):
    """One recorded lifecycle step."""

    state: LifecycleState
    at: datetime = Field(default_factory=datetime.utcnow)


class RunState(BaseModel):
    """Everything the completion phase needs to know about a run."""

    run_id: str = Field(default_factory=lambda: uuid4().hex)
    state: LifecycleState = LifecycleState.IDLE
    mode: DeployMode = DeployMode.NORMAL
    bypass: bool = False

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    # Triggering comment
    owner: str = ""
    repo: str = ""
    issue_number: int | None = None
    comment_id: int | None = None
    reaction_id: int | None = None
    actor: str = ""

    # Deployment
    environment: str | None = None
    environment_url: str | None = None
    ref: str | None = None
    sha: str | None = None
    deployment: DeploymentRecord | None = None
    noop: bool | None = None

    # Reporting
    message: str | None = None
    error: str | None = None
    outputs: dict[str, str] = Field(default_factory=dict)
    history: list[StateTransition] = Field(default_factory=list)

    @property
    def deployment_id(self) -> int | None:
        return self.deployment.id if self.deployment else None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def triggered(self) -> bool:
        """Whether the comment was classified as a command."""
        return any(step.state == LifecycleState.CLASSIFIED for step in self.history)

    def transition(self, target: LifecycleState) -> None:
        """Move to ``target`` or raise if the lifecycle does not allow it."""
        if target not in ALLOWED_TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransitionError(self.state.value, target.value)

        self.state = target
        self.history.append(StateTransition(state=target))
        self.updated_at = datetime.utcnow()

    def fail(self, error: str) -> None:
        """Move to the error state from wherever the run is."""
        if self.state != LifecycleState.ERROR:
            self.state = LifecycleState.ERROR
            self.history.append(StateTransition(state=LifecycleState.ERROR))
        self.error = error
        self.bypass = True
        self.updated_at = datetime.utcnow()

    def set_output(self, name: str, value: object) -> None:
        self.outputs[name] = "null" if value is None else str(value)


RunResultStatus = Literal[
    "success",
    "success - noop",
    "success - merge deploy mode",
    "failure",
    "safe-exit",
]


class RunResult(BaseModel):
    """Outcome of the begin phase."""

    result: RunResultStatus
    run: RunState
    stored: bool = True


class CompletionRequest(BaseModel):
    """Verdict reported by the job that performed the deployment."""

    status: str = ""
    message: str | None = None
    environment_url_in_comment: bool | None = None


class CompletionReport(BaseModel):
    """Outcome of the completion phase."""

    result: Literal["success", "success - noop", "bypassed"]
    success: bool = False
    body: str = ""


class FormattedMessage(BaseModel):
    """A user-facing message and whether it reports success."""

    body: str
    success: bool
