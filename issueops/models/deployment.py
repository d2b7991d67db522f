"""Deployment data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

# Marker GitHub returns when a deployment request merged the base branch first
AUTO_MERGE_MARKER = "Auto-merged"


class DeploymentStatus(str, Enum):
    """Platform-side deployment status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"


class EnvironmentTarget(BaseModel):
    """Resolved deployment environment."""

    name: str
    url: str | None = None

    @field_validator("url")
    @classmethod
    def _check_scheme(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("environment url must use http:// or https://")
        return value


class PrecheckResult(BaseModel):
    """Outcome of the precheck policies for one command."""

    allowed: bool
    message: str
    ref: str = ""
    sha: str = ""
    noop_mode: bool = False

    @field_validator("message")
    @classmethod
    def _require_reason(cls, value: str, info: ValidationInfo) -> str:
        if not info.data.get("allowed", True) and not value.strip():
            raise ValueError("a rejected precheck must explain why")
        return value


class DeploymentRequest(BaseModel):
    """Payload for creating a deployment."""

    ref: str
    auto_merge: bool = True
    required_contexts: list[str] = Field(default_factory=list)
    environment: str
    production_environment: bool = False
    payload: dict[str, Any] = Field(default_factory=lambda: {"type": "branch-deploy"})


class DeploymentResponse(BaseModel):
    """Platform reply to a deployment creation request."""

    id: int | None = None
    message: str | None = None

    @property
    def requires_merge(self) -> bool:
        """True when the base branch had to be merged and no deployment exists."""
        return self.id is None and AUTO_MERGE_MARKER in (self.message or "")


class DeploymentRecord(BaseModel):
    """A deployment owned by one run."""

    id: int
    ref: str
    environment: str
    environment_url: str | None = None
    production_environment: bool = False
    auto_merge: bool = True
    required_contexts: list[str] = Field(default_factory=list)
    status: DeploymentStatus = DeploymentStatus.PENDING
