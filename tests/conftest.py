"""Pytest configuration and fixtures."""

import logging
from typing import Any

import pytest
import structlog
from httpx import ASGITransport, AsyncClient

from issueops.api.deps import get_deploy_config, get_platform_factory, get_store
from issueops.config import DeployConfig
from issueops.core.exceptions import PlatformError
from issueops.core.lifecycle import LifecycleController
from issueops.core.session import RunStore
from issueops.main import app
from issueops.models.deployment import (
    DeploymentRequest,
    DeploymentResponse,
    DeploymentStatus,
)
from issueops.models.event import TriggerEvent
from issueops.models.platform import CheckResult, PullRequestInfo, Review
from issueops.services.platform import PlatformClient
from issueops.utils.logging import configure_logging


class FakePlatform(PlatformClient):
    """In-memory platform that records every call."""

    def __init__(self, owner: str = "octo-org", repo: str = "octo-repo"):
        super().__init__(owner, repo)
        self.calls: list[str] = []
        self.comments: list[tuple[int, str]] = []
        self.reactions: list[tuple[int, str]] = []
        self.removed_reactions: list[tuple[int, int]] = []
        self.deployments: list[DeploymentRequest] = []
        self.deployment_statuses: list[dict[str, Any]] = []
        self.branch_updates: list[int] = []

        # Canned responses
        self.permission = "write"
        self.pull_request = PullRequestInfo(
            number=1,
            head_ref="cool-feature",
            head_sha="abc123",
            base_ref="main",
            mergeable_state="clean",
        )
        self.reviews = [Review(user="reviewer", state="APPROVED")]
        self.checks = [CheckResult(name="test", state="success")]
        self.deployment_response = DeploymentResponse(id=123)
        self.default_branch_sha = "def456"
        self.latest_deployment_sha: str | None = None
        self.fail_on: set[str] = set()

        self._next_id = 1000

    @property
    def name(self) -> str:
        return "fake"

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise PlatformError(operation, "boom", status_code=500)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def create_comment(self, issue_number: int, body: str) -> int:
        self._record("create_comment")
        self.comments.append((issue_number, body))
        return self._new_id()

    async def add_reaction(self, comment_id: int, content: str) -> int:
        self._record("add_reaction")
        self.reactions.append((comment_id, content))
        return self._new_id()

    async def remove_reaction(self, comment_id: int, reaction_id: int) -> None:
        self._record("remove_reaction")
        self.removed_reactions.append((comment_id, reaction_id))

    async def create_deployment(self, request: DeploymentRequest) -> DeploymentResponse:
        self._record("create_deployment")
        self.deployments.append(request)
        return self.deployment_response

    async def set_deployment_status(
        self,
        deployment_id: int,
        ref: str,
        state: DeploymentStatus,
        environment: str,
        environment_url: str | None = None,
    ) -> None:
        self._record("set_deployment_status")
        self.deployment_statuses.append(
            {
                "deployment_id": deployment_id,
                "ref": ref,
                "state": state,
                "environment": environment,
                "environment_url": environment_url,
            }
        )

    async def get_permission(self, username: str) -> str:
        self._record("get_permission")
        return self.permission

    async def get_pull_request(self, number: int) -> PullRequestInfo:
        self._record("get_pull_request")
        return self.pull_request

    async def list_reviews(self, number: int) -> list[Review]:
        self._record("list_reviews")
        return self.reviews

    async def get_commit_checks(self, ref: str) -> list[CheckResult]:
        self._record("get_commit_checks")
        return self.checks

    async def update_branch(self, number: int) -> None:
        self._record("update_branch")
        self.branch_updates.append(number)

    async def get_default_branch_sha(self) -> str:
        self._record("get_default_branch_sha")
        return self.default_branch_sha

    async def get_latest_deployment_sha(self, environment: str) -> str | None:
        self._record("get_latest_deployment_sha")
        return self.latest_deployment_sha


@pytest.fixture
def platform() -> FakePlatform:
    """A fresh fake platform."""
    return FakePlatform()


@pytest.fixture
def deploy_config() -> DeployConfig:
    """Default deploy inputs."""
    return DeployConfig()


@pytest.fixture
def store() -> RunStore:
    """A fresh in-memory run store."""
    return RunStore()


@pytest.fixture
def controller(
    platform: FakePlatform, deploy_config: DeployConfig, store: RunStore
) -> LifecycleController:
    return LifecycleController(platform, deploy_config, store=store)


@pytest.fixture
def make_event():
    """Build a pull request comment event."""

    def _make(body: str, **overrides: Any) -> TriggerEvent:
        fields: dict[str, Any] = {
            "event": "issue_comment",
            "action": "created",
            "owner": "octo-org",
            "repo": "octo-repo",
            "issue_number": 1,
            "is_pull_request": True,
            "comment_id": 42,
            "body": body,
            "actor": "monalisa",
        }
        fields.update(overrides)
        return TriggerEvent(**fields)

    return _make


@pytest.fixture
def comment_payload():
    """Build a GitHub issue_comment webhook payload."""

    def _make(body: str, pull_request: bool = True) -> dict[str, Any]:
        issue: dict[str, Any] = {"number": 1}
        if pull_request:
            issue["pull_request"] = {"url": "https://api.github.com/repos/octo-org/octo-repo/pulls/1"}
        return {
            "action": "created",
            "issue": issue,
            "comment": {"id": 42, "body": body, "user": {"login": "monalisa"}},
            "repository": {"name": "octo-repo", "owner": {"login": "octo-org"}},
            "sender": {"login": "monalisa"},
        }

    return _make


@pytest.fixture
async def client(platform: FakePlatform, deploy_config: DeployConfig, store: RunStore):
    """Async test client wired to the fake platform and a fresh run store."""

    async def _store() -> RunStore:
        return store

    async def _factory():
        return lambda owner, repo: platform

    async def _config() -> DeployConfig:
        return deploy_config

    app.dependency_overrides[get_store] = _store
    app.dependency_overrides[get_platform_factory] = _factory
    app.dependency_overrides[get_deploy_config] = _config

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def production_logging():
    """Structlog configured the way the application configures it at startup."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    configure_logging()
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
