"""Platform client interface.

The lifecycle only talks to the hosting platform through this class, so a
fake implementation can stand in for tests.
"""

from abc import ABC, abstractmethod
from typing import Callable

from issueops.models.deployment import (
    DeploymentRequest,
    DeploymentResponse,
    DeploymentStatus,
)
from issueops.models.platform import CheckResult, PullRequestInfo, Review
from issueops.utils.logging import get_logger

DEFAULT_FAILURE_MESSAGE = "Unknown error, [check logs]({log_url}) for more details."


class PlatformClient(ABC):
    """Base class for clients of the hosting platform.

    Implementations are bound to one repository and provide:
    - comment and reaction primitives
    - deployment creation and status updates
    - the reads needed by prechecks
    """

    def __init__(self, owner: str, repo: str):
        self.owner = owner
        self.repo = repo
        self.logger = get_logger(f"platform.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform identifier."""
        pass

    @abstractmethod
    async def create_comment(self, issue_number: int, body: str) -> int:
        """Comment on an issue or pull request, returning the comment id."""
        pass

    @abstractmethod
    async def add_reaction(self, comment_id: int, content: str) -> int:
        """React to a comment, returning the reaction id."""
        pass

    @abstractmethod
    async def remove_reaction(self, comment_id: int, reaction_id: int) -> None:
        pass

    @abstractmethod
    async def create_deployment(self, request: DeploymentRequest) -> DeploymentResponse:
        pass

    @abstractmethod
    async def set_deployment_status(
        self,
        deployment_id: int,
        ref: str,
        state: DeploymentStatus,
        environment: str,
        environment_url: str | None = None,
    ) -> None:
        pass

    @abstractmethod
    async def get_permission(self, username: str) -> str:
        """Repository permission of a user (admin, maintain, write, ...)."""
        pass

    @abstractmethod
    async def get_pull_request(self, number: int) -> PullRequestInfo:
        pass

    @abstractmethod
    async def list_reviews(self, number: int) -> list[Review]:
        pass

    @abstractmethod
    async def get_commit_checks(self, ref: str) -> list[CheckResult]:
        """Commit statuses and check runs reported for a ref."""
        pass

    @abstractmethod
    async def update_branch(self, number: int) -> None:
        """Merge the base branch into the pull request branch."""
        pass

    @abstractmethod
    async def get_default_branch_sha(self) -> str:
        pass

    @abstractmethod
    async def get_latest_deployment_sha(self, environment: str) -> str | None:
        pass

    async def aclose(self) -> None:
        """Release any resources held by the client."""
        pass

    async def action_status(
        self,
        issue_number: int,
        comment_id: int,
        reaction_id: int | None,
        message: str,
        success: bool = False,
        log_url: str | None = None,
    ) -> None:
        """Report a result on the triggering comment.

        Posts ``message`` as a comment, swaps the initial reaction for a
        success or failure reaction.
        """
        if not message:
            message = DEFAULT_FAILURE_MESSAGE.format(log_url=log_url or "")

        await self.create_comment(issue_number, message)
        await self.add_reaction(comment_id, "rocket" if success else "-1")
        if reaction_id is not None:
            await self.remove_reaction(comment_id, reaction_id)

        self.logger.info(
            "platform.action_status",
            issue_number=issue_number,
            success=success,
        )


PlatformFactory = Callable[[str, str], PlatformClient]
