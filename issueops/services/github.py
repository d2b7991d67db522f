"""GitHub REST implementation of the platform client."""

import hashlib
import hmac
from typing import Any

import httpx

from issueops.config import settings
from issueops.core.exceptions import PlatformError, WebhookValidationError
from issueops.models.deployment import (
    DeploymentRequest,
    DeploymentResponse,
    DeploymentStatus,
)
from issueops.models.platform import CheckResult, CheckState, PullRequestInfo, Review
from issueops.services.platform import PlatformClient

API_VERSION = "2022-11-28"

# Check run conclusions that do not block a deployment
PASSING_CONCLUSIONS = {"success", "neutral", "skipped"}


def _headers(token: str) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _status_state(state: str) -> CheckState:
    if state == "success":
        return "success"
    if state == "pending":
        return "pending"
    return "failure"


def _check_run_state(run: dict[str, Any]) -> CheckState:
    if run.get("status") != "completed":
        return "pending"
    if run.get("conclusion") in PASSING_CONCLUSIONS:
        return "success"
    return "failure"


class GitHubClient(PlatformClient):
    """Talks to the GitHub REST API with httpx."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(owner, repo)
        self._client = httpx.AsyncClient(
            base_url=api_url or settings.github_api_url,
            headers=_headers(settings.github_token if token is None else token),
            timeout=settings.github_timeout_seconds,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "github"

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, turning transport and HTTP failures into PlatformError."""
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "github.request_failed",
                operation=operation,
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            raise PlatformError(
                operation,
                e.response.text[:200] or str(e),
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            self.logger.error("github.transport_failed", operation=operation, error=str(e))
            raise PlatformError(operation, str(e)) from e
        return response

    async def create_comment(self, issue_number: int, body: str) -> int:
        response = await self._request(
            "create_comment",
            "POST",
            f"{self._repo_path}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return int(response.json()["id"])

    async def add_reaction(self, comment_id: int, content: str) -> int:
        response = await self._request(
            "add_reaction",
            "POST",
            f"{self._repo_path}/issues/comments/{comment_id}/reactions",
            json={"content": content},
        )
        return int(response.json()["id"])

    async def remove_reaction(self, comment_id: int, reaction_id: int) -> None:
        await self._request(
            "remove_reaction",
            "DELETE",
            f"{self._repo_path}/issues/comments/{comment_id}/reactions/{reaction_id}",
        )

    async def create_deployment(self, request: DeploymentRequest) -> DeploymentResponse:
        response = await self._request(
            "create_deployment",
            "POST",
            f"{self._repo_path}/deployments",
            json=request.model_dump(),
        )
        # 202 Accepted carries a message instead of a deployment (base branch merged)
        data = response.json()
        return DeploymentResponse(id=data.get("id"), message=data.get("message"))

    async def set_deployment_status(
        self,
        deployment_id: int,
        ref: str,
        state: DeploymentStatus,
        environment: str,
        environment_url: str | None = None,
    ) -> None:
        payload: dict[str, Any] = {"state": state.value, "environment": environment}
        if environment_url:
            payload["environment_url"] = environment_url

        await self._request(
            "set_deployment_status",
            "POST",
            f"{self._repo_path}/deployments/{deployment_id}/statuses",
            json=payload,
        )
        self.logger.info(
            "github.deployment_status",
            deployment_id=deployment_id,
            ref=ref,
            state=state.value,
        )

    async def get_permission(self, username: str) -> str:
        response = await self._request(
            "get_permission",
            "GET",
            f"{self._repo_path}/collaborators/{username}/permission",
        )
        return response.json().get("permission", "none")

    async def get_pull_request(self, number: int) -> PullRequestInfo:
        response = await self._request(
            "get_pull_request", "GET", f"{self._repo_path}/pulls/{number}"
        )
        data = response.json()
        head_repo = data["head"].get("repo") or {}
        return PullRequestInfo(
            number=number,
            head_ref=data["head"]["ref"],
            head_sha=data["head"]["sha"],
            base_ref=data["base"]["ref"],
            is_fork=bool(head_repo.get("fork")),
            mergeable_state=data.get("mergeable_state"),
        )

    async def list_reviews(self, number: int) -> list[Review]:
        response = await self._request(
            "list_reviews",
            "GET",
            f"{self._repo_path}/pulls/{number}/reviews",
            params={"per_page": 100},
        )
        return [
            Review(user=(item.get("user") or {}).get("login", ""), state=item["state"])
            for item in response.json()
        ]

    async def get_commit_checks(self, ref: str) -> list[CheckResult]:
        status_response = await self._request(
            "get_commit_status", "GET", f"{self._repo_path}/commits/{ref}/status"
        )
        runs_response = await self._request(
            "get_check_runs",
            "GET",
            f"{self._repo_path}/commits/{ref}/check-runs",
            params={"per_page": 100},
        )

        checks = [
            CheckResult(name=status["context"], state=_status_state(status["state"]))
            for status in status_response.json().get("statuses", [])
        ]
        checks.extend(
            CheckResult(name=run["name"], state=_check_run_state(run))
            for run in runs_response.json().get("check_runs", [])
        )
        return checks

    async def update_branch(self, number: int) -> None:
        await self._request(
            "update_branch", "PUT", f"{self._repo_path}/pulls/{number}/update-branch"
        )

    async def get_default_branch_sha(self) -> str:
        repo_response = await self._request("get_repository", "GET", self._repo_path)
        branch = repo_response.json()["default_branch"]
        commit_response = await self._request(
            "get_branch_commit", "GET", f"{self._repo_path}/commits/{branch}"
        )
        return commit_response.json()["sha"]

    async def get_latest_deployment_sha(self, environment: str) -> str | None:
        response = await self._request(
            "list_deployments",
            "GET",
            f"{self._repo_path}/deployments",
            params={"environment": environment, "per_page": 1},
        )
        deployments = response.json()
        if not deployments:
            return None
        return deployments[0].get("sha")


def verify_signature(payload: bytes, signature: str | None, secret: str) -> None:
    """Check the ``X-Hub-Signature-256`` header of a webhook delivery.

    Deliveries are accepted unsigned when no secret is configured.
    """
    if not secret:
        return
    if not signature:
        raise WebhookValidationError("Missing webhook signature")

    expected = "sha256=" + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, signature):
        raise WebhookValidationError("Invalid webhook signature")
