"""Precheck policies a deploy command must pass."""

from issueops.config import DeployConfig
from issueops.models.command import BareCommand, Command, Modifier, TargetedCommand
from issueops.models.deployment import PrecheckResult
from issueops.models.platform import CheckResult, PullRequestInfo, Review
from issueops.parsers.command import CommandPhrases, parse_command
from issueops.services.platform import PlatformClient
from issueops.utils.logging import get_logger

VALID_PERMISSIONS = ("admin", "maintain", "write")

APPROVED = "APPROVED"
CHANGES_REQUESTED = "CHANGES_REQUESTED"
REVIEW_REQUIRED = "REVIEW_REQUIRED"

CANNOT_PROCEED = "### ⚠️ Cannot proceed with deployment"


def review_decision(reviews: list[Review]) -> str:
    """Reduce reviews to a decision using each reviewer's latest verdict."""
    latest: dict[str, str] = {}
    for review in reviews:
        # Comments do not change a reviewer's verdict
        if review.state in (APPROVED, CHANGES_REQUESTED, "DISMISSED"):
            latest[review.user] = review.state

    verdicts = set(latest.values())
    if CHANGES_REQUESTED in verdicts:
        return CHANGES_REQUESTED
    if APPROVED in verdicts:
        return APPROVED
    return REVIEW_REQUIRED


def commit_status(checks: list[CheckResult], required_contexts: list[str]) -> str | None:
    """Aggregate CI state for a commit.

    Returns ``"SUCCESS"``, ``"FAILURE"``, ``"PENDING"`` or None when nothing
    reported and nothing is required.
    """
    if required_contexts:
        states = {check.name: check.state for check in checks}
        required_states = [states.get(name, "pending") for name in required_contexts]
        if "failure" in required_states:
            return "FAILURE"
        if "pending" in required_states:
            return "PENDING"
        return "SUCCESS"

    if not checks:
        return None
    states = {check.state for check in checks}
    if "failure" in states:
        return "FAILURE"
    if "pending" in states:
        return "PENDING"
    return "SUCCESS"


class PrecheckEngine:
    """Evaluates deploy policies in order and stops at the first violation.

    Order:
    1. actor permissions
    2. fork restriction
    3. stable branch deploys (skip the remaining checks)
    4. branch freshness against the base branch
    5. required CI checks
    6. required reviews
    """

    def __init__(self, platform: PlatformClient, config: DeployConfig):
        self.platform = platform
        self.config = config
        self.logger = get_logger("prechecks")

    async def validate_permissions(self, actor: str) -> str | None:
        """Return a rejection message, or None when the actor may run commands."""
        permission = await self.platform.get_permission(actor)
        if permission in VALID_PERMISSIONS:
            return None

        self.logger.info("prechecks.permission_denied", actor=actor, permission=permission)
        return (
            f"👋 __{actor}__, seems as if you have not "
            f"{'/'.join(VALID_PERMISSIONS)} permissions in this repo, "
            f"permissions: {permission}"
        )

    async def check(
        self,
        command: Command,
        issue_number: int,
        environment: str,
        actor: str,
    ) -> PrecheckResult:
        """Run every policy for ``command`` against the pull request."""
        noop_mode = command.is_noop

        denied = await self.validate_permissions(actor)
        if denied:
            return PrecheckResult(allowed=False, message=denied, noop_mode=noop_mode)

        pr = await self.platform.get_pull_request(issue_number)
        ref, sha = pr.head_ref, pr.head_sha

        if pr.is_fork:
            if not self.config.allow_forks:
                return self._reject(
                    f"{CANNOT_PROCEED}\n\nThis repository does not allow "
                    "deployments from forks",
                    ref,
                    sha,
                    noop_mode,
                )
            # Deploy the exact commit; fork branch names may collide with ours
            ref = sha

        if self._is_stable_deploy(command):
            self.logger.info("prechecks.stable_branch", ref=self.config.stable_branch)
            return PrecheckResult(
                allowed=True,
                message="✅ deployment to the __stable__ branch requested - OK",
                ref=self.config.stable_branch,
                sha="",
                noop_mode=noop_mode,
            )

        if pr.is_behind and self.config.update_branch != "disabled" and not noop_mode:
            return await self._branch_behind(pr, ref, sha, noop_mode)

        ci_skipped = environment in self.config.skip_ci_environments
        if not ci_skipped:
            checks = await self.platform.get_commit_checks(sha)
            status = commit_status(checks, self.config.required_context_list)
            if status == "FAILURE":
                return self._reject(
                    f"{CANNOT_PROCEED}\n\n- commitStatus: `{status}`\n\n"
                    "> Your pull request has failing CI checks",
                    ref,
                    sha,
                    noop_mode,
                )
            if status == "PENDING":
                return self._reject(
                    f"{CANNOT_PROCEED}\n\n- commitStatus: `{status}`\n\n"
                    "> CI checks must be passing in order to continue "
                    "(required checks are still running or have not reported)",
                    ref,
                    sha,
                    noop_mode,
                )

        if environment in self.config.skip_review_environments:
            message = "✅ reviews are not required for this environment - OK"
        else:
            decision = review_decision(await self.platform.list_reviews(issue_number))
            self.logger.debug("prechecks.review_decision", decision=decision)

            if decision == CHANGES_REQUESTED:
                return self._reject(
                    f"{CANNOT_PROCEED}\n\n- reviewDecision: `{decision}`\n\n"
                    "> Changes have been requested on this pull request",
                    ref,
                    sha,
                    noop_mode,
                )
            if decision == REVIEW_REQUIRED:
                if noop_mode:
                    message = "✅ **noop** requested - reviews are not required - OK"
                elif actor.lower() in self.config.admin_list:
                    message = "✅ approval bypassed as the actor is an admin - OK"
                else:
                    return self._reject(
                        f"{CANNOT_PROCEED}\n\n- reviewDecision: `{decision}`\n\n"
                        "> Your pull request needs to be approved before deploying",
                        ref,
                        sha,
                        noop_mode,
                    )
            else:
                message = "✅ PR is approved - OK"

        if ci_skipped:
            message += " (CI checks skipped for this environment)"

        self.logger.info(
            "prechecks.passed",
            ref=ref,
            sha=sha,
            environment=environment,
            noop=noop_mode,
        )
        return PrecheckResult(
            allowed=True, message=message, ref=ref, sha=sha, noop_mode=noop_mode
        )

    async def identical_commit_check(self, environment: str) -> bool:
        """True when the default branch HEAD is already deployed to ``environment``."""
        default_sha = await self.platform.get_default_branch_sha()
        deployed_sha = await self.platform.get_latest_deployment_sha(environment)
        identical = deployed_sha is not None and deployed_sha == default_sha

        self.logger.info(
            "prechecks.identical_commit_check",
            environment=environment,
            default_branch_sha=default_sha,
            deployed_sha=deployed_sha,
            identical=identical,
        )
        return identical

    def _is_stable_deploy(self, command: Command) -> bool:
        parsed = parse_command(
            command.raw_body,
            CommandPhrases(
                self.config.trigger,
                self.config.noop_trigger,
                self.config.stable_branch,
            ),
        )
        return (
            isinstance(parsed, (BareCommand, TargetedCommand))
            and parsed.modifier == Modifier.STABLE
        )

    async def _branch_behind(
        self,
        pr: PullRequestInfo,
        ref: str,
        sha: str,
        noop_mode: bool,
    ) -> PrecheckResult:
        if self.config.update_branch == "force":
            await self.platform.update_branch(pr.number)
            self.logger.info("prechecks.branch_updated", number=pr.number)
            return self._reject(
                f"{CANNOT_PROCEED}\n\n- update_branch: `force`\n\n"
                f"> I went ahead and updated your branch with `{pr.base_ref}` - "
                "Please try your deployment again",
                ref,
                sha,
                noop_mode,
            )

        return self._reject(
            f"{CANNOT_PROCEED}\n\nYour branch is behind the base branch and will "
            "need to be updated before deployments can continue.\n\n"
            "- mergeStateStatus: `BEHIND`\n- update_branch: `warn`\n\n"
            f"> Please ensure your branch is up to date with the `{pr.base_ref}` "
            "branch and try again",
            ref,
            sha,
            noop_mode,
        )

    def _reject(self, message: str, ref: str, sha: str, noop_mode: bool) -> PrecheckResult:
        self.logger.info("prechecks.rejected", ref=ref, sha=sha, reason=message.splitlines()[-1])
        return PrecheckResult(
            allowed=False, message=message, ref=ref, sha=sha, noop_mode=noop_mode
        )
