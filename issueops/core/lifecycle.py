"""Deployment lifecycle controller.

Drives a deploy command from the triggering comment to an in-progress
deployment (``begin``), and later records the final result (``complete``).

Begin phase:
1. classify the comment
2. resolve the target environment
3. run prechecks
4. create the deployment and mark it in progress

The completion phase runs in a separate request once the deployment job
reports back, using the ``RunState`` saved by the begin phase.
"""

from datetime import datetime

from structlog.contextvars import bound_contextvars

from issueops.config import DeployConfig
from issueops.core.environments import environment_targets
from issueops.core.exceptions import (
    MissingInputError,
    MultipleCommandsError,
    PlatformError,
    RunAlreadyCompletedError,
)
from issueops.core.prechecks import PrecheckEngine
from issueops.core.reporter import (
    format_deployment_result,
    format_help,
    format_merge_required,
    format_missing_environment,
    format_triggered_comment,
)
from issueops.core.session import RunStore, get_run_store
from issueops.models.command import Command, CommandKind
from issueops.models.deployment import (
    DeploymentRecord,
    DeploymentRequest,
    DeploymentStatus,
)
from issueops.models.event import TriggerEvent
from issueops.models.run import (
    CompletionReport,
    CompletionRequest,
    DeployMode,
    LifecycleState,
    RunResult,
    RunResultStatus,
    RunState,
)
from issueops.parsers.command import classify
from issueops.services.platform import DEFAULT_FAILURE_MESSAGE, PlatformClient
from issueops.utils.logging import get_logger


class LifecycleController:
    """Runs the begin and completion phases of a deployment."""

    def __init__(
        self,
        platform: PlatformClient,
        config: DeployConfig,
        store: RunStore | None = None,
        run_url_template: str | None = None,
    ):
        self.platform = platform
        self.config = config
        self.store = store or get_run_store()
        self.run_url_template = run_url_template
        self.prechecks = PrecheckEngine(platform, config)
        self.logger = get_logger("lifecycle")

    def _log_url(self, run: RunState) -> str | None:
        if not self.run_url_template:
            return None
        return self.run_url_template.format(run_id=run.run_id)

    async def begin(self, event: TriggerEvent) -> RunResult:
        """Handle a triggering event.

        Never raises for platform failures: the run is marked as errored,
        bypass is set and ``failure`` is returned.
        """
        run = RunState(
            owner=event.owner,
            repo=event.repo,
            issue_number=event.issue_number,
            comment_id=event.comment_id,
            actor=event.actor,
        )
        with bound_contextvars(run_id=run.run_id):
            self.logger.info(
                "lifecycle.begin.started",
                repo=f"{event.owner}/{event.repo}",
                issue_number=event.issue_number,
            )

            try:
                result = await self._begin(run, event)
            except MultipleCommandsError as e:
                run.set_output("triggered", "false")
                run.fail(e.message)
                self.logger.warning("lifecycle.multiple_commands", body=event.body)
                result = "failure"
            except Exception as e:
                self.logger.exception("lifecycle.begin.failed")
                run.fail(str(e))
                result = "failure"
                if run.reaction_id is not None:
                    await self._report_failure(run)

            # Comments that never reached a command leave nothing to complete
            stored = run.triggered or run.state != LifecycleState.SAFE_EXIT
            if stored:
                await self.store.save(run)
            self.logger.info(
                "lifecycle.begin.completed",
                result=result,
                state=run.state.value,
                bypass=run.bypass,
            )
        return RunResult(result=result, run=run, stored=stored)

    async def _report_failure(self, run: RunState) -> None:
        message = DEFAULT_FAILURE_MESSAGE.format(log_url=self._log_url(run) or "")
        try:
            await self._report(run, message)
        except PlatformError as e:
            self.logger.error("lifecycle.failure_report_failed", error=e.message)

    async def _begin(self, run: RunState, event: TriggerEvent) -> RunResultStatus:
        config = self.config

        if config.merge_deploy_mode:
            return await self._merge_deploy(run)

        if not event.is_pull_request_comment:
            self.logger.info(
                "lifecycle.not_a_pull_request_comment", github_event=event.event
            )
            return self._safe_exit(run)

        command = classify(
            event.body,
            config.trigger,
            config.help_trigger,
            config.noop_trigger,
            config.prefix_only,
        )
        if not command.triggered:
            run.set_output("triggered", "false")
            self.logger.info("lifecycle.no_trigger")
            return self._safe_exit(run)

        run.transition(LifecycleState.CLASSIFIED)
        run.set_output("type", command.kind.value)
        run.set_output("triggered", "true")

        run.reaction_id = await self.platform.add_reaction(run.comment_id, config.reaction)
        run.set_output("comment_id", run.comment_id)
        run.set_output("initial_reaction_id", run.reaction_id)
        run.set_output("actor_handle", run.actor)

        if command.kind == CommandKind.HELP:
            return await self._help(run)

        return await self._deploy(run, command)

    async def _merge_deploy(self, run: RunState) -> RunResultStatus:
        run.mode = DeployMode.MERGE_DEPLOY
        environment = self.config.environment

        identical = await self.prechecks.identical_commit_check(environment)
        run.environment = environment
        run.set_output("environment", environment)
        run.set_output("continue", "false" if identical else "true")

        # The completion phase never applies to merge deploys
        self._safe_exit(run)
        return "success - merge deploy mode"

    async def _help(self, run: RunState) -> RunResultStatus:
        denied = await self.prechecks.validate_permissions(run.actor)
        if denied:
            await self._report(run, denied)
            run.bypass = True
            run.message = denied
            run.transition(LifecycleState.FAILURE)
            return "failure"

        config = self.config
        message = format_help(
            config.trigger,
            config.noop_trigger,
            config.stable_branch,
            config.environment,
            config.targets,
            config.help_trigger,
        )
        await self._report(run, message, success=True)
        run.message = message
        return self._safe_exit(run)

    async def _deploy(self, run: RunState, command: Command) -> RunResultStatus:
        config = self.config

        target = environment_targets(
            command.raw_body,
            config.trigger,
            config.noop_trigger,
            config.stable_branch,
            config.environment,
            config.targets,
            config.environment_urls,
        )
        if target is None:
            message = format_missing_environment(config.targets)
            await self._report(run, message)
            run.message = message
            return self._safe_exit(run)

        run.environment = target.name
        run.environment_url = target.url
        run.set_output("environment", target.name)
        run.set_output("environment_url", target.url)
        run.transition(LifecycleState.ENVIRONMENT_RESOLVED)

        precheck = await self.prechecks.check(
            command, run.issue_number, target.name, run.actor
        )
        run.ref = precheck.ref
        run.sha = precheck.sha
        run.set_output("ref", precheck.ref)
        run.set_output("sha", precheck.sha)

        if not precheck.allowed:
            await self._report(run, precheck.message)
            run.bypass = True
            run.message = precheck.message
            run.transition(LifecycleState.FAILURE)
            return "failure"

        run.transition(LifecycleState.PRECHECKED)
        await self.platform.create_comment(
            run.issue_number,
            format_triggered_comment(
                run.actor,
                precheck.noop_mode,
                target.name,
                precheck.ref,
                log_url=self._log_url(run),
            ),
        )

        if precheck.noop_mode:
            run.mode = DeployMode.NOOP
            run.noop = True
            run.set_output("noop", "true")
            run.set_output("continue", "true")
            run.transition(LifecycleState.SUCCESS)
            self.logger.info("lifecycle.noop")
            return "success - noop"

        run.noop = False
        run.set_output("noop", "false")

        request = DeploymentRequest(
            ref=precheck.ref,
            auto_merge=config.auto_merge,
            required_contexts=config.required_context_list,
            environment=target.name,
            production_environment=target.name == config.production_environment.strip(),
        )
        response = await self.platform.create_deployment(request)

        if response.requires_merge:
            message = format_merge_required(response.message or "")
            await self._report(run, message)
            run.message = message
            self.logger.warning("lifecycle.merge_required", message=response.message)
            return self._safe_exit(run)

        if response.id is None:
            raise PlatformError(
                "create_deployment", response.message or "no deployment id returned"
            )

        run.deployment = DeploymentRecord(
            id=response.id,
            ref=request.ref,
            environment=request.environment,
            environment_url=target.url,
            production_environment=request.production_environment,
            auto_merge=request.auto_merge,
            required_contexts=request.required_contexts,
        )
        run.set_output("deployment_id", response.id)
        run.transition(LifecycleState.DEPLOY_CREATED)

        await self.platform.set_deployment_status(
            response.id,
            precheck.ref,
            DeploymentStatus.IN_PROGRESS,
            target.name,
            target.url,
        )
        run.deployment.status = DeploymentStatus.IN_PROGRESS
        run.transition(LifecycleState.IN_PROGRESS)
        run.set_output("continue", "true")
        return "success"

    async def complete(self, run: RunState, request: CompletionRequest) -> CompletionReport:
        """Record the final result of a deployment.

        Raises:
            MissingInputError: If the run or request lacks a required value
            RunAlreadyCompletedError: If the run was already completed
        """
        with bound_contextvars(run_id=run.run_id):
            return await self._complete(run, request)

    async def _complete(self, run: RunState, request: CompletionRequest) -> CompletionReport:
        if run.bypass:
            self.logger.info("lifecycle.complete.bypassed")
            return CompletionReport(result="bypassed")

        if run.completed_at is not None:
            raise RunAlreadyCompletedError(run.run_id)

        self._validate_completion(run, request)
        # Claimed before the first await so an overlapping call sees it
        run.completed_at = datetime.utcnow()
        await self.store.save(run)

        url_in_comment = request.environment_url_in_comment
        if url_in_comment is None:
            url_in_comment = self.config.environment_url_in_comment

        formatted = format_deployment_result(
            run.actor,
            request.status,
            run.noop,
            run.ref,
            run.environment,
            custom_message=request.message,
            environment_url=run.environment_url,
            environment_url_in_comment=url_in_comment,
        )

        try:
            await self._report(run, formatted.body, success=formatted.success)
            run.message = formatted.body
            run.set_output("status", "success" if formatted.success else "failure")

            if run.noop:
                await self.store.save(run)
                self.logger.info("lifecycle.complete.noop", status=run.outputs["status"])
                return CompletionReport(
                    result="success - noop",
                    success=formatted.success,
                    body=formatted.body,
                )

            final_status = (
                DeploymentStatus.SUCCESS if formatted.success else DeploymentStatus.FAILURE
            )
            await self.platform.set_deployment_status(
                run.deployment_id,
                run.ref,
                final_status,
                run.environment,
                run.environment_url,
            )
            run.deployment.status = final_status
            run.transition(
                LifecycleState.SUCCESS if formatted.success else LifecycleState.FAILURE
            )
        except Exception as e:
            self.logger.exception("lifecycle.complete.failed")
            # Noop runs are already terminal when completion starts
            if run.noop or not run.is_terminal:
                run.fail(str(e))
            else:
                run.error = str(e)
            await self.store.save(run)
            raise

        await self.store.save(run)
        self.logger.info(
            "lifecycle.complete.finished",
            status=final_status.value,
        )
        return CompletionReport(
            result="success", success=formatted.success, body=formatted.body
        )

    def _validate_completion(self, run: RunState, request: CompletionRequest) -> None:
        if not run.comment_id:
            raise MissingInputError("comment_id")
        if not request.status:
            raise MissingInputError("status")
        if not run.ref:
            raise MissingInputError("ref")
        if run.noop is None:
            raise MissingInputError("noop value")
        if not run.noop:
            if not run.deployment_id:
                raise MissingInputError("deployment_id")
            if not run.environment:
                raise MissingInputError("environment")

    async def _report(self, run: RunState, message: str, success: bool = False) -> None:
        await self.platform.action_status(
            run.issue_number,
            run.comment_id,
            run.reaction_id,
            message,
            success=success,
            log_url=self._log_url(run),
        )

    def _safe_exit(self, run: RunState) -> RunResultStatus:
        run.bypass = True
        run.transition(LifecycleState.SAFE_EXIT)
        return "safe-exit"
