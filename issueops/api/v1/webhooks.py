"""GitHub webhook intake (begin phase)."""

import json
from typing import Annotated

from fastapi import APIRouter, Header, Request, status
from pydantic import BaseModel, Field

from issueops.api.deps import DeployConfigDep, PlatformFactoryDep, StoreDep
from issueops.config import settings
from issueops.core.exceptions import WebhookValidationError
from issueops.core.lifecycle import LifecycleController
from issueops.models.event import TriggerEvent
from issueops.models.run import LifecycleState
from issueops.services.github import verify_signature
from issueops.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class WebhookResponse(BaseModel):
    """Result of handling a webhook delivery."""

    result: str
    run_id: str | None = None
    state: LifecycleState | None = None
    bypass: bool | None = None
    outputs: dict[str, str] = Field(default_factory=dict)


@router.post(
    "/github",
    response_model=WebhookResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Receive a GitHub webhook",
    description="Runs the begin phase for pull request comments (and pushes in merge deploy mode).",
)
async def github_webhook(
    request: Request,
    store: StoreDep,
    platform_factory: PlatformFactoryDep,
    config: DeployConfigDep,
    x_github_event: Annotated[str, Header()] = "",
    x_hub_signature_256: Annotated[str | None, Header()] = None,
) -> WebhookResponse:
    """Handle a webhook delivery."""
    raw_body = await request.body()
    verify_signature(raw_body, x_hub_signature_256, settings.github_webhook_secret)

    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise WebhookValidationError(f"Invalid webhook payload: {e}") from e

    handled = x_github_event == "issue_comment" or (
        x_github_event == "push" and config.merge_deploy_mode
    )
    if not handled:
        logger.info("webhook.ignored", github_event=x_github_event)
        return WebhookResponse(result="ignored")

    event = TriggerEvent.from_payload(x_github_event, payload)
    platform = platform_factory(event.owner, event.repo)
    try:
        controller = LifecycleController(
            platform,
            config,
            store=store,
            run_url_template=settings.run_url_template,
        )
        outcome = await controller.begin(event)
    finally:
        await platform.aclose()

    return WebhookResponse(
        result=outcome.result,
        run_id=outcome.run.run_id if outcome.stored else None,
        state=outcome.run.state,
        bypass=outcome.run.bypass,
        outputs=outcome.run.outputs,
    )
