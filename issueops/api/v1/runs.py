"""Run lookup and completion endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel

from issueops.api.deps import DeployConfigDep, PlatformFactoryDep, RunDep, StoreDep
from issueops.config import settings
from issueops.core.lifecycle import LifecycleController
from issueops.models.run import (
    CompletionReport,
    CompletionRequest,
    LifecycleState,
    RunState,
)

router = APIRouter()


class RunListResponse(BaseModel):
    """Response for listing runs."""

    runs: list[RunState]
    total: int
    limit: int
    offset: int


@router.get("", response_model=RunListResponse)
async def list_runs(
    store: StoreDep,
    state: Annotated[LifecycleState | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> RunListResponse:
    """List stored runs, newest first."""
    await store.cleanup_expired()
    runs, total = await store.list_runs(state=state, limit=limit, offset=offset)

    return RunListResponse(runs=runs, total=total, limit=limit, offset=offset)


@router.get("/{run_id}", response_model=RunState)
async def get_run(run: RunDep) -> RunState:
    """Get the stored state of a run."""
    return run


@router.post(
    "/{run_id}/complete",
    response_model=CompletionReport,
    summary="Complete a deployment",
    description="Report the final deployment verdict for a run started by a comment.",
)
async def complete_run(
    run: RunDep,
    request: CompletionRequest,
    store: StoreDep,
    platform_factory: PlatformFactoryDep,
    config: DeployConfigDep,
) -> CompletionReport:
    """Run the completion phase for a stored run."""
    platform = platform_factory(run.owner, run.repo)
    try:
        controller = LifecycleController(
            platform,
            config,
            store=store,
            run_url_template=settings.run_url_template,
        )
        return await controller.complete(run, request)
    finally:
        await platform.aclose()
