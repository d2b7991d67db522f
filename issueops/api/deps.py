"""Dependency injection for API endpoints."""

from typing import Annotated

from fastapi import Depends

from issueops.config import DeployConfig, settings
from issueops.core.exceptions import RunNotFoundError
from issueops.core.session import RunStore, get_run_store
from issueops.models.run import RunState
from issueops.services.github import GitHubClient
from issueops.services.platform import PlatformClient, PlatformFactory


async def get_store() -> RunStore:
    """Get the run store."""
    return get_run_store()


def _github_client(owner: str, repo: str) -> PlatformClient:
    return GitHubClient(owner, repo)


async def get_platform_factory() -> PlatformFactory:
    """Get the factory that builds a platform client for a repository."""
    return _github_client


async def get_deploy_config() -> DeployConfig:
    """Get the deploy inputs from the application settings."""
    return DeployConfig.from_settings(settings)


async def get_run_by_id(
    run_id: str,
    store: Annotated[RunStore, Depends(get_store)],
) -> RunState:
    """Get a run by ID or raise 404."""
    run = await store.get(run_id)
    if not run:
        raise RunNotFoundError(run_id)
    return run


# Type aliases for cleaner signatures
StoreDep = Annotated[RunStore, Depends(get_store)]
PlatformFactoryDep = Annotated[PlatformFactory, Depends(get_platform_factory)]
DeployConfigDep = Annotated[DeployConfig, Depends(get_deploy_config)]
RunDep = Annotated[RunState, Depends(get_run_by_id)]
