"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from issueops import __version__
from issueops.api.deps import DeployConfigDep
from issueops.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Service status plus the deploy inputs commands resolve against."""

    status: str = "healthy"
    version: str
    environment: str
    github_configured: bool
    trigger: str
    environment_targets: list[str]
    merge_deploy_mode: bool
    timestamp: datetime


@router.get("/health", response_model=HealthResponse)
async def health_check(config: DeployConfigDep) -> HealthResponse:
    """Report service health and the active command configuration."""
    return HealthResponse(
        version=__version__,
        environment=settings.app_env,
        github_configured=bool(settings.github_token),
        trigger=config.trigger,
        environment_targets=config.targets,
        merge_deploy_mode=config.merge_deploy_mode,
        timestamp=datetime.utcnow(),
    )
