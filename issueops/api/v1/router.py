"""Main router for API v1."""

from fastapi import APIRouter

from issueops.api.v1 import health, runs, webhooks

router = APIRouter(prefix="/v1")

# Include sub-routers
router.include_router(health.router, tags=["health"])
router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
router.include_router(runs.router, prefix="/runs", tags=["runs"])
