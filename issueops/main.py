"""FastAPI application entry point."""

import re
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from issueops import __version__
from issueops.api.middleware import RequestLoggingMiddleware
from issueops.api.v1.router import router as v1_router
from issueops.config import DeployConfig, settings
from issueops.core.exceptions import (
    IssueOpsError,
    MissingInputError,
    PlatformError,
    RunAlreadyCompletedError,
    RunNotFoundError,
    WebhookValidationError,
)
from issueops.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

ERROR_STATUS_CODES: dict[type[IssueOpsError], int] = {
    RunNotFoundError: status.HTTP_404_NOT_FOUND,
    MissingInputError: status.HTTP_400_BAD_REQUEST,
    RunAlreadyCompletedError: status.HTTP_409_CONFLICT,
    WebhookValidationError: status.HTTP_401_UNAUTHORIZED,
    PlatformError: status.HTTP_502_BAD_GATEWAY,
}


def error_code(exc: Exception) -> str:
    """``RunNotFoundError`` -> ``RUN_NOT_FOUND``."""
    name = type(exc).__name__.removesuffix("Error")
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).upper()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and report the active deploy inputs."""
    configure_logging()
    config = DeployConfig.from_settings(settings)
    logger.info(
        "application.starting",
        version=__version__,
        environment=settings.app_env,
        trigger=config.trigger,
        environment_targets=config.targets,
        merge_deploy_mode=config.merge_deploy_mode,
    )
    if not settings.github_token:
        logger.warning("application.github_token_missing")
    if not settings.github_webhook_secret:
        logger.warning("application.webhook_signatures_disabled")

    yield

    logger.info("application.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="IssueOps API",
        description="Deploys pull request branches from chat commands left as comments",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(IssueOpsError)
    async def issueops_error_handler(
        request: Request, exc: IssueOpsError
    ) -> JSONResponse:
        """Map application errors to their HTTP status."""
        status_code = ERROR_STATUS_CODES.get(
            type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        logger.warning(
            "request.failed",
            code=error_code(exc),
            error=exc.message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "code": error_code(exc),
                    "message": exc.message,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

        error = {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
        if settings.is_development:
            error.update(message=str(exc), type=type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": error},
        )

    app.include_router(v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "issueops.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
