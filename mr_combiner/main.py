"""
FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mr_combiner import __version__
from mr_combiner.api import webhooks
from mr_combiner.config import settings
from mr_combiner.middleware.logging import RequestLoggingMiddleware
from mr_combiner.models.api_response import ErrorResponse, HealthResponse
from mr_combiner.utils.logging import get_logger, setup_logging
from mr_combiner.utils.shell import run_command

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title="GitLab MR Combiner",
    description="Combines labeled GitLab merge requests into one branch on webhook demand",
    version=__version__
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        logger.warning(f"404 Not Found: {request.method} {request.url.path}")
        message = "Not Found"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error="Internal Server Error").model_dump())


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for container orchestration."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        active_projects=sorted(webhooks.activity_guard.active_projects()),
    )


# Include API routers
app.include_router(webhooks.router)


def configure_git_identity() -> None:
    """
    Set the commit identity used for merge commits.

    Raises:
        RuntimeError: If git config cannot be written
    """
    for key, value in (("user.email", settings.git_email), ("user.name", settings.git_user)):
        result = run_command(["git", "config", "--global", key, value])
        if not result.ok:
            raise RuntimeError(f"Failed to run command: {result.command}: {result.output.strip()}")


@app.on_event("startup")
async def startup_event():
    """Prepare git before accepting webhooks."""
    logger.info("Starting GitLab MR Combiner")
    configure_git_identity()
    logger.info(f"Git identity set to {settings.git_user} <{settings.git_email}>")


@app.on_event("shutdown")
async def shutdown_event():
    """Release outbound connections."""
    logger.info("Shutting down GitLab MR Combiner")
    webhooks.combination_engine.gitlab.close()


def run() -> None:
    """Console entry point."""
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
