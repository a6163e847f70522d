"""Main FastAPI application."""

from fastapi import FastAPI

from opsassist import __version__
from opsassist.api.endpoints import router
from opsassist.config import get_settings
from opsassist.utils.logging import LogConfig, setup_logging

settings = get_settings()
setup_logging(LogConfig(level=settings.log_level, audit_log_path=settings.audit_log_path))

app = FastAPI(
    title="Ops Assistant",
    description=(
        "A conversational operations assistant that answers questions about this host "
        "using read-only diagnostic tools."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Assistant",
            "description": "Ask questions about the host. Conversations are kept per session.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("opsassist.main:app", host="127.0.0.1", port=8000, log_level="info")
