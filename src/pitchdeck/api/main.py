"""FastAPI staging server.

Serves a cached copy of the Notion company records to the tool server. Run
with ``pitchdeck-staging``.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pitchdeck import __version__
from pitchdeck.api.routes import records
from pitchdeck.config import ConfigurationError, configure_logging, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events."""
    logger.info("Starting record staging API")
    yield
    logger.info("Shutting down record staging API")


app = FastAPI(
    title="Pitch Deck Record Staging API",
    description="Stages Notion company records as a CSV cache",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(records.router)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Report settings failures raised while resolving route dependencies."""
    logger.error(f"Configuration error: {exc}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content={"error": f"Server configuration error: {exc}"},
    )


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


def main() -> None:
    """Start the uvicorn server on the configured host and port."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}") from e

    configure_logging(settings.logging)
    logger.info(
        "Server starting",
        extra={"host": settings.staging.host, "port": settings.staging.port},
    )
    uvicorn.run(app, host=settings.staging.host, port=settings.staging.port)


if __name__ == "__main__":
    main()
