"""FastAPI web server for xthreads."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from xthreads import ThreadBuilder, ThreadConfig, __version__
from xthreads.config import load_config
from xthreads.core.exporter import to_dict
from xthreads.exceptions import ConfigError
from xthreads.logging import configure_logging
from xthreads.models.batch import FetchBatch


# Request/Response models
class ThreadOptions(BaseModel):
    """Per-request reconstruction options."""

    backfill_conversations: bool = Field(
        default=True,
        description="Infer conversation ids the source left out",
    )
    trim_reply_mentions: bool = Field(
        default=True,
        description="Drop leading @mentions from reply text using the source's display range",
    )


class ThreadsRequest(FetchBatch):
    """
    Request body for thread reconstruction.

    Either send the three batches directly, or pass a whole API response
    under ``response`` and let the server locate them.
    """

    response: Any = Field(
        default=None,
        description="Raw API response; overrides primary/included/replied_to when set",
    )
    options: ThreadOptions = Field(default_factory=ThreadOptions)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


class ConfigResponse(BaseModel):
    """Current default configuration with descriptions."""

    backfill_conversations: bool = Field(
        ...,
        description="Assign synthetic conversation ids to reply exchanges the source never tagged. "
        "The id is taken from a post in the exchange.",
        json_schema_extra={"example": True},
    )
    trim_reply_mentions: bool = Field(
        ...,
        description="Use the source's display text range to hide leading @mentions on replies.",
        json_schema_extra={"example": True},
    )
    log_level: str = Field(
        ...,
        description="Logging verbosity level. Options: 'DEBUG', 'INFO', 'WARNING', 'ERROR'.",
        json_schema_extra={"example": "INFO", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
    )
    log_format: str = Field(
        ...,
        description="Log output format. Options: 'json', 'console'.",
        json_schema_extra={"example": "console", "enum": ["json", "console"]},
    )


def _config_or_500(**overrides) -> ThreadConfig:
    """Load settings for a request, reporting bad environment values as HTTP 500."""
    try:
        return load_config(**overrides)
    except ConfigError as e:
        raise HTTPException(status_code=500, detail=f"Invalid server configuration: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging once for the server process."""
    configure_logging(load_config())
    yield


# Create FastAPI app
app = FastAPI(
    title="xthreads API",
    description="Reply thread reconstruction for X/Twitter API results",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now().isoformat(),
    )


@app.post("/api/threads", tags=["Threads"])
async def build_threads(request: ThreadsRequest):
    """
    Rebuild the ordered thread forest for one fetch result.

    Malformed records are skipped rather than rejected, so any JSON body
    yields a forest (possibly empty).
    """
    config = _config_or_500(
        backfill_conversations=request.options.backfill_conversations,
        trim_reply_mentions=request.options.trim_reply_mentions,
    )

    if request.response is not None:
        batch = FetchBatch.from_response(request.response)
    else:
        batch = FetchBatch(
            primary=request.primary,
            included=request.included,
            replied_to=request.replied_to,
        )

    forest = ThreadBuilder(config).build(batch)
    return {
        "total_posts": len(forest.post_ids()),
        "conversations_count": len(forest.conversations),
        "standalone_count": len(forest.standalone),
        "forest": to_dict(forest),
    }


@app.get(
    "/api/config",
    response_model=ConfigResponse,
    tags=["System"],
    summary="Get default configuration",
    description="Returns the default reconstruction configuration. "
    "Values can be overridden with XTHREADS_* environment variables.",
)
async def get_default_config():
    """
    Get default configuration.

    **Configuration can also be set via environment variables** with the `XTHREADS_` prefix:
    - `XTHREADS_BACKFILL_CONVERSATIONS=false`
    - `XTHREADS_LOG_LEVEL=DEBUG`
    """
    config = _config_or_500()
    return ConfigResponse(
        backfill_conversations=config.backfill_conversations,
        trim_reply_mentions=config.trim_reply_mentions,
        log_level=config.log_level,
        log_format=config.log_format.value,
    )


if __name__ == "__main__":
    import uvicorn
    settings = load_config()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
