"""FastAPI application serving the cached Wikipedia reading list.

- ``GET /healthz``: liveness probe
- ``GET /reading-list``: title -> ``{created, extract?}`` mapping for the
  configured account, served from cache when fresh

See also: :mod:`reading_list`.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import load_settings
from errors import ConfigurationError, ReadingListError
from models import reading_list_to_dict
from reading_list import ReadingListService, create_service

logger = logging.getLogger(__name__)


class ReadingListEntryModel(BaseModel):
    """Public shape of one reading list entry.

    :ivar created: Time the page was saved to the list.
    :ivar extract: Short plain-text summary, absent when the page was not found.
    """

    created: Optional[str] = None
    extract: Optional[str] = None


@lru_cache(maxsize=1)
def get_service() -> ReadingListService:
    """Build the service once per process from environment settings."""

    return create_service(load_settings())


app = FastAPI(title="Wikipedia Reading List API", version="0.1.0")


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, error: ConfigurationError) -> JSONResponse:
    logger.error(f"Configuration error: {error}")
    return JSONResponse(status_code=500, content={"detail": "Service is not configured"})


@app.exception_handler(ReadingListError)
async def pipeline_error_handler(request: Request, error: ReadingListError) -> JSONResponse:
    """Surface any pipeline failure as a ``502 Bad Gateway``."""

    logger.error(f"Reading list pipeline failed: {type(error).__name__}: {error}")
    return JSONResponse(
        status_code=502, content={"detail": f"{type(error).__name__}: {error}"}
    )


@app.get("/healthz")
async def health() -> Dict[str, str]:
    """Liveness probe endpoint."""

    return {"status": "ok"}


@app.get(
    "/reading-list",
    response_model=Dict[str, ReadingListEntryModel],
    response_model_exclude_none=True,
)
def reading_list(
    refresh: bool = False,
    service: ReadingListService = Depends(get_service),
) -> Dict[str, Dict[str, Any]]:
    """Return the reading list of the configured account.

    Runs in the threadpool since the pipeline blocks on network I/O and the
    rate limiter.

    :param refresh: Skip the cache read and rebuild the list.
    :param service: Orchestrator provided by :func:`get_service`.
    :returns: JSON object mapping title to ``{created, extract?}``.
    """

    result = service.get_reading_list(refresh=refresh)
    return reading_list_to_dict(result)
