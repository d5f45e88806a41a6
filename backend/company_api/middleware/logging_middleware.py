"""
Request logging middleware.

Each request is logged once it completes, with status and duration. Listing
requests also carry the normalized query: which filters were given, the
effective sort and the page window after clamping, which is what actually
reached the store. Responses get an X-Request-ID header (an incoming one is
reused).
"""
import dataclasses
import time
import uuid
from typing import Mapping

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config.constants import DEFAULT_SORT
from ..services.filters import QueryParameters
from ..services.pagination import PageRequest

logger = structlog.get_logger("company_api.requests")

LISTING_PATH = "/api/companies"
REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 2000

_WINDOW_FIELDS = ("sort", "page", "limit")


def listing_summary(query_params: Mapping[str, str]) -> dict:
    """Normalized view of a listing query string for the access log."""
    params = QueryParameters.from_mapping(query_params)
    window = PageRequest.from_raw(params.page, params.limit)
    given = [
        name for name, value in dataclasses.asdict(params).items()
        if value and name not in _WINDOW_FIELDS
    ]
    return {
        "filters": sorted(given),
        "sort": params.sort or DEFAULT_SORT,
        "page": window.page,
        "limit": window.limit,
    }


def _is_listing(request: Request) -> bool:
    return request.method == "GET" and request.url.path.rstrip("/") == LISTING_PATH


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log for the API, one structured event per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", duration_ms=_elapsed_ms(started))
            raise

        response.headers[REQUEST_ID_HEADER] = request_id

        event = {"status": response.status_code, "duration_ms": _elapsed_ms(started)}
        if _is_listing(request):
            event["listing"] = listing_summary(request.query_params)

        if response.status_code >= 500:
            logger.error("request_completed", **event)
        elif event["duration_ms"] > SLOW_REQUEST_MS:
            logger.warning("slow_request", **event)
        elif response.status_code >= 400:
            logger.warning("request_completed", **event)
        else:
            logger.info("request_completed", **event)
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
