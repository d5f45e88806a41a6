"""
Company Directory API

Search, filter, sort and page through a collection of companies.

Run with: uvicorn company_api.main:app --port 4000 --reload
"""
import os
import time as _time_module
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

# Configure structured logging FIRST (before any logger calls)
from .middleware.structlog_config import configure as configure_logging
configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

import structlog

from .dependencies import STORE_BACKEND, get_store, prepare_store
from .errors import StoreError
from .middleware import RequestLoggingMiddleware, register_error_handlers
from .routers import companies_router

logger = structlog.get_logger("company_api")

# Track server start time for uptime reporting
_server_start_time = _time_module.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: make sure the store has its schema or indexes."""
    store = app.dependency_overrides.get(get_store, get_store)()
    try:
        prepare_store(store)
    except StoreError as e:
        # The API still starts; /health reports the store as unavailable
        logger.error("store_preparation_failed", backend=STORE_BACKEND, error=e.message)
    logger.info("startup_complete", backend=STORE_BACKEND)
    yield
    logger.info("Shutting down.")


# API metadata
API_TITLE = "Company Directory API"
API_DESCRIPTION = """
Discover companies through free-text search, field filters, numeric ranges,
tag intersection, sorting and pagination.

### Core Endpoints

- **GET /api/companies** - List with `search`, `name`, `industry`, `location`,
  `tag`, `tags`, `sizeMin`, `sizeMax`, `foundedFrom`, `foundedTo`, `sort`,
  `page`, `limit`
- **GET/PUT/DELETE /api/companies/{id}** - Single company
- **POST /api/companies** - Create a company
"""
API_VERSION = "1.0.0"

_docs_enabled = os.environ.get("ENABLE_DOCS", "true").lower() == "true"
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    lifespan=lifespan,
)

# Register global error handlers
register_error_handlers(app)

# Request logging middleware (must be added before CORS/GZip so it wraps them)
app.add_middleware(RequestLoggingMiddleware)

cors_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
).split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials="*" not in cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Accept"],
)

# GZip compression for responses > 1KB
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(companies_router, prefix="/api")


@app.get("/", tags=["root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs",
        "endpoints": {
            "companies": "/api/companies",
            "company": "/api/companies/{id}",
            "health": "/health",
        },
    }


@app.get("/health", tags=["root"])
def health_check():
    """Health check with store reachability and uptime."""
    store = app.dependency_overrides.get(get_store, get_store)()
    reachable = store.ping()
    return JSONResponse(
        status_code=200 if reachable else 503,
        content={
            "status": "ok" if reachable else "unavailable",
            "version": API_VERSION,
            "store": {"backend": STORE_BACKEND, "reachable": reachable},
            "uptime_seconds": round(_time_module.time() - _server_start_time),
        },
    )


# Main entry point
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "4000")))
