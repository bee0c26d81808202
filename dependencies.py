from functools import lru_cache
from typing import Annotated
from uuid import uuid4
import logging
from time import time

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from core.config import get_settings
from core.exceptions import ValidationFailure
from services.event_log import SqlEventLog
from services.pipeline import AggregationService
from services.publishers import PublisherRegistry

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine():
    settings = get_settings()
    kwargs = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if settings.DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, **kwargs)


# Database dependency
def get_session():
    with Session(get_engine()) as session:
        yield session

SessionDep = Annotated[Session, Depends(get_session)]


@lru_cache()
def get_aggregation_service() -> AggregationService:
    settings = get_settings()
    log = SqlEventLog(get_engine())
    registry = PublisherRegistry(settings.PUBLISHERS)
    # writers that already have records in the local log
    for writer in log.writers():
        registry.add(writer)
    return AggregationService(
        log,
        registry,
        fetch_timeout=settings.WRITER_FETCH_TIMEOUT_SECONDS,
        quote_max_depth=settings.QUOTE_MAX_DEPTH,
        trending_window_days=settings.TRENDING_WINDOW_DAYS,
    )

ServiceDep = Annotated[AggregationService, Depends(get_aggregation_service)]


# Middleware
async def log_requests(request: Request, call_next):
    start_time = time()
    response = await call_next(request)
    process_time = time() - start_time

    logger.info(
        f"Path: {request.url.path} | "
        f"Method: {request.method} | "
        f"Status: {response.status_code} | "
        f"Process Time: {process_time:.2f}s"
    )
    return response


# Error handlers
def setup_error_handlers(app):
    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure):
        logger.warning(f"Rejected write on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.message, "error_code": exc.error_code, "details": exc.details},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid4())
        logger.error(
            f"Unhandled error {error_id}: {str(exc)}",
            exc_info=True,
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_id": error_id,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An unexpected error occurred", "error_id": error_id},
        )
