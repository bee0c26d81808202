from contextlib import asynccontextmanager
import asyncio
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sqlalchemy import text
from sqlmodel import SQLModel

from core.config import get_settings
from core.logging_config import setup_logging
from core.tasks import periodic_refresh, stop_task
from dependencies import SessionDep, get_aggregation_service, get_engine, log_requests, setup_error_handlers
from routers import (
    feed_router,
    plays_router,
    social_router,
    records_router,
    admin_router,
)

# Initialize settings and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


def create_db_and_tables():
    SQLModel.metadata.create_all(get_engine())


def custom_generate_unique_id(route: APIRoute):
    return f"{route.tags[0] if route.tags else ''}-{route.name}"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Setup and cleanup tasks for the application lifecycle"""
    create_db_and_tables()
    service = get_aggregation_service()
    refresh_task = asyncio.create_task(
        periodic_refresh(service, interval=settings.POLL_INTERVAL_SECONDS)
    )
    logger.info(f"Polling {len(service.registry)} publishers every {settings.POLL_INTERVAL_SECONDS}s")
    try:
        yield
    finally:
        await stop_task(refresh_task)


def setup_metrics(app: FastAPI):
    instrumentator = Instrumentator(excluded_handlers=["/metrics", "/health"])
    instrumentator.add(metrics.latency(buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]))
    instrumentator.add(metrics.requests(should_include_handler=True))
    instrumentator.add(metrics.response_size())
    instrumentator.instrument(app).expose(app, include_in_schema=False, should_gzip=True)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url=settings.DOCS_URL,
        redoc_url=settings.REDOC_URL,
        openapi_url=settings.OPENAPI_URL,
        openapi_tags=settings.OPENAPI_TAGS,
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )

    # Add middleware
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handlers
    setup_error_handlers(app)

    setup_metrics(app)

    # Include routers
    app.include_router(feed_router, tags=["feed"])
    app.include_router(plays_router, tags=["plays"])
    app.include_router(social_router, prefix="/users", tags=["social"])
    app.include_router(records_router, prefix="/records", tags=["records"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])

    @app.get("/health")
    async def health_check(session: SessionDep):
        """Health check endpoint for monitoring"""
        try:
            session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            raise HTTPException(
                status_code=503,
                detail="Service unavailable"
            )
        snapshot = get_aggregation_service().current
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc),
            "version": settings.APP_VERSION,
            "snapshot_generation": snapshot.generation,
        }

    return app


# Create the FastAPI application
app = create_application()


def main():
    """Create the tables and publish demo records"""
    create_db_and_tables()
    try:
        from seed_data import create_test_data
        create_test_data()
    except Exception as e:
        logger.error(f"Failed to create test data: {e}")


if __name__ == "__main__":
    main()
