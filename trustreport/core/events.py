"""Application lifecycle event handlers for TrustReport.

This module manages startup and shutdown events: database and cache
connections, index creation and resource cleanup.
"""

from typing import Callable

from fastapi import FastAPI
from pymongo import ASCENDING, DESCENDING, IndexModel

from trustreport.cache.analysis_cache import ANALYSIS_CACHE_INDEXES
from trustreport.core.config import get_settings
from trustreport.database.mongodb import MongoDB
from trustreport.database.redis_client import RedisClient
from trustreport.utils.constants import Collections
from trustreport.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Indexes on collections owned by the exam collaborator only support the
# lookups made here; they are created idempotently.
COLLECTION_INDEXES = [
    (Collections.AI_ANALYSIS_CACHE, ANALYSIS_CACHE_INDEXES),
    (Collections.EXAM_SESSIONS, [
        IndexModel([("exam_id", ASCENDING), ("user_id", ASCENDING), ("created_at", DESCENDING)]),
    ]),
    (Collections.PERSONAL_FACTORS, [IndexModel([("session_id", ASCENDING)])]),
    (Collections.PERSONALITY_RESULTS, [IndexModel([("session_id", ASCENDING)])]),
    (Collections.PERSONALITY_RESPONSES, [IndexModel([("session_id", ASCENDING)])]),
    (Collections.REPORT_CONFIGS, [IndexModel([("exam_id", ASCENDING)])]),
]


class StartupEvent:
    """Handles application startup tasks."""

    def __init__(self, app: FastAPI):
        """Initialize startup event handler.

        Args:
            app: FastAPI application instance
        """
        self.app = app
        self.tasks = []
        self.failed_tasks = []

    async def execute(self) -> None:
        """Execute all startup tasks."""
        logger.info(
            "Starting application startup sequence",
            extra={
                "app_name": settings.APP_NAME,
                "version": settings.APP_VERSION,
                "environment": settings.APP_ENV,
            }
        )

        startup_tasks = [
            ("Database Connection", self._connect_database),
            ("Database Indexes", self._create_indexes),
            ("Redis Connection", self._connect_redis),
        ]

        for task_name, task_func in startup_tasks:
            try:
                logger.info(f"Starting: {task_name}")
                await task_func()
                self.tasks.append(task_name)
                logger.info(f"Completed: {task_name}")
            except Exception as e:
                logger.error(
                    f"Failed: {task_name}",
                    extra={"error": str(e)},
                    exc_info=True
                )
                self.failed_tasks.append((task_name, str(e)))

                # Reports cannot be produced without the database; Redis only caches config
                if task_name == "Database Connection":
                    raise RuntimeError(
                        f"Critical startup task failed: {task_name}. Error: {str(e)}"
                    )

        self._log_startup_summary()

    async def _connect_database(self) -> None:
        await MongoDB.connect(
            url=settings.MONGODB_URL,
            db_name=settings.MONGODB_DB_NAME,
            max_pool_size=settings.MONGODB_MAX_POOL_SIZE,
            min_pool_size=settings.MONGODB_MIN_POOL_SIZE,
            connect_timeout_ms=settings.MONGODB_CONNECT_TIMEOUT_MS,
        )

    async def _create_indexes(self) -> None:
        """Create database indexes, including the active-entry uniqueness of the analysis cache."""
        created_count = 0
        for collection_name, indexes in COLLECTION_INDEXES:
            created = await MongoDB.create_indexes(collection_name, indexes)
            created_count += len(created)

        logger.info(f"Created {created_count} database indexes")

    async def _connect_redis(self) -> None:
        if not settings.ENABLE_CACHE:
            logger.info("Redis connection skipped (caching disabled)")
            return

        await RedisClient.connect(
            url=settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            password=settings.REDIS_PASSWORD,
        )

    def _log_startup_summary(self) -> None:
        summary = {
            "successful_tasks": len(self.tasks),
            "failed_tasks": len(self.failed_tasks),
            "tasks": self.tasks,
            "failures": self.failed_tasks,
            "environment": settings.APP_ENV,
            "api_docs": settings.ENABLE_API_DOCS,
            "cache_enabled": settings.ENABLE_CACHE,
            "openai_configured": bool(settings.OPENAI_API_KEY),
            "adjustment_remote": bool(settings.ADJUSTMENT_SERVICE_URL),
        }

        if self.failed_tasks:
            logger.warning("Application started with errors", extra=summary)
        else:
            logger.info("Application started successfully", extra=summary)


class ShutdownEvent:
    """Handles application shutdown tasks."""

    def __init__(self, app: FastAPI):
        self.app = app

    async def execute(self) -> None:
        """Execute all shutdown tasks."""
        logger.info("Starting application shutdown sequence")

        shutdown_tasks = [
            ("Close Redis Connection", RedisClient.disconnect),
            ("Close Database Connection", MongoDB.disconnect),
        ]

        for task_name, task_func in shutdown_tasks:
            try:
                logger.info(f"Executing: {task_name}")
                await task_func()
                logger.info(f"Completed: {task_name}")
            except Exception as e:
                logger.error(
                    f"Error during {task_name}: {str(e)}",
                    exc_info=True
                )

        logger.info("Application shutdown complete")


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler for the application.

    Args:
        app: FastAPI application instance

    Returns:
        Startup event handler function
    """
    async def start_app() -> None:
        startup_event = StartupEvent(app)
        await startup_event.execute()

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler for the application.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown event handler function
    """
    async def stop_app() -> None:
        shutdown_event = ShutdownEvent(app)
        await shutdown_event.execute()

    return stop_app


__all__ = [
    "COLLECTION_INDEXES",
    "create_start_app_handler",
    "create_stop_app_handler",
    "StartupEvent",
    "ShutdownEvent",
]
