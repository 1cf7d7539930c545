"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers the error handlers and includes all API routers.
It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitcoach.core.logging_config import get_logger, setup_logging
from fitcoach.core.monitoring import initialize_logfire

from .api.v1 import (
    account,
    admin,
    articles,
    billing,
    bookings,
    habits,
    health,
    jobs,
    me,
    programs,
    static,
    support,
    trial,
)
from .core import constant
from .core.config import settings
from .core.database import init_db
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware
from .services.deps import close_clients

# Initialize logging
setup_logging(settings.log_level, settings.log_format, settings.enable_file_logging)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the database tables on startup and closes the shared outbound
    HTTP clients on shutdown.
    """
    # Startup
    try:
        logger.info("Starting up fitcoach server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down fitcoach server...")
    await close_clients()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    fitcoach Server API

    Backend of the coaching web app: product access and trials, assigned training programs with
    automatic progression, the 20-day static program, subscriptions and consultation bookings,
    the reads library and the support chat.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)

API = constant.API_V1_STR
app.include_router(health.router, prefix=API, tags=["health"])
app.include_router(me.router, prefix=f"{API}/me")
app.include_router(trial.router, prefix=f"{API}/trial")
app.include_router(programs.router, prefix=API)
app.include_router(static.router, prefix=f"{API}/static")
app.include_router(jobs.router, prefix=f"{API}/jobs")
app.include_router(billing.router, prefix=f"{API}/billing")
app.include_router(bookings.router, prefix=f"{API}/bookings")
app.include_router(habits.router, prefix=f"{API}/habits")
app.include_router(articles.router, prefix=f"{API}/reads")
app.include_router(articles.admin_router, prefix=f"{API}/admin/articles")
app.include_router(support.router, prefix=f"{API}/support")
app.include_router(support.admin_router, prefix=f"{API}/admin/support")
app.include_router(admin.router, prefix=f"{API}/admin")
app.include_router(account.router, prefix=f"{API}/account")


def run() -> None:
    """Serve the app with uvicorn on ``FITCOACH_SERVER_HOST:FITCOACH_SERVER_PORT``."""
    import uvicorn

    uvicorn.run(app, host=settings.server_host, port=settings.server_port, log_config=None)
