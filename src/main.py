import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.middleware.auth import auth_middleware
from src.api.core.middleware.logging import logging_middleware
from src.api.router import api_router
from src.database.connection import AsyncSessionLocal, get_async_db
from src.modules.billing.alerts import RedisAlertPublisher
from src.modules.billing.settings.service import SystemSettingsService
from src.redis.client import close_redis_pool, get_redis_client
from src.utils.settings.app import AppSettings
from src.utils.logger import setup_logging


app_settings = AppSettings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the session factory, alert publisher and settings defaults."""
    logger = setup_logging(app_settings.is_production)
    logger.info("Starting TokenMeter API", environment=app_settings.ENVIRONMENT)
    app_settings.validate_prod()

    # Tests install their own factory and publisher before startup
    if getattr(app.state, "session_factory", None) is None:
        app.state.session_factory = AsyncSessionLocal

    if getattr(app.state, "alert_publisher", None) is None:
        app.state.alert_publisher = RedisAlertPublisher(await get_redis_client())

    async with get_async_db(app.state.session_factory) as db:
        await SystemSettingsService(db).initialize_defaults()

    yield

    logger.info("Shutting down TokenMeter API")
    await close_redis_pool()


app = FastAPI(
    title="TokenMeter API",
    description="Token metering and billing ledger for AI operations",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    docs_url=None if app_settings.is_production else "/docs",
    redoc_url=None if app_settings.is_production else "/redoc",
    openapi_url=None if app_settings.is_production else "/openapi.json",
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)
app.middleware("http")(auth_middleware)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def _run(reload: bool) -> None:
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=app_settings.PORT,
        reload=reload,
        access_log=False,
    )


def run_dev_server():
    _run(reload=True)


def run_prod_server():
    _run(reload=False)
