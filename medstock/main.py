import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from medstock.config import Settings, get_settings
from medstock.core.exception_handlers import register_exception_handlers
from medstock.core.logging import setup_logging
from medstock.database import Base, engine
from medstock.models import import_all_models
from medstock.routers import admin_stock_router, health_router, pharmacy_stock_router

logger = logging.getLogger(__name__)


def init_schema() -> None:
    import_all_models()
    Base.metadata.create_all(bind=engine)


setup_logging()
settings: Settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_schema()
    logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield


def create_app() -> FastAPI:
    application = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    register_exception_handlers(application)

    application.include_router(health_router)
    application.include_router(pharmacy_stock_router)
    application.include_router(admin_stock_router)

    @application.get("/")
    def root():
        return {"message": "API is running..."}

    return application


app = create_app()


__all__ = ["app", "create_app", "init_schema"]
