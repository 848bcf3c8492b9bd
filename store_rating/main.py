import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager
from . import db
from . import router
from .core import config
from .core.errors import register_exception_handlers

logger = logging.getLogger(__name__)

# The database handle lives on app.state and is released on shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("Closing database connections")
    await app.state.database.dispose()

def configure_logging(settings):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

def create_app(settings=None):
    if not settings:
        settings = config.get_settings()

    configure_logging(settings)
    app = FastAPI(title="Store Rating API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = db.init_db(settings)

    register_exception_handlers(app)
    router.init_router_root(app)
    app.include_router(router.get_router(), prefix="/api")

    return app
