from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.context import AppContext, build_context
from .core.log import configure_logging

from .api.routes import router as api_router
import snakelink.api.routes as routes_module


logger = logging.getLogger(__name__)


context: AppContext | None = None


def get_context() -> AppContext:
    assert context is not None
    return context


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    logger.info("Starting %s (data_dir=%s, use_mock=%s)", settings.app_name, settings.data_dir, settings.use_mock)

    global context
    context = build_context(settings)
    await context.start()
    await context.alerts.send_startup(settings.app_name)

    try:
        yield
    finally:
        if context:
            await context.stop()

        logger.info("Shutdown complete")





app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency function in routes resolve to the real one
app.dependency_overrides[routes_module.get_context] = get_context

app.include_router(api_router, prefix="/api")
