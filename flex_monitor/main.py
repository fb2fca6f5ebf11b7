from __future__ import annotations

from fastapi import FastAPI

from . import __version__
from .endpoints import health_router, status_router


def create_app() -> FastAPI:
    application = FastAPI(title="Enhanced Flex Monitor", version=__version__)
    application.include_router(health_router)
    application.include_router(status_router)
    return application


app = create_app()
