# ontogen/adapters/api/main.py
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ontogen import __version__
from ontogen.adapters.api.dependencies import get_session_registry
from ontogen.adapters.api.routers import health, sessions
from ontogen.shared.config import settings
from ontogen.shared.container import container
from ontogen.shared.logging_config import configure_logging
from ontogen.shared.observability import setup_observability

logger = structlog.get_logger()

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wires the session router to the container, and drops every live session on shutdown."""
    logger.info("app_startup", env=settings.APP_ENV.value, definitions=settings.DEFINITIONS_DIR)

    # Only the sessions router resolves providers through @inject.
    container.wire(modules=["ontogen.adapters.api.routers.sessions"])

    yield

    logger.info("app_shutdown", sessions=len(get_session_registry()))
    get_session_registry().clear()
    container.unwire()


def create_app() -> FastAPI:
    """Builds the HTTP app. Logging is configured here so uvicorn's factory mode picks it up."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=__version__,
        description="Restricted-English world modeller",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_observability(app)

    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(sessions.router, prefix=API_PREFIX)

    return app


# Entry point for local debugging (e.g. `python -m ontogen.adapters.api.main`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ontogen.adapters.api.main:create_app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        factory=True,
    )
