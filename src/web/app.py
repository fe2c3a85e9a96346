"""
Journal web service - FastAPI application.

This module creates and configures the FastAPI application serving the
editorial workflow API and the live draft sockets.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import JournalSettings
from utils import log_tags
from utils.log import configure_logging, get_logger

from .config import API_VERSION, LOG_LEVEL, WEB_DEBUG, WEB_HOST, WEB_PORT
from .errors import JournalError
from .routes import (
    abstracts_router,
    articles_router,
    audit_router,
    decisions_router,
    discussions_router,
    health_router,
    invitations_router,
    notifications_router,
    payments_router,
    reviews_router,
    submissions_router,
    users_router,
    websocket_router,
)
from .services.context import ServiceContext, build_context, get_context, set_context
from .services.review_service import ReviewService

logger = get_logger(__name__)


async def lock_sweep(context: ServiceContext):
    """Periodically lock reviews whose edit window has closed."""
    service = ReviewService(context)
    interval = context.settings.lock_sweep_interval_seconds
    while True:
        await asyncio.sleep(interval)
        locked = service.lock_expired_reviews()
        if locked:
            logger.info(f"{log_tags.REVIEW} Lock sweep locked {len(locked)} review(s)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(lock_sweep(app.state.context))
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


async def journal_error_handler(request: Request, exc: JournalError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(
    settings: Optional[JournalSettings] = None,
    context: Optional[ServiceContext] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    settings : JournalSettings, optional
        Build a fresh context from these settings.
    context : ServiceContext, optional
        Use this context as is (tests pass one with a fake clock).
        Without either argument the active context is reused.

    Returns
    -------
    FastAPI
        Configured application instance.
    """
    if context is None and settings is not None:
        context = build_context(settings)
    if context is not None:
        set_context(context)
    else:
        context = get_context()

    configure_logging(LOG_LEVEL)

    app = FastAPI(
        title="Journal",
        description="Peer-review journal API with collaborative draft editing",
        version=API_VERSION,
        debug=WEB_DEBUG,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_exception_handler(JournalError, journal_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(submissions_router)
    app.include_router(reviews_router)
    app.include_router(abstracts_router)
    app.include_router(decisions_router)
    app.include_router(discussions_router)
    app.include_router(payments_router)
    app.include_router(invitations_router)
    app.include_router(articles_router)
    app.include_router(audit_router)
    app.include_router(notifications_router)
    app.include_router(websocket_router)

    return app


# Application instance for uvicorn
app = create_app()


def run_server(host: str = WEB_HOST, port: int = WEB_PORT, reload: bool = True):
    """
    Run the development server.

    Parameters
    ----------
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    reload : bool
        Enable auto-reload on code changes.
    """
    import os
    import uvicorn
    from .config import PROJECT_ROOT

    # Change to src directory so uvicorn can find web.app
    src_dir = PROJECT_ROOT / "src"
    os.chdir(src_dir)

    uvicorn.run(
        "web.app:app",
        host=host,
        port=port,
        reload=reload,
        reload_dirs=[str(src_dir)] if reload else None,
    )


if __name__ == "__main__":
    run_server()
