"""Issue Board API — FastAPI application factory and entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - The Board is built and started in the lifespan, stored on app.state.board
    - Static UI mounted AFTER API and socket routes so they take precedence
    - Global error handlers map IssueBoardError → structured JSON responses

Design Decisions:
    - create_app(settings, board) factory: tests inject an isolated Board,
      production builds one from Settings
    - Lifespan over @app.on_event: cleaner startup/shutdown pairing
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from issueboard.api.error_handlers import register_error_handlers
from issueboard.api.routes import health, issue_socket, issues
from issueboard.config import Settings, get_settings
from issueboard.infrastructure.observability import setup_logging
from issueboard.services.board import Board, build_board

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None, board: Board | None = None,
) -> FastAPI:
    """Build the ASGI app. A provided board is started/stopped by the lifespan too."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        active = app.state.board = board or build_board(settings)
        await active.start()
        logger.info(f"Issue board started (data_file={settings.data_file})")
        yield
        logger.info("Issue board shutting down")
        await active.stop()

    app = FastAPI(title="Issue Board", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(issues.router)
    app.include_router(issue_socket.router)

    if os.path.isdir(settings.static_dir):
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True), name="static",
        )

    register_error_handlers(app)
    return app


app = create_app()
