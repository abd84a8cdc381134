"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from power_snake.exceptions import PowerSnakeError
from power_snake.server.game_manager import GameManager
from power_snake.server.routes import catalogue_router, router
from power_snake.server.websocket import ws_router

logger = logging.getLogger(__name__)


async def _engine_error(request: Request, exc: PowerSnakeError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app(max_finished_games: int = 100) -> FastAPI:
    """Build the application; each app owns its own session registry."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.game_manager = GameManager(max_finished_games)
        logger.info("Session registry ready (keeping %d finished games).",
                    max_finished_games)
        yield
        await app.state.game_manager.cleanup()

    app = FastAPI(title="Power Snake API", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(PowerSnakeError, _engine_error)
    app.include_router(router)
    app.include_router(catalogue_router)
    app.include_router(ws_router)
    return app
