"""WebSocket handlers for real-time play and spectating."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from power_snake.engine import GameEngine
from power_snake.server.game_manager import COMMANDS, GameManager

logger = logging.getLogger(__name__)

ws_router = APIRouter()


def _get_manager(ws: WebSocket) -> GameManager:
    return ws.app.state.game_manager


def apply_message(engine: GameEngine, msg: object) -> bool:
    """Apply one decoded client message. Returns whether it was understood."""
    if not isinstance(msg, dict):
        return False

    action = msg.get("action")
    if isinstance(action, str):
        handler = COMMANDS.get(action.lower())
        if handler is None:
            return False
        handler(engine)
        return True

    key = msg.get("key")
    if isinstance(key, int) and not isinstance(key, bool):
        engine.change_direction(key)
        return True

    direction = msg.get("direction")
    if isinstance(direction, str):
        engine.change_direction(direction)
        return True
    return False


async def _send_state(websocket: WebSocket, engine: GameEngine) -> None:
    await websocket.send_text(
        json.dumps(engine.get_state(), separators=(",", ":")),
    )


@ws_router.websocket("/games/{game_id}/play")
async def play(websocket: WebSocket, game_id: str) -> None:
    """Player WebSocket: send commands, receive the state on every change."""
    manager = _get_manager(websocket)
    session = manager.get_game(game_id)
    if session is None:
        await websocket.close(code=4004, reason="Game not found.")
        return

    await websocket.accept()
    session.sockets.append(websocket)
    logger.info("Player connected to game %s.", game_id)

    # Send initial state snapshot so the client gets immediate feedback.
    await _send_state(websocket, session.engine)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            apply_message(session.engine, msg)
    except WebSocketDisconnect:
        logger.info("Player disconnected from game %s.", game_id)
    finally:
        if websocket in session.sockets:
            session.sockets.remove(websocket)


@ws_router.websocket("/games/{game_id}/spectate")
async def spectate(websocket: WebSocket, game_id: str) -> None:
    """Spectator WebSocket: receive-only state stream."""
    manager = _get_manager(websocket)
    session = manager.get_game(game_id)
    if session is None:
        await websocket.close(code=4004, reason="Game not found.")
        return

    await websocket.accept()
    session.sockets.append(websocket)
    logger.info("Spectator connected to game %s.", game_id)
    await _send_state(websocket, session.engine)

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Spectator disconnected from game %s.", game_id)
    finally:
        if websocket in session.sockets:
            session.sockets.remove(websocket)
