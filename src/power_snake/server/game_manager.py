"""In-memory session registry, engine wiring, and state broadcasting."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from starlette.websockets import WebSocket, WebSocketState

from power_snake.config import EngineConfig
from power_snake.engine import GameEngine, GameStatus, Snapshot
from power_snake.scheduler import AsyncioScheduler
from power_snake.server.models import GameSummary

logger = logging.getLogger(__name__)

_MAX_FINISHED_GAMES = 100

# Lifecycle commands accepted over REST and WebSocket.
COMMANDS: dict[str, Callable[[GameEngine], object]] = {
    "start": GameEngine.start_game,
    "pause": GameEngine.pause_game,
    "resume": GameEngine.resume_game,
    "reset": GameEngine.init_game,
}


@dataclass
class GameSession:
    """One engine plus the sockets watching it."""

    game_id: str
    engine: GameEngine
    sockets: list[WebSocket] = field(default_factory=list)
    created_at: float = field(default_factory=time.monotonic)
    finished_at: float | None = None
    _unsubscribe: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def status(self) -> GameStatus:
        return self.engine.status

    def summary(self) -> GameSummary:
        cfg = self.engine.config
        snap = self.engine.snapshot
        return GameSummary(
            game_id=self.game_id,
            status=snap.status,
            score=snap.score,
            tick=snap.tick,
            canvas_width=cfg.canvas_width,
            canvas_height=cfg.canvas_height,
            cell_size=cfg.cell_size,
            base_interval_ms=cfg.base_interval_ms,
        )


class GameManager:
    """Central registry managing all game sessions."""

    def __init__(self, max_finished_games: int = _MAX_FINISHED_GAMES) -> None:
        if max_finished_games < 0:
            raise ValueError("max_finished_games must be >= 0.")
        self._games: dict[str, GameSession] = {}
        self._max_finished_games = max_finished_games
        self._pending: set[asyncio.Task] = set()

    def create_game(
        self,
        canvas_width: int = 400,
        canvas_height: int = 400,
        cell_size: int = 20,
        base_interval_ms: int = 150,
        seed: int | None = None,
    ) -> GameSession:
        """Create a new idle game and return its session."""
        config = EngineConfig(
            canvas_width=canvas_width,
            canvas_height=canvas_height,
            cell_size=cell_size,
            base_interval_ms=base_interval_ms,
            seed=seed,
        )
        game_id = uuid.uuid4().hex[:12]
        scheduler = AsyncioScheduler(
            on_error=functools.partial(self._on_engine_error, game_id),
        )
        engine = GameEngine(config, scheduler)
        session = GameSession(game_id=game_id, engine=engine)
        session._unsubscribe = engine.subscribe(
            functools.partial(self._on_snapshot, session),
        )
        self._games[game_id] = session
        logger.info(
            "Game %s created (%dx%d, cell %d).",
            game_id, canvas_width, canvas_height, cell_size,
        )
        return session

    def get_game(self, game_id: str) -> GameSession | None:
        return self._games.get(game_id)

    def require_game(self, game_id: str) -> GameSession:
        session = self._games.get(game_id)
        if session is None:
            raise KeyError(f"Game {game_id} not found.")
        return session

    def list_games(self) -> list[GameSummary]:
        """Return summaries of games that are not over."""
        return [
            s.summary() for s in self._games.values()
            if s.status is not GameStatus.OVER
        ]

    def run_command(self, game_id: str, command: str) -> GameSession:
        """Apply a lifecycle command (start, pause, resume, reset)."""
        session = self.require_game(game_id)
        handler = COMMANDS.get(command)
        if handler is None:
            raise ValueError(f"Unknown command {command!r}.")
        handler(session.engine)
        return session

    def _on_snapshot(self, session: GameSession, snapshot: Snapshot) -> None:
        if snapshot.is_game_over:
            if session.finished_at is None:
                session.finished_at = time.monotonic()
                self._prune_finished_games()
        else:
            session.finished_at = None
        self._schedule_broadcast(session)

    def _on_engine_error(self, game_id: str, exc: BaseException) -> None:
        session = self._games.get(game_id)
        logger.error("Engine error in game %s: %s", game_id, exc)
        if session is not None:
            # Ends the game, which broadcasts the final state and makes
            # the session eligible for pruning.
            session.engine.abort("Game aborted after an internal error.")

    def _schedule_broadcast(self, session: GameSession) -> None:
        if not session.sockets:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        payload = json.dumps(session.engine.get_state(), separators=(",", ":"))
        task = loop.create_task(self._broadcast(session, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _broadcast(self, session: GameSession, payload: str) -> None:
        """Send game state to every connected socket."""
        dead: list[WebSocket] = []
        # Iterate over a snapshot so disconnect handlers can mutate the list.
        for ws in list(session.sockets):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.send_text(payload)
            except Exception:
                dead.append(ws)

        for ws in dead:
            if ws in session.sockets:
                session.sockets.remove(ws)

    async def close_connections(self, session: GameSession) -> None:
        """Close every live socket for a session."""
        for ws in list(session.sockets):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.close(code=1000, reason="Game closed.")
            except Exception:
                logger.warning("Failed closing socket in game %s.", session.game_id)
        session.sockets.clear()

    def _prune_finished_games(self) -> None:
        """Bound retained finished games to avoid unbounded registry growth."""
        finished = [
            s for s in self._games.values()
            if s.status is GameStatus.OVER and not s.sockets
        ]
        overflow = len(finished) - self._max_finished_games
        if overflow <= 0:
            return

        finished.sort(
            key=lambda s: s.finished_at if s.finished_at is not None else s.created_at,
        )
        for stale in finished[:overflow]:
            self._discard(stale)
        logger.info(
            "Pruned %d finished games (retaining up to %d).",
            overflow,
            self._max_finished_games,
        )

    def _discard(self, session: GameSession) -> None:
        session.engine.shutdown()
        if session._unsubscribe is not None:
            session._unsubscribe()
            session._unsubscribe = None
        self._games.pop(session.game_id, None)

    async def cleanup(self) -> None:
        """Stop every engine and close all sockets."""
        for session in list(self._games.values()):
            session.engine.shutdown()
            await self.close_connections(session)
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        logger.info("GameManager cleanup complete.")
