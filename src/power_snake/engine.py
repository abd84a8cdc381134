"""Tick-driven game state machine composing grid, placement, and power-ups."""

from __future__ import annotations

import enum
import functools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

import numpy as np

from power_snake.config import INITIAL_SNAKE_LENGTH, EngineConfig
from power_snake.exceptions import BoardFullError
from power_snake.grid import Cell
from power_snake.movement import (
    check_collision,
    check_collisions,
    compute_next_head,
    magnet_step,
)
from power_snake.placement import CollectiblePlacer
from power_snake.powerups import (
    REGISTRY,
    ActivePowerUp,
    PowerUpKind,
    SpawnedPowerUp,
    parse_kind,
    resolve_kind,
)
from power_snake.scheduler import ManualScheduler, Scheduler, TimerHandle
from power_snake.snake import Direction, initial_snake, is_reversal, parse_direction

logger = logging.getLogger(__name__)

_TICK = "tick"
_MAGNET = "magnet"
_EXPIRY = "expiry"


class GameStatus(str, enum.Enum):
    """Lifecycle states for a game."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    OVER = "over"


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the whole game state after one update."""

    snake: tuple[Cell, ...]
    food: Cell | None
    power_up: SpawnedPowerUp | None
    active_power_up: ActivePowerUp | None
    direction: Direction
    score: int
    status: GameStatus
    message: str = ""
    tick: int = 0

    @property
    def head(self) -> Cell:
        return self.snake[0]

    @property
    def is_game_over(self) -> bool:
        return self.status is GameStatus.OVER

    @property
    def is_game_started(self) -> bool:
        return self.status is GameStatus.RUNNING

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict with renderer field names."""
        return {
            "snake": [{"x": x, "y": y} for x, y in self.snake],
            "food": (
                None if self.food is None
                else {"x": self.food[0], "y": self.food[1]}
            ),
            "powerUp": (
                None if self.power_up is None else self.power_up.to_dict()
            ),
            "activePowerUp": (
                None if self.active_power_up is None
                else self.active_power_up.to_dict()
            ),
            "direction": self.direction.label,
            "score": self.score,
            "status": self.status.value,
            "isGameOver": self.is_game_over,
            "isGameStarted": self.is_game_started,
            "gameMessage": self.message,
            "tick": self.tick,
        }


Listener = Callable[[Snapshot], None]


class GameEngine:
    """Single-snake game engine with power-ups and scheduler-driven ticks.

    The engine owns the authoritative :class:`Snapshot` and replaces it
    wholesale on every change. Ticks, magnet pulls and power-up expiry are
    timers obtained from the injected *scheduler*; they only run while the
    game is :attr:`GameStatus.RUNNING`. With the default
    :class:`ManualScheduler` nothing fires on its own and callers may drive
    the game by calling :meth:`tick` directly.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        scheduler: Scheduler | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.grid = self.config.build_grid()
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.placer = CollectiblePlacer(
            self.grid,
            rng=self.rng,
            max_attempts=self.config.max_placement_attempts,
        )

        self._timers: dict[str, TimerHandle] = {}
        self._listeners: list[Listener] = []
        self._direction_latched = False
        self._frozen_at: float | None = None
        self._state: Snapshot | None = None
        self.init_game()

    # ------------------------------------------------------------------
    # Queries

    @property
    def snapshot(self) -> Snapshot:
        assert self._state is not None  # noqa: S101
        return self._state

    @property
    def status(self) -> GameStatus:
        return self.snapshot.status

    @property
    def tick_interval_ms(self) -> float:
        """Main tick period under the current power-up."""
        active = self.snapshot.active_power_up
        multiplier = REGISTRY[active.kind].speed_multiplier if active else 1.0
        return self.config.base_interval_ms * multiplier

    def food_value(self, active: ActivePowerUp | None = None) -> int:
        """Points awarded for one food under *active*."""
        multiplier = REGISTRY[active.kind].score_multiplier if active else 1
        return self.config.food_points * multiplier

    def check_collisions(self, head: Cell, body: Sequence[Cell]) -> bool:
        """Collision query under the currently active power-up."""
        return check_collisions(
            self.grid, head, body, self.snapshot.active_power_up,
        )

    def get_visible_cells(self, head: Cell | None = None) -> set[Cell]:
        """Cells the renderer may draw.

        Everything is visible unless blackout mode is active, in which case
        only cells within ``blackout_radius`` of *head* are.
        """
        state = self.snapshot
        center = head if head is not None else state.head
        active = state.active_power_up
        if active is not None and REGISTRY[active.kind].blackout:
            return self.grid.cells_within(center, self.config.blackout_radius)
        return set(self.grid.all_cells())

    def get_state(self) -> dict:
        """Return the full, serializable game state."""
        state = self.snapshot
        result = state.to_dict()
        result["grid"] = self.grid.to_dict()
        result["tickIntervalMs"] = self.tick_interval_ms
        active = state.active_power_up
        if active is not None and REGISTRY[active.kind].blackout:
            result["visibleCells"] = [
                {"x": x, "y": y} for x, y in sorted(self.get_visible_cells())
            ]
        else:
            result["visibleCells"] = None
        return result

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new snapshot. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle commands

    def init_game(self) -> Snapshot:
        """Reset everything to a fresh idle game."""
        self._cancel_timers()
        self._direction_latched = False
        # The power-up clock only runs while the game does.
        self._frozen_at = self.scheduler.now()
        snake = initial_snake(self.grid, INITIAL_SNAKE_LENGTH)
        food = self.placer.place(snake)
        self._commit(
            Snapshot(
                snake=snake,
                food=food,
                power_up=None,
                active_power_up=None,
                direction=Direction.RIGHT,
                score=0,
                status=GameStatus.IDLE,
            )
        )
        logger.debug("Game initialised; food at %s.", food)
        return self.snapshot

    def start_game(self) -> bool:
        """Move from idle to running. Returns whether the game started.

        A power-up activated while idle keeps its full duration.
        """
        state = self.snapshot
        if state.status is not GameStatus.IDLE:
            return False
        self._commit(
            replace(
                state,
                status=GameStatus.RUNNING,
                active_power_up=self._thaw(state.active_power_up),
                message="",
            )
        )
        logger.info("Game started (tick interval %.0f ms).", self.tick_interval_ms)
        return True

    def pause_game(self) -> bool:
        """Suspend a running game, freezing its timers."""
        state = self.snapshot
        if state.status is not GameStatus.RUNNING:
            return False
        self._frozen_at = self.scheduler.now()
        self._commit(replace(state, status=GameStatus.PAUSED, message="Paused"))
        logger.info("Game paused at tick %d.", state.tick)
        return True

    def resume_game(self) -> bool:
        """Continue a paused game; the active power-up keeps its remaining time."""
        state = self.snapshot
        if state.status is not GameStatus.PAUSED:
            return False
        self._commit(
            replace(
                state,
                status=GameStatus.RUNNING,
                active_power_up=self._thaw(state.active_power_up),
                message="",
            )
        )
        logger.info("Game resumed at tick %d.", state.tick)
        return True

    def abort(self, message: str = "Game aborted.") -> Snapshot:
        """End the game immediately, e.g. after a failing timer callback.

        The score is kept and listeners receive the final snapshot.
        """
        state = self.snapshot
        if state.status is GameStatus.OVER:
            return state
        self._frozen_at = None
        self._game_over(state, message)
        return self.snapshot

    def shutdown(self) -> None:
        """Cancel every outstanding timer."""
        self._cancel_timers()

    # ------------------------------------------------------------------
    # Input

    def change_direction(self, command: Direction | int | str) -> bool:
        """Request a turn from a Direction, arrow key code, or name.

        A valid request while idle starts the game. Reversals, repeats of
        the current direction and a second turn within one tick are
        ignored. Returns whether the direction changed.
        """
        direction = parse_direction(command)
        if direction is None:
            return False

        state = self.snapshot
        reverse = len(state.snake) > 1 and is_reversal(state.direction, direction)
        if state.status is GameStatus.IDLE and not reverse:
            self.start_game()
            state = self.snapshot

        if state.status is not GameStatus.RUNNING or self._direction_latched:
            return False
        # Rejected requests leave the latch open, so "left then up" while
        # moving right still turns up. A browser client that latches on
        # every keypress would ignore the "up" instead.
        if reverse or direction is state.direction:
            return False

        self._direction_latched = True
        self._commit(replace(state, direction=direction))
        return True

    # ------------------------------------------------------------------
    # Tick

    def tick(self) -> Snapshot:
        """Advance the game by one step.

        Movement and collectible consumption are applied to a candidate
        snake first; the collision check then decides between committing
        the candidate and ending the game on the previous snapshot.
        """
        state = self.snapshot
        if state.status is not GameStatus.RUNNING:
            return state

        self._direction_latched = False
        active = state.active_power_up
        head = compute_next_head(self.grid, state.head, state.direction, active)
        candidate = [head, *state.snake]

        score = state.score
        food = state.food
        power_up = state.power_up
        eaten: PowerUpKind | None = None
        ate = False

        if food is not None and head == food:
            score += self.food_value(active)
            food = None
            ate = True
        elif power_up is not None and head == power_up.cell:
            eaten = power_up.kind
            power_up = None
            ate = True
            # Power-ups never grow the snake.
            candidate.pop()

        if not ate:
            candidate.pop()

        if check_collision(self.grid, candidate, active):
            self._game_over(
                replace(state, tick=state.tick + 1),
                f"Game Over! Final score: {state.score}",
            )
            return self.snapshot

        new_state = replace(
            state,
            snake=tuple(candidate),
            food=food,
            power_up=power_up,
            score=score,
            tick=state.tick + 1,
        )
        if eaten is not None:
            new_state = self._apply_power_up_effect(new_state, eaten)

        if ate:
            try:
                food, power_up = self.placer.spawn(
                    new_state.snake,
                    new_state.food,
                    new_state.power_up,
                    self.scheduler.now(),
                )
            except BoardFullError:
                self._game_over(
                    new_state, f"Board full! Final score: {new_state.score}",
                )
                return self.snapshot
            new_state = replace(new_state, food=food, power_up=power_up)

        self._commit(new_state)
        logger.debug(
            "Tick %d: head=%s score=%d.", new_state.tick, head, new_state.score,
        )
        return self.snapshot

    # ------------------------------------------------------------------
    # Power-ups

    def activate_power_up(self, kind: PowerUpKind | str) -> Snapshot:
        """Apply a power-up as if it had just been collected.

        Raises :class:`~power_snake.exceptions.UnknownPowerUpError` for
        names outside the catalogue. Ignored once the game is over.
        """
        resolved = parse_kind(kind)
        state = self.snapshot
        if state.status is GameStatus.OVER:
            return state
        self._commit(self._apply_power_up_effect(state, resolved))
        return self.snapshot

    def _apply_power_up_effect(
        self, state: Snapshot, kind: PowerUpKind,
    ) -> Snapshot:
        kind = resolve_kind(kind, self.rng)
        spec = REGISTRY[kind]
        if spec.is_instant:
            logger.info("%s: +%d points.", kind.value, spec.bonus_points)
            return replace(
                state, score=state.score + spec.bonus_points, message=spec.message,
            )

        now = self._clock()
        active = ActivePowerUp(
            kind=kind, start_time=now, end_time=now + spec.duration_ms,
        )
        if state.active_power_up is not None:
            logger.info(
                "%s replaces %s.", kind.value, state.active_power_up.kind.value,
            )
        logger.info("Power-up %s active for %d ms.", kind.value, spec.duration_ms)
        return replace(state, active_power_up=active, message=spec.message)

    def _on_expiry(self, expected: ActivePowerUp) -> None:
        state = self.snapshot
        if state.status is not GameStatus.RUNNING:
            return
        if state.active_power_up is not expected:
            return
        spec = REGISTRY[expected.kind]
        logger.info("Power-up %s expired.", expected.kind.value)
        self._commit(
            replace(state, active_power_up=None, message=spec.expiry_message)
        )

    def _on_magnet(self) -> None:
        state = self.snapshot
        active = state.active_power_up
        if (
            state.status is not GameStatus.RUNNING
            or active is None
            or not REGISTRY[active.kind].magnet
            or state.food is None
        ):
            return
        target = magnet_step(self.grid, state.food, state.head)
        if target == state.food or target in state.snake:
            return
        if state.power_up is not None and target == state.power_up.cell:
            return
        self._commit(replace(state, food=target))

    # ------------------------------------------------------------------
    # Internals

    def _clock(self) -> float:
        # Time stands still while idle or paused.
        if self._frozen_at is not None:
            return self._frozen_at
        return self.scheduler.now()

    def _thaw(self, active: ActivePowerUp | None) -> ActivePowerUp | None:
        """Restart the clock, moving *active*'s end by the frozen span."""
        frozen_at, self._frozen_at = self._frozen_at, None
        if active is None or frozen_at is None:
            return active
        frozen_for = self.scheduler.now() - frozen_at
        return replace(active, end_time=active.end_time + frozen_for)

    def _game_over(self, state: Snapshot, message: str) -> None:
        self._commit(replace(state, status=GameStatus.OVER, message=message))
        logger.info(
            "Game over at tick %d with score %d: %s",
            state.tick, state.score, message,
        )

    def _commit(self, new: Snapshot) -> None:
        """Install *new* as the current snapshot and bring timers in line."""
        old = self._state
        self._state = new

        if new.status is not GameStatus.RUNNING:
            self._cancel_timers()
        elif old is None or old.status is not GameStatus.RUNNING:
            self._arm_timers()
        elif new.active_power_up is not old.active_power_up:
            self._rearm_power_up_timers()
        else:
            self._sync_magnet()

        for listener in list(self._listeners):
            try:
                listener(new)
            except Exception:
                logger.exception("Snapshot listener failed.")

    def _arm_timers(self) -> None:
        self._cancel_timers()
        self._timers[_TICK] = self.scheduler.every(
            self.tick_interval_ms, self.tick,
        )
        self._arm_expiry()
        self._sync_magnet()

    def _rearm_power_up_timers(self) -> None:
        for name in (_TICK, _EXPIRY):
            handle = self._timers.pop(name, None)
            if handle is not None:
                handle.cancel()
        self._timers[_TICK] = self.scheduler.every(
            self.tick_interval_ms, self.tick,
        )
        self._arm_expiry()
        self._sync_magnet()

    def _arm_expiry(self) -> None:
        active = self.snapshot.active_power_up
        if active is None or active.is_instant:
            return
        remaining = active.end_time - self.scheduler.now()
        self._timers[_EXPIRY] = self.scheduler.after(
            max(0.0, remaining), functools.partial(self._on_expiry, active),
        )

    def _sync_magnet(self) -> None:
        state = self.snapshot
        active = state.active_power_up
        wanted = (
            state.status is GameStatus.RUNNING
            and active is not None
            and REGISTRY[active.kind].magnet
            and state.food is not None
        )
        if wanted and _MAGNET not in self._timers:
            self._timers[_MAGNET] = self.scheduler.every(
                self.config.magnet_interval_ms, self._on_magnet,
            )
        elif not wanted and _MAGNET in self._timers:
            self._timers.pop(_MAGNET).cancel()

    def _cancel_timers(self) -> None:
        timers, self._timers = self._timers, {}
        for handle in timers.values():
            handle.cancel()
