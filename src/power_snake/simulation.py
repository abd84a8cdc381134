"""Headless simulation runs on a fake clock."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field

import numpy as np

from power_snake.config import EngineConfig
from power_snake.engine import GameEngine, Snapshot
from power_snake.powerups import ActivePowerUp
from power_snake.scheduler import ManualScheduler
from power_snake.snake import Direction

logger = logging.getLogger(__name__)

_DIRECTIONS = list(Direction)


@dataclass
class SimulationResult:
    """Aggregate outcome of a batch of simulated games."""

    games: int
    total_ticks: int
    scores: list[int]
    wall_time_seconds: float
    activations: Counter = field(default_factory=Counter)

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.scores)) if self.scores else 0.0

    @property
    def best_score(self) -> int:
        return max(self.scores, default=0)

    def summary(self) -> str:
        top = ", ".join(f"{k}={v}" for k, v in self.activations.most_common())
        return (
            f"Simulation: {self.games} games, {self.total_ticks} ticks in "
            f"{self.wall_time_seconds:.2f}s | mean score "
            f"{self.mean_score:.2f}, best {self.best_score}"
            + (f" | power-ups: {top}" if top else "")
        )


def play_one(
    config: EngineConfig,
    rng: np.random.Generator,
    max_ticks: int = 1_000,
    turn_chance: float = 0.2,
) -> tuple[Snapshot, Counter]:
    """Play a single game with random turns until it ends or *max_ticks*.

    Returns the final snapshot and a count of power-up activations.
    """
    scheduler = ManualScheduler()
    engine = GameEngine(config, scheduler, rng=rng)
    activations: Counter = Counter()
    last: list[ActivePowerUp | None] = [None]

    def _track(snap: Snapshot) -> None:
        active = snap.active_power_up
        if active is not None and active is not last[0]:
            activations[active.kind.value] += 1
        last[0] = active

    engine.subscribe(_track)
    engine.start_game()
    start_tick = engine.snapshot.tick
    while not engine.snapshot.is_game_over:
        if engine.snapshot.tick - start_tick >= max_ticks:
            break
        if rng.random() < turn_chance:
            engine.change_direction(_DIRECTIONS[int(rng.integers(4))])
        scheduler.advance(engine.tick_interval_ms)
    engine.shutdown()
    return engine.snapshot, activations


def run_simulations(
    *,
    games: int = 100,
    max_ticks: int = 1_000,
    seed: int | None = 42,
    config: EngineConfig | None = None,
) -> SimulationResult:
    """Run *games* random-input games and collect statistics."""
    if games < 1:
        raise ValueError("games must be at least 1.")
    cfg = config or EngineConfig()
    rng = np.random.default_rng(seed)

    scores: list[int] = []
    activations: Counter = Counter()
    total_ticks = 0
    start = time.perf_counter()
    for _ in range(games):
        final, counts = play_one(cfg, rng, max_ticks=max_ticks)
        scores.append(final.score)
        total_ticks += final.tick
        activations.update(counts)

    result = SimulationResult(
        games=games,
        total_ticks=total_ticks,
        scores=scores,
        wall_time_seconds=time.perf_counter() - start,
        activations=activations,
    )
    logger.info(result.summary())
    return result
