"""Collectible placement: where food and power-ups appear, and which one."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from power_snake.exceptions import BoardFullError
from power_snake.powerups import REGISTRY, PowerUpKind, SpawnedPowerUp

if TYPE_CHECKING:
    from power_snake.grid import Cell, Grid

logger = logging.getLogger(__name__)

_DEFAULT_MAX_ATTEMPTS = 100


@dataclass(frozen=True)
class SpawnDecision:
    """Outcome of :meth:`CollectiblePlacer.decide`."""

    power_up: PowerUpKind | None = None

    @property
    def is_food(self) -> bool:
        return self.power_up is None


class CollectiblePlacer:
    """Chooses and places the next collectible.

    Uses a seeded NumPy RNG for deterministic, reproducible placement.
    Rejection sampling is bounded by *max_attempts*; past that the free
    cells are enumerated and one is drawn uniformly.
    """

    def __init__(
        self,
        grid: Grid,
        rng: np.random.Generator | None = None,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0.")
        self.grid = grid
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_attempts = max_attempts

    def place(
        self,
        snake: Sequence[Cell],
        food: Cell | None = None,
        power_up: SpawnedPowerUp | None = None,
    ) -> Cell:
        """Return a cell free of the snake and of both live collectibles.

        Raises :class:`BoardFullError` when every cell is taken.
        """
        excluded = set(snake)
        if food is not None:
            excluded.add(food)
        if power_up is not None:
            excluded.add(power_up.cell)

        for _ in range(self.max_attempts):
            cell = self.grid.random_cell(self.rng)
            if cell not in excluded:
                return cell

        free = self.grid.free_cells(excluded)
        if not free:
            raise BoardFullError("No empty cells available for a collectible.")
        logger.warning(
            "Rejection sampling gave up after %d draws; %d free cells left.",
            self.max_attempts, len(free),
        )
        return free[int(self.rng.integers(len(free)))]

    def decide(self) -> SpawnDecision:
        """Choose between food and a power-up.

        A candidate kind is drawn uniformly, then spawned with probability
        ``spawn_weight / 100``; otherwise the result is food.
        """
        kinds = list(PowerUpKind)
        candidate = kinds[int(self.rng.integers(len(kinds)))]
        chance = REGISTRY[candidate].spawn_weight / 100
        if self.rng.random() < chance:
            return SpawnDecision(power_up=candidate)
        return SpawnDecision()

    def spawn(
        self,
        snake: Sequence[Cell],
        food: Cell | None,
        power_up: SpawnedPowerUp | None,
        now: float,
    ) -> tuple[Cell | None, SpawnedPowerUp | None]:
        """Add exactly one collectible to the board.

        Returns the new ``(food, power_up)`` pair.
        """
        decision = self.decide()
        cell = self.place(snake, food, power_up)
        if decision.is_food:
            return cell, power_up
        spec = REGISTRY[decision.power_up]
        spawned = SpawnedPowerUp(
            cell=cell,
            kind=decision.power_up,
            end_time=now + spec.duration_ms,
            is_instant=spec.is_instant,
        )
        logger.debug("Spawned %s at %s.", spawned.kind.value, cell)
        return food, spawned
