"""Engine configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path

from power_snake.grid import Grid

logger = logging.getLogger(__name__)

INITIAL_SNAKE_LENGTH = 3


@dataclass(frozen=True)
class EngineConfig:
    """Board geometry, timing, and scoring for one game.

    Supports JSON serialization for reproducibility.
    """

    # Board
    canvas_width: int = 400
    canvas_height: int = 400
    cell_size: int = 20

    # Timing (milliseconds)
    base_interval_ms: int = 150
    magnet_interval_ms: int = 200

    # Rules
    food_points: int = 1
    blackout_radius: int = 3
    max_placement_attempts: int = 100

    seed: int | None = None

    def __post_init__(self) -> None:
        if self.base_interval_ms <= 0:
            raise ValueError("base_interval_ms must be positive.")
        if self.magnet_interval_ms <= 0:
            raise ValueError("magnet_interval_ms must be positive.")
        if self.food_points < 1:
            raise ValueError("food_points must be at least 1.")
        if self.blackout_radius < 0:
            raise ValueError("blackout_radius must be >= 0.")
        if self.max_placement_attempts < 0:
            raise ValueError("max_placement_attempts must be >= 0.")

        # Raises on bad geometry.
        grid = self.build_grid()
        x, _ = grid.center_cell()
        if x - grid.cell_size * (INITIAL_SNAKE_LENGTH - 1) < 0:
            raise ValueError(
                "The starting snake does not fit the configured grid; "
                "increase canvas_width."
            )

    def build_grid(self) -> Grid:
        return Grid(
            width=self.canvas_width,
            height=self.canvas_height,
            cell_size=self.cell_size,
        )

    def with_overrides(self, **overrides) -> EngineConfig:
        """Return a copy with the non-``None`` overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def load(cls, path: str | Path) -> EngineConfig:
        """Load config from a JSON file."""
        raw = json.loads(Path(path).read_text())
        return cls(**raw)
