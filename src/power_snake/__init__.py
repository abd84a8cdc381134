"""Power Snake: grid snake rules engine with power-ups."""

from power_snake.config import EngineConfig
from power_snake.engine import GameEngine, GameStatus, Snapshot
from power_snake.exceptions import (
    BoardFullError,
    PowerSnakeError,
    RegistryError,
    UnknownPowerUpError,
)
from power_snake.grid import Grid
from power_snake.placement import CollectiblePlacer, SpawnDecision
from power_snake.powerups import (
    REGISTRY,
    ActivePowerUp,
    PowerUpKind,
    PowerUpSpec,
    SpawnedPowerUp,
)
from power_snake.scheduler import AsyncioScheduler, ManualScheduler, TimerHandle
from power_snake.snake import Direction

__all__ = [
    "REGISTRY",
    "ActivePowerUp",
    "AsyncioScheduler",
    "BoardFullError",
    "CollectiblePlacer",
    "Direction",
    "EngineConfig",
    "GameEngine",
    "GameStatus",
    "Grid",
    "ManualScheduler",
    "PowerSnakeError",
    "PowerUpKind",
    "PowerUpSpec",
    "RegistryError",
    "Snapshot",
    "SpawnDecision",
    "SpawnedPowerUp",
    "TimerHandle",
    "UnknownPowerUpError",
]
