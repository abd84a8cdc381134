"""Static catalogue of power-up kinds and their effects."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from power_snake.exceptions import RegistryError, UnknownPowerUpError

logger = logging.getLogger(__name__)


class PowerUpKind(str, enum.Enum):
    """Every power-up that can appear on the board."""

    GHOST_TIME = "ghostTime"
    MAGNET_HEAD = "magnetHead"
    DOUBLE_SCORE = "doubleScore"
    GOLDEN_APPLE = "goldenApple"
    SPEED_BOOST = "speedBoost"
    SNAIL_TIME = "snailTime"
    MYSTERY_BOX = "mysteryBox"
    BLACKOUT_MODE = "blackoutMode"

    @property
    def display_name(self) -> str:
        return self.value[0].upper() + self.value[1:]


@dataclass(frozen=True)
class PowerUpSpec:
    """Duration, spawn weight, and effect descriptor for one kind."""

    duration_ms: int
    spawn_weight: int
    message: str
    expiry_message: str = ""
    speed_multiplier: float = 1.0
    score_multiplier: int = 1
    bonus_points: int = 0
    ghost: bool = False
    magnet: bool = False
    blackout: bool = False
    redirect: bool = False

    @property
    def is_instant(self) -> bool:
        return self.duration_ms == 0


@dataclass(frozen=True)
class SpawnedPowerUp:
    """A power-up lying on the board, waiting to be collected."""

    cell: tuple[int, int]
    kind: PowerUpKind
    end_time: float
    is_instant: bool

    def to_dict(self) -> dict:
        return {
            "x": self.cell[0],
            "y": self.cell[1],
            "type": self.kind.value,
            "endTime": self.end_time,
            "isInstant": self.is_instant,
        }


@dataclass(frozen=True)
class ActivePowerUp:
    """A collected power-up whose effect is currently in force."""

    kind: PowerUpKind
    start_time: float
    end_time: float
    is_instant: bool = False

    def remaining_ms(self, now: float) -> float:
        return max(0.0, self.end_time - now)

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "isInstant": self.is_instant,
        }


def _expired(kind: PowerUpKind) -> str:
    return f"{kind.display_name} expired!"


REGISTRY: dict[PowerUpKind, PowerUpSpec] = {
    PowerUpKind.GHOST_TIME: PowerUpSpec(
        duration_ms=8000,
        spawn_weight=12,
        message="Ghost Mode: Pass through walls and yourself!",
        expiry_message=_expired(PowerUpKind.GHOST_TIME),
        ghost=True,
    ),
    PowerUpKind.MAGNET_HEAD: PowerUpSpec(
        duration_ms=10000,
        spawn_weight=15,
        message="Magnet Head: Food is drawn to you!",
        expiry_message=_expired(PowerUpKind.MAGNET_HEAD),
        magnet=True,
    ),
    PowerUpKind.DOUBLE_SCORE: PowerUpSpec(
        duration_ms=8000,
        spawn_weight=18,
        message="Double Score: All food worth 2x points!",
        expiry_message=_expired(PowerUpKind.DOUBLE_SCORE),
        score_multiplier=2,
    ),
    PowerUpKind.GOLDEN_APPLE: PowerUpSpec(
        duration_ms=0,
        spawn_weight=8,
        message="Golden Apple! +5 points!",
        bonus_points=5,
    ),
    PowerUpKind.SPEED_BOOST: PowerUpSpec(
        duration_ms=6000,
        spawn_weight=12,
        message="Speed Boost: Lightning fast!",
        expiry_message=_expired(PowerUpKind.SPEED_BOOST),
        speed_multiplier=0.5,
    ),
    PowerUpKind.SNAIL_TIME: PowerUpSpec(
        duration_ms=12000,
        spawn_weight=10,
        message="Snail Time: Slow but double points!",
        expiry_message=_expired(PowerUpKind.SNAIL_TIME),
        speed_multiplier=2.5,
        score_multiplier=2,
    ),
    PowerUpKind.MYSTERY_BOX: PowerUpSpec(
        duration_ms=0,
        spawn_weight=5,
        message="Mystery Box revealed!",
        redirect=True,
    ),
    PowerUpKind.BLACKOUT_MODE: PowerUpSpec(
        duration_ms=8000,
        spawn_weight=8,
        message="Blackout Mode: Limited vision!",
        expiry_message="Vision restored!",
        blackout=True,
    ),
}


def validate_registry(registry: Mapping[PowerUpKind, PowerUpSpec]) -> None:
    """Reject a catalogue with missing, unknown, or out-of-range entries."""
    missing = set(PowerUpKind) - set(registry)
    if missing:
        names = ", ".join(sorted(k.value for k in missing))
        raise RegistryError(f"No spec registered for: {names}.")
    for kind, spec in registry.items():
        if not isinstance(kind, PowerUpKind):
            raise RegistryError(f"Unknown power-up kind {kind!r}.")
        if not 0 <= spec.spawn_weight <= 100:
            raise RegistryError(f"{kind.value}: spawn_weight must be 0-100.")
        if spec.duration_ms < 0:
            raise RegistryError(f"{kind.value}: duration_ms must be >= 0.")
        if spec.speed_multiplier <= 0 or spec.score_multiplier < 1:
            raise RegistryError(f"{kind.value}: multipliers must be positive.")
        if spec.redirect and not spec.is_instant:
            raise RegistryError(f"{kind.value}: redirects must be instant.")
        if not spec.is_instant and not spec.expiry_message:
            raise RegistryError(f"{kind.value}: timed kinds need an expiry message.")


validate_registry(REGISTRY)


def parse_kind(value: PowerUpKind | str) -> PowerUpKind:
    """Convert an external name into a PowerUpKind."""
    if isinstance(value, PowerUpKind):
        return value
    try:
        return PowerUpKind(value)
    except ValueError as exc:
        raise UnknownPowerUpError(f"Unknown power-up kind {value!r}.") from exc


def redirect_targets() -> list[PowerUpKind]:
    """Kinds a mystery box may turn into, in declaration order."""
    return [k for k in PowerUpKind if not REGISTRY[k].redirect]


def resolve_kind(kind: PowerUpKind, rng: np.random.Generator) -> PowerUpKind:
    """Follow a mystery-box redirect to a concrete kind."""
    if not REGISTRY[kind].redirect:
        return kind
    targets = redirect_targets()
    chosen = targets[int(rng.integers(len(targets)))]
    logger.info("Mystery box revealed %s.", chosen.value)
    return chosen
