"""Directions, input mapping, and the starting snake."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from power_snake.grid import Cell, Grid


class Direction(enum.Enum):
    """Cardinal movement directions with (dx, dy) values.

    The y axis grows downwards, matching canvas coordinates.
    """

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def label(self) -> str:
        return self.name.lower()


# Pairs that would cause an instant 180° reversal.
OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

# Arrow key codes as reported by browser keyboard events.
LEFT_KEY = 37
UP_KEY = 38
RIGHT_KEY = 39
DOWN_KEY = 40

KEY_CODES: dict[int, Direction] = {
    LEFT_KEY: Direction.LEFT,
    UP_KEY: Direction.UP,
    RIGHT_KEY: Direction.RIGHT,
    DOWN_KEY: Direction.DOWN,
}

_NAMES: dict[str, Direction] = {d.label: d for d in Direction}

Snake = tuple["Cell", ...]


def parse_direction(command: Direction | int | str) -> Direction | None:
    """Translate a key code, name, or Direction into a Direction.

    Returns ``None`` for anything that is not one of the four inputs.
    """
    if isinstance(command, Direction):
        return command
    if isinstance(command, bool):
        return None
    if isinstance(command, int):
        return KEY_CODES.get(command)
    if isinstance(command, str):
        return _NAMES.get(command.strip().lower())
    return None


def is_reversal(current: Direction, requested: Direction) -> bool:
    """Check whether *requested* points straight back along *current*."""
    return OPPOSITES[current] is requested


def initial_snake(grid: Grid, length: int = 3) -> Snake:
    """Build a horizontal, right-facing snake centred on the grid."""
    if length < 1:
        raise ValueError("Snake length must be at least 1.")
    x, y = grid.center_cell()
    return tuple((x - grid.cell_size * i, y) for i in range(length))
