"""Head movement and collision rules, including power-up overrides."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from power_snake.powerups import REGISTRY

if TYPE_CHECKING:
    from power_snake.grid import Cell, Grid
    from power_snake.powerups import ActivePowerUp
    from power_snake.snake import Direction


def _is_ghost(active: ActivePowerUp | None) -> bool:
    return active is not None and REGISTRY[active.kind].ghost


def compute_next_head(
    grid: Grid,
    head: Cell,
    direction: Direction,
    active: ActivePowerUp | None = None,
) -> Cell:
    """Return the head position after one step.

    The result wraps at the grid edges only in ghost mode; otherwise it
    may lie outside the grid and is left for :func:`check_collision`.
    """
    nxt = grid.step(head, direction)
    if _is_ghost(active):
        return grid.wrap(nxt)
    return nxt


def check_collisions(
    grid: Grid,
    head: Cell,
    body: Sequence[Cell],
    active: ActivePowerUp | None = None,
) -> bool:
    """Check *head* against the walls, then against *body*."""
    if _is_ghost(active):
        return False
    if not grid.in_bounds(head):
        return True
    return any(seg == head for seg in body)


def check_collision(
    grid: Grid,
    snake: Sequence[Cell],
    active: ActivePowerUp | None = None,
) -> bool:
    """Check whether a candidate snake (head first) is in a losing position."""
    return check_collisions(grid, snake[0], snake[1:], active)


def magnet_step(grid: Grid, food: Cell, head: Cell) -> Cell:
    """Pull *food* one cell toward *head*.

    Moves along whichever axis has the larger offset; ties move
    vertically. The result is clamped to the grid.
    """
    dx = head[0] - food[0]
    dy = head[1] - food[1]
    if dx == 0 and dy == 0:
        return food
    g = grid.cell_size
    x, y = food
    if abs(dx) > abs(dy):
        x += g if dx > 0 else -g
    else:
        y += g if dy > 0 else -g
    x = max(0, min(grid.width - g, x))
    y = max(0, min(grid.height - g, y))
    return x, y
