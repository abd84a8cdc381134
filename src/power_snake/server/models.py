"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from power_snake.engine import GameStatus


class CreateGameRequest(BaseModel):
    """Request body for POST /games."""

    canvas_width: int = Field(default=400, ge=1, le=4000)
    canvas_height: int = Field(default=400, ge=1, le=4000)
    cell_size: int = Field(default=20, ge=1, le=200)
    base_interval_ms: int = Field(default=150, ge=20, le=2000)
    seed: int | None = None


class DirectionRequest(BaseModel):
    """Request body for POST /games/{game_id}/direction.

    Either a direction name or an arrow key code.
    """

    direction: str | None = None
    key: int | None = None


class PowerUpRequest(BaseModel):
    """Request body for POST /games/{game_id}/powerups."""

    kind: str


class GameSummary(BaseModel):
    """Compact game info for list endpoints."""

    game_id: str
    status: GameStatus
    score: int
    tick: int
    canvas_width: int
    canvas_height: int
    cell_size: int
    base_interval_ms: int


class DirectionResponse(BaseModel):
    """Outcome of a direction request."""

    changed: bool
    state: dict


class VisibleCellsResponse(BaseModel):
    """Cells the renderer may draw."""

    cells: list[tuple[int, int]]


class PowerUpInfo(BaseModel):
    """One entry of the power-up catalogue."""

    type: str
    name: str
    duration_ms: int
    spawn_weight: int
    instant: bool
    message: str
