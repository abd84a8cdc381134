"""REST API route handlers for game lifecycle and commands."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from power_snake.powerups import REGISTRY
from power_snake.server.game_manager import GameManager, GameSession
from power_snake.server.models import (
    CreateGameRequest,
    DirectionRequest,
    DirectionResponse,
    GameSummary,
    PowerUpInfo,
    PowerUpRequest,
    VisibleCellsResponse,
)

router = APIRouter(prefix="/games", tags=["games"])


def _get_manager(request: Request) -> GameManager:
    return request.app.state.game_manager


def _require(request: Request, game_id: str) -> GameSession:
    try:
        return _get_manager(request).require_game(game_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found.") from exc


def _command(request: Request, game_id: str, command: str) -> dict:
    session = _require(request, game_id)
    _get_manager(request).run_command(game_id, command)
    return session.engine.get_state()


@router.post("", status_code=201)
async def create_game(body: CreateGameRequest, request: Request) -> GameSummary:
    """Create a new idle game."""
    manager = _get_manager(request)
    try:
        session = manager.create_game(
            canvas_width=body.canvas_width,
            canvas_height=body.canvas_height,
            cell_size=body.cell_size,
            base_interval_ms=body.base_interval_ms,
            seed=body.seed,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return session.summary()


@router.get("")
async def list_games(request: Request) -> list[GameSummary]:
    """List games that are not over."""
    return _get_manager(request).list_games()


@router.get("/{game_id}")
async def get_game(game_id: str, request: Request) -> dict:
    """Get game metadata and the current snapshot."""
    session = _require(request, game_id)
    result = session.summary().model_dump(mode="json")
    result["state"] = session.engine.get_state()
    return result


@router.post("/{game_id}/start")
async def start_game(game_id: str, request: Request) -> dict:
    return _command(request, game_id, "start")


@router.post("/{game_id}/pause")
async def pause_game(game_id: str, request: Request) -> dict:
    return _command(request, game_id, "pause")


@router.post("/{game_id}/resume")
async def resume_game(game_id: str, request: Request) -> dict:
    return _command(request, game_id, "resume")


@router.post("/{game_id}/reset")
async def reset_game(game_id: str, request: Request) -> dict:
    """Throw the current game away and return to idle."""
    return _command(request, game_id, "reset")


@router.post("/{game_id}/direction")
async def change_direction(
    game_id: str, body: DirectionRequest, request: Request,
) -> DirectionResponse:
    """Request a turn by name or arrow key code."""
    session = _require(request, game_id)
    command = body.key if body.key is not None else body.direction
    if command is None:
        raise HTTPException(
            status_code=422, detail="Provide either 'direction' or 'key'.",
        )
    changed = session.engine.change_direction(command)
    return DirectionResponse(changed=changed, state=session.engine.get_state())


@router.post("/{game_id}/powerups")
async def activate_power_up(
    game_id: str, body: PowerUpRequest, request: Request,
) -> dict:
    """Trigger a power-up directly. Unknown kinds surface as 422."""
    session = _require(request, game_id)
    session.engine.activate_power_up(body.kind)
    return session.engine.get_state()


@router.get("/{game_id}/visible")
async def visible_cells(game_id: str, request: Request) -> VisibleCellsResponse:
    """Cells visible around the head (all cells outside blackout mode)."""
    session = _require(request, game_id)
    return VisibleCellsResponse(
        cells=sorted(session.engine.get_visible_cells()),
    )


catalogue_router = APIRouter(prefix="/powerups", tags=["powerups"])


@catalogue_router.get("")
async def power_up_catalogue() -> list[PowerUpInfo]:
    """Every power-up kind with its timing and spawn weight."""
    return [
        PowerUpInfo(
            type=kind.value,
            name=kind.display_name,
            duration_ms=spec.duration_ms,
            spawn_weight=spec.spawn_weight,
            instant=spec.is_instant,
            message=spec.message,
        )
        for kind, spec in REGISTRY.items()
    ]
