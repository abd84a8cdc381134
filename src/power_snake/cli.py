"""Command-line entry point: serve the API or run headless simulations."""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="power-snake",
        description="Power Snake game server and simulation tools.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- serve ---
    serve_p = sub.add_parser("serve", help="Run the HTTP/WebSocket server.")
    serve_p.add_argument("--host", type=str, default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8000)
    serve_p.add_argument("--log-level", type=str, default="info")

    # --- simulate ---
    sim_p = sub.add_parser(
        "simulate", help="Play random games on a fake clock.",
    )
    sim_p.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON engine config.",
    )
    sim_p.add_argument("--games", type=int, default=100)
    sim_p.add_argument("--max-ticks", type=int, default=1_000)
    sim_p.add_argument("--seed", type=int, default=42)
    sim_p.add_argument("--canvas-width", type=int, default=None)
    sim_p.add_argument("--canvas-height", type=int, default=None)
    sim_p.add_argument("--cell-size", type=int, default=None)

    return parser


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from power_snake.server.app import create_app

    uvicorn.run(
        create_app(), host=args.host, port=args.port, log_level=args.log_level,
    )
    return 0


def _run_simulate(args: argparse.Namespace) -> int:
    from power_snake.config import EngineConfig
    from power_snake.simulation import run_simulations

    config = EngineConfig.load(args.config) if args.config else EngineConfig()
    try:
        config = config.with_overrides(
            canvas_width=args.canvas_width,
            canvas_height=args.canvas_height,
            cell_size=args.cell_size,
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    result = run_simulations(
        games=args.games,
        max_ticks=args.max_ticks,
        seed=args.seed,
        config=config,
    )
    print(result.summary())  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``power-snake`` CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "serve": _run_serve,
        "simulate": _run_simulate,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
