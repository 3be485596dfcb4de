"""Entry point: ``python -m policy_loop``.

Supports two modes:
  - ``python -m policy_loop``        → Launch the FastAPI operator server against a simulated world
  - ``python -m policy_loop run``    → Headless run: step a simulated world and apply decisions
"""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None, help="JSON config file with an 'rl' block")
    parser.add_argument("--model", type=str, default=None, help="Model artifact path (overrides config)")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--max-pending", type=int, default=None)
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Event-driven policy decision loop")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI operator server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--tick-rate", type=float, default=0.6, help="Seconds between simulated ticks")
    _add_common(srv)

    # --- Headless mode ---
    run = sub.add_parser("run", help="Run headless against a simulated world")
    run.add_argument("--ticks", type=int, default=200)
    run.add_argument("--npcs", type=int, default=6)
    run.add_argument("--replay", type=str, default="decisions.json")
    _add_common(run)

    return parser


def _load_config(args: argparse.Namespace):
    from policy_loop.config import AgentConfig, load_config

    base = AgentConfig(log_level=args.log_level)
    if args.config:
        base = load_config(args.config, base)
    return base.with_overrides(
        model_path=args.model,
        num_workers=args.workers,
        max_pending=args.max_pending,
        replay_file=getattr(args, "replay", None),
    )


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from policy_loop.api.app import create_app

    config = _load_config(args)
    app = create_app(config, seed=args.seed, tick_rate=args.tick_rate)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_headless(args: argparse.Namespace) -> int:
    from policy_loop.api.agent_manager import AgentManager
    from policy_loop.errors import PolicyLoopError
    from policy_loop.utils.logging import setup_logging
    from policy_loop.utils.replay import ReplayRecorder
    from policy_loop.world.script import WorldScript
    from policy_loop.world.simulated import SimulatedWorld

    setup_logging(args.log_level)
    try:
        config = _load_config(args)
    except PolicyLoopError:
        logger.exception("Invalid configuration")
        return 2

    script = WorldScript(args.seed)
    world = SimulatedWorld.populate(script, npc_count=args.npcs)
    manager = AgentManager(config, world)

    # This thread plays the host client: it raises events and applies results.
    manager.bind_mutation_thread()
    try:
        manager.start(threaded=False)
    except PolicyLoopError:
        manager.pump()
        manager.stop()
        return 1

    recorder = ReplayRecorder(config.replay_file, args.seed)
    try:
        for _ in range(args.ticks):
            world.step(script)
            manager.pump(wait_timeout=config.shutdown_timeout)
            if world.tick_count % 50 == 0:
                stats = manager.stats()
                logger.info(
                    "Tick %d: %d dispatched, %d dropped, %d inference failures",
                    world.tick_count, stats.dispatched, stats.dropped, stats.inference_failures,
                )
    finally:
        manager.stop()
        recorder.record_many(manager.decision_log.all())
        recorder.flush()

    logger.info("Done. %d decisions written to %s", manager.decision_log.total, config.replay_file)
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None:
        args = parser.parse_args(["serve"])

    if args.command == "serve":
        _run_server(args)
    elif args.command == "run":
        sys.exit(_run_headless(args))


if __name__ == "__main__":
    main()
