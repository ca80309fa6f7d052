"""
Command line entry point.

Usage:
    python -m computation run                 # run generations every interval
    python -m computation run --once          # one lifecycle cycle, then exit
    python -m computation serve               # status API + background runs
    python -m computation run --config computation.json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from computation.config import ComputationConfig, get_config, load_config
from computation.errors import ComputationError
from computation.generations import StoreMarkerRunLock
from computation.models import RunOutcome
from computation.recommend_runner import RecommendationGenerationRunner
from computation.scheduler import run_periodically
from computation.store import LocalStore

logger = logging.getLogger(__name__)


def build_runner(config: ComputationConfig) -> RecommendationGenerationRunner:
    """Runner over a LocalStore rooted at config.store_root."""
    store = LocalStore(config.store_root)
    return RecommendationGenerationRunner(config, store, run_lock=StoreMarkerRunLock(store))


def _run(config: ComputationConfig, once: bool) -> int:
    runner = build_runner(config)
    if once:
        try:
            outcome = runner.call()
        except ComputationError:
            logger.exception("Generation run failed")
            return 1
        logger.info("Run outcome: %s", outcome.value)
        return 0
    outcome = run_periodically(runner, config.run_interval_seconds)
    if outcome is RunOutcome.COMPLETED_AND_STOP:
        logger.info("Stopping after run for specific users")
    return 0


def _serve(config: ComputationConfig) -> int:
    import uvicorn

    from server.app import create_app
    from server.state import AppState

    state = AppState(config, build_runner(config))
    state.start_scheduler()
    try:
        uvicorn.run(create_app(state), host=config.status_host, port=config.status_port)
    finally:
        state.stop_scheduler()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="computation",
        description="Run generations and batch recommendations for an instance.",
    )
    parser.add_argument("command", choices=["run", "serve"])
    parser.add_argument("--config", type=Path, help="JSON config file (default: environment)")
    parser.add_argument("--once", action="store_true", help="Run a single lifecycle cycle")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config) if args.config else get_config()

    if args.command == "serve":
        return _serve(config)
    return _run(config, args.once)


if __name__ == "__main__":
    sys.exit(main())
