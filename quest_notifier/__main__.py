"""
Command line entry point.

    python -m quest_notifier sweep     # one deadline sweep tick
    python -m quest_notifier digest    # one daily digest tick
    python -m quest_notifier run       # both jobs on intervals until Ctrl+C
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from quest_notifier.core.config.config import Config
from quest_notifier.core.logging.logger import get_logger, shutdown_logging
from quest_notifier.runner import run_digest, run_forever, run_sweep

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quest_notifier", description="Quest push notification jobs."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sweep", help="Run one deadline sweep tick.")
    commands.add_parser("digest", help="Run one daily digest tick.")

    run = commands.add_parser("run", help="Run both jobs on intervals until interrupted.")
    run.add_argument(
        "--sweep-seconds",
        type=int,
        default=Config.LOCAL_RUNNER_SWEEP_SECONDS,
        help="Seconds between deadline sweeps (default: %(default)s).",
    )
    run.add_argument(
        "--digest-seconds",
        type=int,
        default=Config.LOCAL_RUNNER_DIGEST_SECONDS,
        help="Seconds between digest ticks (default: %(default)s).",
    )
    return parser


async def _run_loop(sweep_seconds: int, digest_seconds: int) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            logger.debug("Signal handlers not supported on this platform")
            break
    await run_forever(
        stop_event=stop_event,
        sweep_seconds=sweep_seconds,
        digest_seconds=digest_seconds,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logger.info(
        "quest_notifier starting",
        extra={"command": args.command, **Config.get_config_summary()},
    )

    try:
        if args.command == "sweep":
            asyncio.run(run_sweep())
        elif args.command == "digest":
            asyncio.run(run_digest())
        else:
            asyncio.run(_run_loop(args.sweep_seconds, args.digest_seconds))
    except KeyboardInterrupt:
        logger.info("Stopped via keyboard interrupt")
    except Exception as exc:
        logger.critical(f"Command failed: {exc}", exc_info=True)
        return 1
    finally:
        shutdown_logging()
    return 0


if __name__ == "__main__":
    sys.exit(main())
