"""
Run one global turn against the configured nation store.

Meant for a cron job. Store selection and defaults come from the same
environment variables as the API (see backend/config.py).

Run:  python run_turn.py [--workers N] [--timeout S] [--report]

Exit 0 when every nation advanced (skips allowed), 1 otherwise.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from backend.config import Settings, build_store
from nation_runtime.drift import compare_worlds, snapshot_world
from nation_runtime.turn import run_global_turn

logger = logging.getLogger("run_turn")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {value}")
    return number


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Advance every nation by one turn.")
    parser.add_argument("--workers", type=_positive_int, default=None,
                        help="Max concurrent per-nation updates (TURN_MAX_WORKERS)")
    parser.add_argument("--timeout", type=_positive_float, default=None,
                        help="Seconds to wait for outstanding updates (TURN_TIMEOUT_SECONDS)")
    parser.add_argument("--report", action="store_true",
                        help="Include a before/after drift report")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)
        logger.error("Invalid configuration: %s", exc)
        return 1
    logging.basicConfig(level=settings.log_level, format=_LOG_FORMAT)

    try:
        store = build_store(settings)
    except ValueError as exc:
        logger.error("Cannot open nation store: %s", exc)
        return 1

    try:
        before = snapshot_world(store) if args.report else None
        summary = run_global_turn(
            store,
            max_workers=settings.turn_max_workers if args.workers is None else args.workers,
            timeout=settings.turn_timeout_seconds if args.timeout is None else args.timeout,
        )

        output = {"summary": summary.to_dict()}
        if before is not None and not summary.aborted:
            output["drift"] = compare_worlds(before, snapshot_world(store))
    except ValueError as exc:
        logger.error("Turn not started: %s", exc)
        return 1
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            close()

    print(json.dumps(output, indent=2, ensure_ascii=False))
    if not summary.ok:
        logger.error("Turn incomplete: aborted=%s failed=%d",
                     summary.aborted, len(summary.failed))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
