from __future__ import annotations

import argparse
import logging
import os

from .config import load_config
from .http_utils import redact_url
from .runner import CycleOutcome, build_cycle
from .scheduler import Scheduler


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pun", description="Panthor Update Notifier (changelog poller)")
    p.add_argument("--config", default="config.yml", help="Path to YAML config file (default: config.yml)")
    p.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG/INFO/WARNING/ERROR). Defaults to env PUN_LOG_LEVEL or INFO",
    )

    mode = p.add_mutually_exclusive_group(required=False)
    mode.add_argument("--once", action="store_true", help="Run one regular check cycle and exit")
    mode.add_argument("--daemon", action="store_true", help="Run forever on the configured schedule (default)")
    return p


def _resolve_log_level(value: str | None) -> int:
    v = (value or "").strip().upper()
    if not v:
        return logging.INFO
    level = logging.getLevelNamesMapping().get(v)
    if isinstance(level, int):
        return level
    return logging.INFO


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    env_log_level = os.environ.get("PUN_LOG_LEVEL")
    log_level = _resolve_log_level(args.log_level or env_log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger = logging.getLogger("pun")

    config = load_config(args.config)
    cycle = build_cycle(config)

    mode = "once" if args.once else "daemon"
    logger.info("pun start: mode=%s config=%s", mode, args.config)
    logger.info(
        "config: schedule=%s load_on_startup=%s changelog_url=%s version_path=%s timeout_seconds=%s",
        config.schedule,
        config.run_on_startup,
        config.changelog_url,
        config.version_path,
        config.timeout_seconds,
    )
    logger.info(
        "webhooks: count=%d targets=%s",
        len(cycle.endpoints),
        ",".join(redact_url(e) for e in cycle.endpoints) or "<none>",
    )
    if not cycle.endpoints:
        logger.warning("no webhooks configured; new versions will be recorded but not announced")

    if args.once:
        report = cycle.run_once()
        logger.info(
            "once done: outcome=%s version=%s previous=%s duration_ms=%d notify_attempts=%d notify_failures=%d",
            report.outcome,
            report.current_version,
            report.previous_version,
            report.duration_ms,
            report.notify_attempts,
            report.notify_failures,
        )
        return 1 if report.outcome == CycleOutcome.FAILED else 0

    Scheduler(cycle, schedule=config.schedule, run_on_startup=config.run_on_startup).run_forever()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
