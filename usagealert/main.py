#!/usr/bin/env python3
"""Claude Usage Alert - command line entry point."""

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Optional

from .checker import UsageAlertChecker
from .config import expand_path, keychain_service_name, load_config
from .credentials import ClaudeCredentialProvider
from .errors import UpstreamError
from .formatting import format_usage_status
from .log_rotation import LOG_FILE_NAME, rotate_logs
from .notifier import AlertNotifier
from .state_store import JsonStateStore
from .summary import build_usage_summary
from .tracker import thresholds_from_config
from .usage_client import UsageClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: dict, debug: bool = False) -> None:
    """Log to stdout and to a trimmed file in the configured log dir."""
    log_dir = Path(expand_path(config["logging"]["dir"]))
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_dir / LOG_FILE_NAME),
            logging.StreamHandler(sys.stdout),
        ],
    )

    rotate_logs(log_dir)


def build_checker(config: dict) -> UsageAlertChecker:
    """Wire the production collaborators from config."""
    monitor = config["monitor"]
    return UsageAlertChecker(
        credentials=ClaudeCredentialProvider(service_name=keychain_service_name(config)),
        usage_source=UsageClient(timeout=config["notify"].get("timeout", 10)),
        state_store=JsonStateStore(Path(expand_path(monitor["state_file"]))),
        notifier=AlertNotifier.from_config(config),
        thresholds=thresholds_from_config(config),
        timezone=monitor.get("timezone", "Europe/Madrid"),
    )


class UsageAlertService:
    """Runs check cycles at a fixed interval until stopped."""

    def __init__(self, checker: UsageAlertChecker, check_interval: int = 300):
        self.checker = checker
        self.check_interval = check_interval
        self._running = False
        self._stop_event: Optional[asyncio.Event] = None

    async def run(self) -> None:
        """Run the monitoring loop."""
        self._running = True
        self._stop_event = asyncio.Event()
        logger.info(f"Watching usage every {self.check_interval}s")

        try:
            while self._running:
                result = await self.checker.check()
                logger.info(f"Check result {result.status}: {json.dumps(result.body)}")
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.check_interval)
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            logger.info("Monitoring cancelled")
        finally:
            logger.info("Usage alert watcher stopped")

    def stop(self) -> None:
        """Stop the monitoring loop."""
        self._running = False
        if self._stop_event:
            self._stop_event.set()


def cmd_check(config: dict) -> int:
    result = asyncio.run(build_checker(config).check())
    print(json.dumps(result.body, indent=2))
    return 0 if result.ok else 1


def cmd_usage(config: dict, as_json: bool = False) -> int:
    credentials = ClaudeCredentialProvider(service_name=keychain_service_name(config))
    creds = credentials.resolve()
    if not creds:
        print(json.dumps({"error": "No OAuth token found"}))
        return 1

    try:
        usage = UsageClient(timeout=config["notify"].get("timeout", 10)).fetch(creds.access_token)
    except UpstreamError as e:
        print(json.dumps({"error": f"API error: {e.status}"}))
        return 1
    except Exception as e:
        logger.error(f"Failed to fetch usage: {e}")
        print(json.dumps({"error": str(e)}))
        return 1

    summary = build_usage_summary(usage, now_ms=int(time.time() * 1000))
    print(json.dumps(summary, indent=2) if as_json else format_usage_status(summary))
    return 0


def cmd_watch(config: dict) -> int:
    service = UsageAlertService(
        build_checker(config),
        check_interval=config["monitor"]["check_interval"],
    )

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    # Handle signals
    def signal_handler():
        logger.info("Received shutdown signal")
        service.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(service.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.close()
    return 0


def main(argv: Optional[list] = None) -> int:
    """Entry point."""
    parser = argparse.ArgumentParser(
        prog="usagealert",
        description="Claude usage threshold alerts",
    )
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("check", help="Run one alert check cycle")
    usage_parser = subparsers.add_parser("usage", help="Show current usage")
    usage_parser.add_argument("--json", action="store_true", help="Print the raw summary")
    subparsers.add_parser("watch", help="Run check cycles until stopped")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config, debug=args.debug)

    if args.command == "check":
        return cmd_check(config)
    if args.command == "usage":
        return cmd_usage(config, as_json=args.json)
    return cmd_watch(config)


if __name__ == "__main__":
    sys.exit(main())
