"""Entry point for the smith-monitor health-check agent."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from rich.console import Console
from rich.panel import Panel

from .config import settings
from .monitor.base import Monitor
from .monitor.errors import ConnectTimeoutError
from .monitor.models import CheckStatus
from .monitor.runner import CheckRunner
from .registry import MonitorFileError, load_monitor_file

logger = logging.getLogger(__name__)
console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STATUS_STYLE = {
    CheckStatus.HEALTHY: "green",
    CheckStatus.FAILING: "yellow",
    CheckStatus.DOWN: "red",
    CheckStatus.BROKEN: "magenta",
}


async def connect_until_stopped(monitor: Monitor, stop: asyncio.Event) -> bool:
    """Keep connecting until the broker answers. Returns False if stopped first."""
    stopped = asyncio.ensure_future(stop.wait())
    try:
        while not stop.is_set():
            connecting = monitor.connect()
            await asyncio.wait({connecting, stopped}, return_when=asyncio.FIRST_COMPLETED)
            if not connecting.done():
                return False
            try:
                connecting.result()
                return True
            except ConnectTimeoutError as e:
                logger.warning("%s, retrying", e)
        return False
    finally:
        stopped.cancel()


async def serve(file: str | None) -> None:
    """Run the monitor until SIGINT/SIGTERM, then drain and disconnect."""
    definition = load_monitor_file(file)
    config = definition.config
    console.print(Panel(
        f"{config.name} ({config.id}) → {config.kafka.topic} every {config.interval}ms",
        title="smith-monitor", style="bold green",
    ))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    monitor = Monitor(
        config,
        definition.check,
        flush_timeout_ms=settings.flush_timeout_ms,
        poll_interval_ms=settings.poll_interval_ms,
    )
    if not await connect_until_stopped(monitor, stop):
        console.print("[dim]Stopped before the broker became ready[/dim]")
        return
    if not config.auto_start:
        monitor.enable()

    await stop.wait()
    console.print("[dim]Shutting down, flushing producer...[/dim]")
    await monitor.disconnect()


async def check_once(file: str | None) -> int:
    """Run the check a single time without Kafka and print the reports."""
    definition = load_monitor_file(file)
    report_list = await CheckRunner(definition.check, definition.config).run()

    console.print(Panel(f"{report_list.name} ({report_list.id})", title="Check", style="bold blue"))
    for report in report_list.reports:
        style = _STATUS_STYLE.get(report.status, "white")
        label = report.custom_status or report.status.value
        console.print(f"[{style}]{label}[/{style}] {report.name or ''}")
        console.print(report.message, markup=False)

    return 0 if report_list.reports[0].status == CheckStatus.HEALTHY else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="smith-monitor health-check agent")
    sub = parser.add_subparsers(dest="command")

    run_parser = sub.add_parser("run", help="Run the monitor and publish to Kafka")
    run_parser.add_argument("--file", help=f"Monitor definition (default: {settings.monitor_file})")

    check_parser = sub.add_parser("check", help="Run the check once and print the result")
    check_parser.add_argument("--file", help=f"Monitor definition (default: {settings.monitor_file})")

    args = parser.parse_args()

    try:
        if args.command == "run":
            asyncio.run(serve(args.file))
        elif args.command == "check":
            sys.exit(asyncio.run(check_once(args.file)))
        else:
            parser.print_help()
            sys.exit(1)
    except MonitorFileError as e:
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(2)


if __name__ == "__main__":
    main()
