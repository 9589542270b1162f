"""Interactive terminal dashboard built on rich."""

from __future__ import annotations

import logging
import time
from typing import Iterable

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from . import config
from .models import HostInfo, ScanPhase, ScanProgress
from .scanner import Scanner
from .search import filter_hosts, unique_vendors
from .state import ScanState

logger = logging.getLogger(__name__)

HELP_TEXT = "[bold]/term[/] search  [bold]f[/] focused mode  [bold]r[/] rescan  [bold]enter[/] clear  [bold]q[/] quit"


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m{secs:02d}s"


def make_table(hosts: Iterable[HostInfo], *, title: str = "Hosts") -> Table:
    table = Table(title=title, expand=True)
    table.add_column("IP", no_wrap=True)
    table.add_column("Hostname")
    table.add_column("MAC", no_wrap=True)
    table.add_column("Vendor")
    table.add_column("Ping ms", justify="right")
    table.add_column("Services")
    for host in hosts:
        services = ", ".join(
            f"{s.port}/{s.service}" + (f" {s.version}" if s.version else "")
            for s in host.services
        )
        table.add_row(
            host.ip,
            host.hostname or "-",
            host.mac or "-",
            host.vendor or "-",
            f"{host.response_time * 1000:.1f}",
            services or "-",
        )
    return table


def make_stats(progress: ScanProgress) -> Text:
    text = Text()
    text.append(f"Scanned {progress.hosts_scanned}/{progress.total_hosts}  ")
    text.append(f"Active {progress.active_hosts}  ", style="green")
    text.append(f"Open ports {progress.open_ports}  ", style="cyan")
    text.append(f"Elapsed {format_duration(progress.elapsed)}")
    if progress.current_host and progress.phase is ScanPhase.SCANNING:
        text.append(f"  Current {progress.current_host}", style="dim")
    return text


class Dashboard:
    """Live view of a continuous scan with simple line commands.

    While a scan runs the view refreshes every ``poll_interval`` seconds
    from :class:`~viewnet.state.ScanState`. Once it completes a summary is
    printed and commands are read from the console until the user quits.
    """

    def __init__(
        self,
        scanner: Scanner,
        state: ScanState,
        subnet: str,
        ports: list[int],
        timeout: float,
        *,
        discovery_only: bool = False,
        focused: bool = False,
        search: str = "",
        console: Console | None = None,
        poll_interval: float = config.POLL_INTERVAL,
    ) -> None:
        self.scanner = scanner
        self.state = state
        self.subnet = subnet
        self.ports = ports
        self.timeout = timeout
        self.discovery_only = discovery_only
        self.focused = focused
        self.search = search
        self.console = console or Console()
        self.poll_interval = poll_interval

    # -- rendering ------------------------------------------------------------
    def _mode_label(self) -> str:
        if self.discovery_only:
            return "IP discovery only"
        return f"{len(self.ports)} ports"

    def header(self) -> Panel:
        line = f"Target {self.subnet} | {self._mode_label()} | Timeout {self.timeout * 1000:.0f}ms"
        if self.search:
            mode = "focused" if self.focused else "full"
            line += f" | Search '{self.search}' ({mode})"
        return Panel(Text(line), title="ViewNet", border_style="blue")

    def visible_hosts(self) -> list[HostInfo]:
        return filter_hosts(self.state.get_results(), self.search, focused=self.focused)

    def render(self) -> Group:
        progress = self.state.get_progress()
        bar = ProgressBar(
            total=max(progress.total_hosts, 1),
            completed=progress.hosts_scanned,
        )
        return Group(
            self.header(),
            bar,
            make_stats(progress),
            make_table(self.visible_hosts()),
        )

    def summary(self) -> Panel:
        progress = self.state.get_progress()
        results = self.state.get_results()
        lines = [
            f"Scan completed in {format_duration(progress.elapsed)}",
            f"Active hosts: {progress.active_hosts} of {progress.total_hosts}",
            f"Open ports: {progress.open_ports}",
            f"Vendors: {unique_vendors(results)}",
        ]
        return Panel("\n".join(lines), title="Summary", border_style="green")

    # -- control ------------------------------------------------------------
    def start_scan(self) -> None:
        self.scanner.start_scan(
            self.state,
            self.subnet,
            self.ports,
            self.timeout,
            discovery_only=self.discovery_only,
        )

    def watch(self) -> None:
        """Refresh the live view until the current scan completes."""
        with Live(self.render(), console=self.console, refresh_per_second=4) as live:
            while not self.state.is_complete():
                time.sleep(self.poll_interval)
                live.update(self.render())
            live.update(self.render())

    def handle_command(self, command: str) -> bool:
        """Apply one console command and return ``False`` to quit."""

        command = command.strip()
        if command.lower() in {"q", "quit", "exit"}:
            return False
        if command.lower() == "r":
            self.start_scan()
        elif command.lower() == "f":
            self.focused = not self.focused
        elif command.startswith("/"):
            self.search = command[1:].strip()
        elif not command:
            self.search = ""
        else:
            self.search = command
        return True

    def run(self) -> None:
        self.start_scan()
        try:
            self.watch()
            self.console.print(self.summary())
            while True:
                self.console.print(HELP_TEXT)
                command = self.console.input("[bold cyan]viewnet>[/] ")
                if not self.handle_command(command):
                    break
                if self.state.is_complete():
                    self.console.print(self.render())
                else:
                    self.watch()
                    self.console.print(self.summary())
        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.scanner.cancel()


__all__ = ["Dashboard", "make_table", "make_stats", "format_duration"]
