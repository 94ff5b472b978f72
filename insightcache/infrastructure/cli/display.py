import json
import logging
from typing import Any

from rich.box import HEAVY, ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from insightcache.domain.interfaces.user_interface import UserInterface
from insightcache.domain.models.cache import CacheStatistics

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self):
        """Initializes the rich Console."""
        self._console = Console()

    @property
    def console(self):
        """Get the Rich console instance for direct operations."""
        return self._console

    @console.setter
    def console(self, value) -> None:
        self._console = value

    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a cached value, pretty-printing JSON-compatible data.

        Args:
            output: The value to display.
            **kwargs: Additional arguments including:
                - title: Panel title (default: "Value")
        """
        title = kwargs.get("title", "Value")
        try:
            rendered = json.dumps(output, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            rendered = repr(output)
        panel = Panel(
            Syntax(rendered, "json", word_wrap=True),
            title=f"[bold cyan]{title}[/bold cyan]",
            border_style="cyan",
            box=ROUNDED,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(f"[blue]Info:[/blue] {info_message}")

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {warning_message}")

    def display_statistics(self, statistics: CacheStatistics) -> None:
        """Renders a statistics snapshot as a two-column table."""
        table = Table(title="Cache Statistics", show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="bold", justify="right")

        last_cleanup = (
            statistics.last_cleanup.strftime('%Y-%m-%d %H:%M:%S UTC')
            if statistics.last_cleanup else "never"
        )
        table.add_row("Items in memory", str(statistics.total_items))
        table.add_row("Expired in memory", str(statistics.expired_items))
        table.add_row("Disk size", _format_bytes(statistics.total_size_bytes))
        table.add_row("Hits", str(statistics.hit_count))
        table.add_row("Misses", str(statistics.miss_count))
        table.add_row("Hit ratio", f"{statistics.hit_ratio:.1%}")
        table.add_row("Last cleanup", last_cleanup)
        self.console.print(table)


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
