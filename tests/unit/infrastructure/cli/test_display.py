import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from rich.panel import Panel
from rich.table import Table

from insightcache.domain.models.cache import CacheStatistics
from insightcache.infrastructure.cli.display import ConsoleDisplay, _format_bytes

@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()

@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    display = ConsoleDisplay()
    display.console = mock_console # Inject the mock
    return display

def test_display_output_renders_panel(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_output({"temp": 15}, title="weather_london_gb")
    mock_console.print.assert_called_once()
    args, _ = mock_console.print.call_args
    assert isinstance(args[0], Panel)
    assert "weather_london_gb" in args[0].title

def test_display_output_handles_non_json_values(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_output({1, 2})
    mock_console.print.assert_called_once()

def test_display_info(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_info("Cache cleared")
    mock_console.print.assert_called_once_with("[blue]Info:[/blue] Cache cleared")

def test_display_warning(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_warning("No entry")
    mock_console.print.assert_called_once_with("[bold yellow]Warning:[/bold yellow] No entry")

def test_display_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_error("Something went wrong")
    args, _ = mock_console.print.call_args
    assert isinstance(args[0], Panel)

def test_display_statistics(console_display: ConsoleDisplay, mock_console: MagicMock):
    stats = CacheStatistics(
        total_items=4,
        expired_items=1,
        total_size_bytes=2048,
        last_cleanup=datetime(2024, 1, 1, tzinfo=timezone.utc),
        hit_count=3,
        miss_count=1,
    )
    console_display.display_statistics(stats)
    args, _ = mock_console.print.call_args
    table = args[0]
    assert isinstance(table, Table)
    assert table.row_count == 7
    values = list(table.columns[1].cells)
    assert "75.0%" in values
    assert "2.0 KB" in values
    assert "2024-01-01 00:00:00 UTC" in values

@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (512, "512 B"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5.0 MB"),
    (3 * 1024 ** 3, "3.0 GB"),
])
def test_format_bytes(size, expected):
    assert _format_bytes(size) == expected
