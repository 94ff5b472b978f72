"""Main entry point for the insightcache command line.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import dataclasses
import logging
import sys
from typing import Any, Coroutine, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Setup Logging Early ---
logger = logging.getLogger(__name__)

# --- Core Layer ---
from insightcache.core.command_handler import CommandHandler

# --- Infrastructure Layer ---
# Config
from insightcache.infrastructure.config.settings import load_configuration, get_config, get_cache_settings
# UI
from insightcache.infrastructure.cli.display import ConsoleDisplay
# Cache
from insightcache.infrastructure.cache.caching_service import CachingServiceImpl
# Monitoring
from insightcache.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration()
        setup_logging(
            log_level=get_config('logging.level', 'WARNING'),
            log_file=get_config('logging.file'),
            log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        )
        logger.info("Configuration and logging initialized.")

        # 2. Instantiate Infrastructure Adapters & Services
        dependencies['ui'] = ConsoleDisplay()
        # Each CLI invocation is a new process, so only the disk tier carries state
        settings = dataclasses.replace(get_cache_settings(), enable_offline_mode=True)
        dependencies['cache_service'] = CachingServiceImpl(settings=settings)

        # 3. Instantiate Command Handler
        dependencies['command_handler'] = CommandHandler(
            cache_service=dependencies['cache_service'],
            ui=dependencies['ui'],
        )
        logger.info("All dependencies initialized successfully.")
        return dependencies

    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if 'ui' in dependencies:
            dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

# --- Get Wired-up Dependencies ---
# Created on first command so importing this module has no side effects
_dependencies: Optional[Dict[str, Any]] = None

def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies

def reset_dependencies() -> None:
    """Drops the wired-up instances so the next command rebuilds them."""
    global _dependencies
    _dependencies = None

# --- Typer App Definition ---
app = typer.Typer(
    name="insightcache",
    help="Inspect and manage the Global Insights dashboard response cache.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, None]) -> None:
    """Runs an async handler from a sync Typer command."""
    try:
        asyncio.run(coro)
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        get_dependencies()['ui'].display_error(f"Command execution failed: {e}")
        raise typer.Exit(code=1)

def _handler() -> CommandHandler:
    return get_dependencies()['command_handler']

# --- CLI Commands ---

KeyArgument = Annotated[str, typer.Argument(help="Cache key, e.g. 'weather_london_gb'.")]

@app.command()
def get(key: KeyArgument):
    """Show the live cached value for a key."""
    run_async(_handler().handle_get(key))

@app.command(name="set")
def set_command(
    key: KeyArgument,
    value: Annotated[str, typer.Argument(help="Value to cache (JSON, or plain text).")],
    ttl: Annotated[
        Optional[float],
        typer.Option("--ttl", "-t", min=0.0, help="Time-to-live in minutes. Uses the configured default if not set."),
    ] = None,
):
    """Store a value under a key."""
    run_async(_handler().handle_set(key, value, ttl))

@app.command()
def exists(key: KeyArgument):
    """Check whether a live entry exists for a key."""
    run_async(_handler().handle_exists(key))

@app.command()
def remove(key: KeyArgument):
    """Remove a key from the cache."""
    run_async(_handler().handle_remove(key))

@app.command()
def clear():
    """Remove every cached entry and reset statistics."""
    run_async(_handler().handle_clear())

@app.command(name="clear-expired")
def clear_expired_command():
    """Remove expired and corrupt cache entries."""
    run_async(_handler().handle_clear_expired())

@app.command()
def stats():
    """Show cache statistics."""
    run_async(_handler().handle_stats())

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
