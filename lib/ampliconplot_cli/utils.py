"""
Utility functions for the ampliconplot CLI.

Provides console output helpers and loguru configuration.
"""

import sys

from loguru import logger
from rich.console import Console

# Shared console instances
console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = {0: "WARNING", 1: "SUCCESS", 2: "INFO", 3: "DEBUG"}


# =============================================================================
# Console Output Helpers
# =============================================================================


def error(message: str, exit_code: int = 1) -> None:
    """Print an error message and optionally exit."""
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    if exit_code:
        sys.exit(exit_code)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


# =============================================================================
# Logging
# =============================================================================


def configure_logging(verbosity: int) -> None:
    """Configure loguru logging based on verbosity level."""
    logger.remove()

    level = LOG_LEVELS.get(min(verbosity, 3), "WARNING")

    logger.add(
        sys.stderr,
        colorize=True,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    )
