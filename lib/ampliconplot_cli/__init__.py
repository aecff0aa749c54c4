"""
ampliconplot CLI - A Typer-based command-line interface for ampliconplot.

Usage:
    samtools ampliconstats primers.bed *.bam | ampliconplot plot plots/run1
    ampliconplot plot plots/run1 run1.astats --page 24 --layout vertical
    ampliconplot check
    ampliconplot --help
"""

import sys

import typer
from rich.console import Console

from ampliconplot_cli.app import app

# Import commands to register them with the app
from ampliconplot_cli.commands import check, plot  # noqa: F401

__all__ = ["app", "main"]

console = Console()


def main() -> None:
    """Main entry point for the ampliconplot CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except typer.Exit:
        # Normal exit from Typer - re-raise to preserve exit code
        raise
    except typer.Abort:
        sys.exit(1)
