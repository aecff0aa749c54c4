"""
Command modules for the ampliconplot CLI.

Each submodule defines one or more Typer commands that are registered
with the main app in ampliconplot_cli/__init__.py.
"""

from ampliconplot_cli.commands import check, plot

__all__ = ["check", "plot"]
