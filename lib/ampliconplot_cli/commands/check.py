"""
The 'check' command for the ampliconplot CLI.

Verifies that a gnuplot new enough to render the generated scripts is
installed.
"""

from typing import Annotated

import typer
from ampliconplot import RendererUnavailableError, check_gnuplot

from ampliconplot_cli.app import app
from ampliconplot_cli.utils import configure_logging, error, success


@app.command("check")
def check_renderer(
    gnuplot: Annotated[
        str,
        typer.Option(
            "--gnuplot",
            help="gnuplot executable to check.",
        ),
    ] = "gnuplot",
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v, -vv, -vvv)",
        ),
    ] = 0,
) -> None:
    """
    [bold yellow]Check[/bold yellow] that gnuplot is installed and recent enough.
    """
    configure_logging(verbose)
    try:
        major, minor = check_gnuplot(gnuplot)
    except RendererUnavailableError as e:
        error(str(e))
        return
    success(f"gnuplot {major}.{minor} is available")
