"""
External renderer interface.

The plotter never draws anything itself. It writes gnuplot scripts and hands
each finished script to a `Renderer`. `GnuplotRenderer` runs gnuplot as a
blocking subprocess; tests substitute a recording fake.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from loguru import logger

from .errors import RenderError, RendererUnavailableError

MINIMUM_GNUPLOT = (5, 0)

VERSION_PATTERN = re.compile(r"gnuplot\s+(\d+)\.(\d+)")


class Renderer(Protocol):
    """Something that turns a finished script into an image."""

    def render(self, script: Path) -> None:
        """Render `script`, raising `RenderError` on failure."""
        ...


class GnuplotRenderer:
    """Render scripts by running gnuplot on them, one at a time."""

    def __init__(self, executable: str = "gnuplot") -> None:
        self.executable = executable

    def render(self, script: Path) -> None:
        logger.debug(f"Rendering {script}")
        try:
            result = subprocess.run(  # noqa: S603
                [self.executable, str(script)],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise RenderError(script, -1, str(e)) from e

        if result.returncode != 0:
            raise RenderError(script, result.returncode, result.stderr)


def parse_gnuplot_version(text: str) -> tuple[int, int] | None:
    """Extract (major, minor) from `gnuplot --version` output."""
    match = VERSION_PATTERN.search(text)
    if match is None:
        return None
    return int(match[1]), int(match[2])


def check_gnuplot(
    executable: str = "gnuplot",
    minimum: tuple[int, int] = MINIMUM_GNUPLOT,
) -> tuple[int, int]:
    """
    Make sure a usable gnuplot is installed.

    Args:
        executable: gnuplot command name or path
        minimum: Lowest acceptable (major, minor) version

    Returns:
        The detected (major, minor) version

    Raises:
        RendererUnavailableError: If gnuplot is missing, does not report a
            version, or is older than `minimum`.
    """
    resolved = shutil.which(executable)
    if resolved is None:
        msg = f"gnuplot executable '{executable}' was not found on PATH"
        raise RendererUnavailableError(msg)

    try:
        result = subprocess.run(  # noqa: S603
            [resolved, "--version"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        msg = f"Could not run {resolved}: {e}"
        raise RendererUnavailableError(msg) from e

    version = parse_gnuplot_version(result.stdout)
    if result.returncode != 0 or version is None:
        msg = f"Could not determine the gnuplot version from {resolved}"
        raise RendererUnavailableError(msg)

    if version < minimum:
        msg = (
            f"gnuplot {version[0]}.{version[1]} is too old, "
            f"version {minimum[0]}.{minimum[1]} or newer is required"
        )
        raise RendererUnavailableError(msg)

    logger.info(f"Using gnuplot {version[0]}.{version[1]} at {resolved}")
    return version
