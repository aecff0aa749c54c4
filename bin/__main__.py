#!/usr/bin/env python3
"""
ampliconplot CLI entry point.

This module serves as the entry point for the ampliconplot command-line
interface. The actual CLI implementation is in the ampliconplot_cli package.
"""

from ampliconplot_cli import main

if __name__ == "__main__":
    main()
