"""CLI commands for ChartJournal.

This package provides the command-line interface for ChartJournal,
including journal management, chart analysis, and trade planning.
"""

from chartjournal.cli.main import cli, main

__all__ = ["cli", "main"]
