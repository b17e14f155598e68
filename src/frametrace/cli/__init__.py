"""Command-line interface for frametrace.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- One command per conversion kind, JSON results on stdout or to a file
- Progress bars for batch and per-character runs
- HTTP service launcher
"""

from frametrace.cli.app import app, cli, main

__all__ = ["app", "cli", "main"]
