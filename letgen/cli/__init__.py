# letgen/cli/__init__.py
"""letgen command-line interface."""

from letgen.cli.cli import app

__all__ = ["app"]
