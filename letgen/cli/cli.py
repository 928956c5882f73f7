# letgen/cli/cli.py
"""
letgen CLI - Main application.

Commands:
    letgen gen        Regenerate changed documents (incremental)
    letgen status     Show what gen would do
    letgen version    Print the version

NOTE: Commands use lazy loading - implementations are imported only when a
command is invoked.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from letgen.logging.logger import configure_logging

app = typer.Typer(
    name="letgen",
    help="letgen - incremental code generation for schema/query documents.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    configure_logging(logging.DEBUG if verbose else logging.WARNING)


@app.command("gen")
def gen(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Alternate config file (default: .letgen.yml)."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Regenerate everything."),
    keep_going: bool = typer.Option(
        False, "--keep-going", "-k", help="Exit 0 even if some documents failed."
    ),
    details: bool = typer.Option(False, "--details", "-d", help="List every document."),
) -> None:
    """Generate modules for changed documents."""
    from letgen.cli.commands import gen as mod

    mod.command(project_root=root, config_path=config, force=force, keep_going=keep_going, verbose=details)


@app.command("status")
def status(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Alternate config file (default: .letgen.yml)."
    ),
) -> None:
    """Show which documents are stale, without generating."""
    from letgen.cli.commands import status as mod

    mod.command(project_root=root, config_path=config)


@app.command("version")
def version() -> None:
    """Print the letgen version."""
    from letgen import __version__

    typer.echo(f"letgen version {__version__}")


if __name__ == "__main__":
    app()
