# letgen/cli/commands/gen.py
"""
Gen command: regenerate what changed.

Usage:
    letgen gen
    letgen gen --config .letgen-babel.yml
    letgen gen --force
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from letgen.cli.ui import ui
from letgen.codegen.executor import CodegenSummary, OutcomeStatus, run_codegen
from letgen.core.config import ConfigError
from letgen.core.exceptions import EngineLoadError
from letgen.logging.logger import get_logger
from letgen.logging.tags import CLI

logger = get_logger(__name__)

_STATUS_STYLE = {
    OutcomeStatus.SUCCESS: "[green]generated[/green]",
    OutcomeStatus.SKIP: "[dim]cached[/dim]",
    OutcomeStatus.ERROR: "[red]error[/red]",
}


def _print_summary(summary: CodegenSummary, verbose: bool) -> None:
    if verbose and summary.outcomes:
        ui.table(
            "Documents",
            ["Document", "Status", "Fingerprint"],
            [
                [o.rel_path, _STATUS_STYLE[o.status], (o.fingerprint or "")[:12]]
                for o in summary.outcomes
            ],
        )

    reported = set()
    for error in summary.schema_errors:
        reported.add(id(error))
        ui.diagnostic(f"Schema {error.path}", error.message)
    for outcome in summary.failures():
        if outcome.error is None or id(outcome.error) in reported:
            continue
        ui.diagnostic(outcome.rel_path, outcome.error.message)

    if summary.ok:
        ui.success(str(summary))
    else:
        ui.error(str(summary))


def command(
    project_root: Path,
    config_path: Optional[Path],
    force: bool,
    keep_going: bool,
    verbose: bool,
) -> None:
    """Run batch generation and map failures to the exit code."""
    logger.info(f"{CLI} gen: root='{project_root}', config='{config_path or 'default'}'")

    try:
        summary = run_codegen(project_root, config_path=config_path, force=force)
    except (ConfigError, EngineLoadError) as e:
        ui.error(str(e))
        raise typer.Exit(code=1)

    if verbose:
        ui.header("letgen gen", str(project_root))
    _print_summary(summary, verbose)

    if not summary.ok and not keep_going:
        raise typer.Exit(code=1)
