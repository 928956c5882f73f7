# letgen/cli/commands/status.py
"""
Status command: show what `letgen gen` would regenerate, without running it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from letgen.cli.ui import ui
from letgen.codegen.executor import CodegenExecutor
from letgen.config.loader import load_letgen_config
from letgen.core.config import ConfigError


class _NoEngine:
    """Stand-in engine for planning; plan() never generates."""

    def generate(self, request):
        raise AssertionError("status must not call the engine")


def command(project_root: Path, config_path: Optional[Path]) -> None:
    try:
        config = load_letgen_config(project_root, config_path)
    except ConfigError as e:
        ui.error(str(e))
        raise typer.Exit(code=1)

    executor = CodegenExecutor(
        config=config,
        project_root=project_root,
        engine=_NoEngine(),
        config_path=config_path,
    )
    diff, summary = executor.plan()

    rows = [[c.rel_path, f"[yellow]{r}[/yellow]"] for c, r in diff.to_generate]
    rows += [[c.rel_path, "[dim]fresh[/dim]"] for c, _ in diff.to_skip]
    rows += [[p, "[red]orphaned[/red]"] for p in diff.to_prune]
    rows += [[o.rel_path, f"[red]error[/red]: {o.error.path if o.error else ''}"] for o in summary.failures()]
    rows.sort(key=lambda row: row[0])

    ui.header("letgen status", str(project_root))
    if rows:
        ui.table("Documents", ["Document", "State"], rows)
    ui.info(diff.summary)
