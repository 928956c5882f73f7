# letgen/core/paths.py
"""
Central path management for letgen.

ALL components that need project paths should use this module.
No hardcoded paths anywhere else in the codebase.

Design principles:
- Single source of truth
- Project-relative (every instance is bound to one project root)
- No process-wide state: two projects can be processed side by side
- No magic, explicit paths
"""

from __future__ import annotations

import hashlib
from pathlib import Path, PurePosixPath
from typing import Optional, Union

DEFAULT_CONFIG_FILENAME = ".letgen.yml"
WORKSPACE_DIRNAME = ".letgen"
DEFAULT_OUTPUT_DIRNAME = "__generated__"


class LetgenPaths:
    """
    Path management for one project.

    Usage:
        from letgen.core.paths import LetgenPaths

        paths = LetgenPaths("/path/to/project")
        config_path = paths.config()
        manifest_path = paths.manifest(config_path)
    """

    def __init__(self, project_root: Union[str, Path]) -> None:
        self._root = Path(project_root).resolve()

    @property
    def root(self) -> Path:
        """Absolute project root."""
        return self._root

    # =========================================================================
    # Core Paths
    # =========================================================================

    def workspace(self) -> Path:
        """
        The .letgen workspace directory.

        Location: {root}/.letgen/
        """
        return self._root / WORKSPACE_DIRNAME

    # =========================================================================
    # Configuration
    # =========================================================================

    def config(self, config_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Config file path.

        Location: {root}/.letgen.yml unless an alternate file is given.
        Relative alternate paths are resolved against the project root.
        """
        if config_path is None:
            return self._root / DEFAULT_CONFIG_FILENAME
        p = Path(config_path)
        return p if p.is_absolute() else self._root / p

    # =========================================================================
    # Manifest
    # =========================================================================

    def manifest(self, config_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Manifest file for a given config file.

        The default config maps to {workspace}/manifest.json. Alternate config
        files get their own manifest so independent pipelines never prune
        each other's entries. The name carries a short hash of the config's
        project-relative path, so configs sharing a file name in different
        directories (or differing only in extension) stay apart:

            .letgen-babel.yml -> {workspace}/manifest.letgen-babel.<hash>.json
        """
        resolved = self.config(config_path)
        if resolved == self.config():
            return self.workspace() / "manifest.json"

        stem = resolved.name.lstrip(".")
        for suffix in (".yml", ".yaml"):
            if stem.endswith(suffix):
                stem = stem[: -len(suffix)]
                break

        try:
            key = self.relative(resolved)
        except ValueError:
            # Config lives outside the project
            key = resolved.resolve().as_posix()
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:8]
        return self.workspace() / f"manifest.{stem}.{digest}.json"

    # =========================================================================
    # Generated output
    # =========================================================================

    def output_root(self, output_dir: str = DEFAULT_OUTPUT_DIRNAME) -> Path:
        """
        Root directory for generated modules.

        Location: {root}/{output_dir}/
        """
        return self._root / output_dir

    # =========================================================================
    # Relative / absolute conversion
    # =========================================================================

    def relative(self, path: Union[str, Path]) -> str:
        """Project-relative POSIX form of an absolute or relative path."""
        p = Path(path)
        if p.is_absolute():
            p = p.resolve().relative_to(self._root)
        return PurePosixPath(*p.parts).as_posix()

    def absolute(self, rel_path: str) -> Path:
        """Absolute path of a project-relative POSIX path."""
        return self._root.joinpath(*PurePosixPath(rel_path).parts)


__all__ = [
    "LetgenPaths",
    "DEFAULT_CONFIG_FILENAME",
    "WORKSPACE_DIRNAME",
    "DEFAULT_OUTPUT_DIRNAME",
]
