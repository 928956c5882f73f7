# letgen/config/loader.py
"""
Configuration loader for letgen.

This is a thin wrapper around letgen.core.config that knows where a
project's config file lives.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from letgen.config.schema import LetgenConfig
from letgen.core.config import load_config
from letgen.core.paths import LetgenPaths


def load_letgen_config(
    project_root: Union[str, Path],
    config_path: Optional[Union[str, Path]] = None,
) -> LetgenConfig:
    """
    Load a project's configuration.

    Args:
        project_root: Project root directory
        config_path: Alternate config file (absolute or project-relative).
            Defaults to {project_root}/.letgen.yml

    Returns:
        Validated LetgenConfig instance

    Raises:
        ConfigError: If config file not found or invalid

    Examples:
        >>> config = load_letgen_config(".")
        >>> babel = load_letgen_config(".", ".letgen-babel.yml")
    """
    return load_config(LetgenPaths(project_root).config(config_path), schema=LetgenConfig)


__all__ = ["load_letgen_config"]
