# letgen/config/__init__.py
"""
Configuration for letgen.

Exports:
- LetgenConfig: Top-level config (.letgen.yml)
- ProjectConfig: One schema binding
- EngineConfig: Generation engine plugin config
- load_letgen_config: Load and validate a config file
"""

from letgen.config.loader import load_letgen_config
from letgen.config.schema import EngineConfig, LetgenConfig, ProjectConfig

__all__ = [
    "EngineConfig",
    "LetgenConfig",
    "ProjectConfig",
    "load_letgen_config",
]
