# letgen/core/__init__.py
"""
Core building blocks shared by every letgen component.

- paths: project-relative path management
- config: YAML loading and config errors
- exceptions: codegen error hierarchy
"""

from letgen.core.config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    load_yaml,
)
from letgen.core.exceptions import (
    ArtifactWriteError,
    CodegenRunError,
    EngineLoadError,
    GenerationError,
    LetgenError,
    ManifestCorruptionError,
    SchemaLoadError,
)
from letgen.core.paths import LetgenPaths

__all__ = [
    "LetgenPaths",
    "load_yaml",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "LetgenError",
    "SchemaLoadError",
    "GenerationError",
    "ArtifactWriteError",
    "ManifestCorruptionError",
    "EngineLoadError",
    "CodegenRunError",
]
