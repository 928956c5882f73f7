# letgen/core/config.py
"""
YAML config loading for letgen.

Reading a config file and validating it against a model are the only two
steps, and both live here. The models themselves are in letgen.config.schema.

Usage:
    from letgen.core.config import load_config
    from letgen.config.schema import LetgenConfig

    config = load_config(".letgen.yml", LetgenConfig)

Every error raised from this module names the file it is about, so a CLI can
print it as-is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from letgen.logging.logger import get_logger
from letgen.logging.tags import CONFIG

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


# =============================================================================
# Errors
# =============================================================================


class ConfigError(Exception):
    """A config file is missing, unreadable or invalid."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        self.reason = message
        super().__init__(f"{message} (file: {path})" if path else message)


class ConfigNotFoundError(ConfigError):
    """The config file does not exist."""


class ConfigParseError(ConfigError):
    """The file is not YAML, or its root is not a mapping."""


class ConfigValidationError(ConfigError):
    """The YAML is well-formed but does not fit the config model."""


# =============================================================================
# Loading
# =============================================================================


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML mapping from disk.

    An empty file is an empty mapping.

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        ConfigError: If the path is a directory
        ConfigParseError: If the file can't be read or isn't a YAML mapping
    """
    p = Path(path)
    if p.is_dir():
        raise ConfigError("Config path is a directory, not a file", path=p)

    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigNotFoundError("Config file not found", path=p) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Failed to read config: {e}", path=p) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML: {e}", path=p) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"Config root must be a mapping, got {type(data).__name__}", path=p
        )

    logger.debug(f"{CONFIG} Read {len(data)} top-level key(s) from {p}")
    return data


def load_config(path: Union[str, Path], schema: Type[ModelT]) -> ModelT:
    """
    Read a config file and validate it against a pydantic model.

    Raises:
        ConfigNotFoundError, ConfigParseError: See load_yaml()
        ConfigValidationError: If the data doesn't fit the model
    """
    p = Path(path)
    data = load_yaml(p)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(_describe(e), path=p) from e


def _describe(error: ValidationError) -> str:
    # One line per problem: "documents: Field required"
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"{where}: {item['msg']}")
    return "Invalid config:\n  " + "\n  ".join(lines)


__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "load_yaml",
    "load_config",
]
