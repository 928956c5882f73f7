# letgen/codegen/engine.py
"""
Generation engine interface.

The engine that turns a document + schema + options into generated source
text is an external capability. letgen only needs one operation from it:

    generate(request) -> GeneratedOutput   (or raise with a diagnostic)

Engines are resolved from config by name:
- a registered plugin name (e.g. "command")
- or a "package.module:attr" path to a class/factory

Engines should raise GenerationError (or SchemaLoadError when the schema
itself is the problem). Any other exception is wrapped by the executor with
its message kept verbatim.
"""

from __future__ import annotations

import importlib
import json
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Type, runtime_checkable

from letgen.config.schema import EngineConfig
from letgen.core.exceptions import EngineLoadError, GenerationError, SchemaLoadError
from letgen.logging.logger import get_logger
from letgen.logging.tags import ENGINE

from .scanner import SchemaSource

logger = get_logger(__name__)


class GenerationKind(str, Enum):
    """What a generation request is for."""

    DOCUMENT = "document"
    SCHEMA = "schema"


@dataclass(frozen=True)
class GenerationRequest:
    """Everything an engine needs to generate one artifact pair."""

    kind: GenerationKind
    path: str  # Document rel_path, or the schema's primary file
    content: str  # Document text, or combined schema text
    schema: SchemaSource
    options: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "path": self.path,
            "content": self.content,
            "schema": {
                "name": self.schema.name,
                "files": list(self.schema.files),
                "content": self.schema.content,
            },
            "options": dict(self.options),
        }


@dataclass(frozen=True)
class GeneratedOutput:
    """
    Generated text for one document.

    Schema requests only use `declaration`.
    """

    module: str
    declaration: str


@runtime_checkable
class CodegenEngine(Protocol):
    """Protocol for generation engines."""

    def generate(self, request: GenerationRequest) -> GeneratedOutput:
        """Generate output for a document or schema, or raise."""
        ...


# =============================================================================
# Built-in engines
# =============================================================================


class CommandEngine:
    """
    Runs an external generator as a subprocess.

    The request is written to stdin as JSON (see GenerationRequest.to_dict).
    The process must print {"module": "...", "declaration": "..."} on stdout
    and exit 0. On a non-zero exit its stderr is the diagnostic, verbatim.

    Example YAML:
        engine:
          plugin_name: command
          kwargs:
            argv: [node, scripts/codegen.js]
            cwd: .
    """

    plugin_name = "command"

    def __init__(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        if not argv:
            raise EngineLoadError("Command engine needs a non-empty 'argv'")
        self._argv: List[str] = [str(a) for a in argv]
        self._cwd = cwd
        self._env = env

    def generate(self, request: GenerationRequest) -> GeneratedOutput:
        error_cls = SchemaLoadError if request.kind == GenerationKind.SCHEMA else GenerationError

        try:
            proc = subprocess.run(
                self._argv,
                input=json.dumps(request.to_dict()),
                capture_output=True,
                text=True,
                cwd=self._cwd,
                env=self._env,
                check=False,
            )
        except OSError as e:
            raise error_cls(f"Failed to start {self._argv[0]}: {e}", path=request.path) from e

        if proc.returncode != 0:
            message = proc.stderr.rstrip("\n") or f"exited with status {proc.returncode}"
            raise error_cls(message, path=request.path)

        try:
            payload = json.loads(proc.stdout)
            return GeneratedOutput(
                module=str(payload.get("module", "")),
                declaration=str(payload["declaration"]),
            )
        except (json.JSONDecodeError, KeyError, AttributeError) as e:
            raise error_cls(f"Invalid engine output: {e}", path=request.path) from e


# =============================================================================
# Registry
# =============================================================================

_ENGINES: Dict[str, Type[Any]] = {
    CommandEngine.plugin_name: CommandEngine,
}


def register_engine(engine_class: Type[Any]) -> None:
    """Register an engine class under its plugin_name."""
    if not hasattr(engine_class, "generate"):
        raise EngineLoadError(f"Engine {engine_class.__name__} missing required method 'generate'")
    name = getattr(engine_class, "plugin_name", None)
    if not name:
        raise EngineLoadError(f"Engine {engine_class.__name__} missing 'plugin_name'")
    _ENGINES[name] = engine_class


def available_engines() -> List[str]:
    """List registered engine names."""
    return sorted(_ENGINES)


def create_engine(config: Optional[EngineConfig]) -> CodegenEngine:
    """
    Create the configured engine.

    Args:
        config: Engine section of the config

    Returns:
        An object implementing CodegenEngine

    Raises:
        EngineLoadError: If no engine is configured or it can't be built
    """
    if config is None:
        raise EngineLoadError("No generation engine configured (set 'engine' in the config)")

    name = config.plugin_name
    if name in _ENGINES:
        factory: Any = _ENGINES[name]
    elif ":" in name:
        module_name, _, attr = name.partition(":")
        try:
            factory = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as e:
            raise EngineLoadError(f"Cannot import engine {name!r}: {e}") from e
    else:
        raise EngineLoadError(f"Unknown engine: {name!r}. Available: {available_engines()}")

    try:
        engine = factory(**config.kwargs) if callable(factory) else factory
    except TypeError as e:
        raise EngineLoadError(f"Cannot create engine {name!r}: {e}") from e

    if not isinstance(engine, CodegenEngine):
        raise EngineLoadError(f"Engine {name!r} has no generate() method")

    logger.debug(f"{ENGINE} Using engine {name!r}")
    return engine


__all__ = [
    "GenerationKind",
    "GenerationRequest",
    "GeneratedOutput",
    "CodegenEngine",
    "CommandEngine",
    "register_engine",
    "available_engines",
    "create_engine",
]
