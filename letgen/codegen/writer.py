# letgen/codegen/writer.py
"""
Artifact writer.

Places generated output at deterministic paths:

    module:       {root}/{output_dir}/{rel_path}{module_extension}
    declaration:  {root}/{rel_path}{declaration_extension}

The module path mirrors the document's full relative path (file name and
extension included) under the output root, so two documents can never share
a destination. The declaration sits beside its source.

Writes are all-or-nothing per artifact pair: both payloads go to temp files
first and are only moved into place when both were written.
"""

from __future__ import annotations

import os
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from letgen.core.exceptions import ArtifactWriteError
from letgen.core.paths import LetgenPaths
from letgen.logging.logger import get_logger
from letgen.logging.tags import WRITER

logger = get_logger(__name__)


@dataclass(frozen=True)
class ArtifactPaths:
    """Destinations of one document's artifacts, project-relative."""

    module_path: str
    declaration_path: str


class ArtifactWriter:
    """
    Writes generated artifacts for documents and schemas.

    Usage:
        writer = ArtifactWriter(paths, output_dir="__generated__")
        writer.prepare()
        written = writer.write("src/query.graphql", module_text, declaration_text)
    """

    _prepare_lock = threading.Lock()

    def __init__(
        self,
        paths: LetgenPaths,
        output_dir: str,
        module_extension: str = ".tsx",
        declaration_extension: str = ".d.ts",
    ) -> None:
        self._paths = paths
        self._output_dir = output_dir.strip("/")
        self._module_ext = module_extension
        self._declaration_ext = declaration_extension

    @property
    def output_root(self) -> Path:
        return self._paths.output_root(self._output_dir)

    def paths_for(self, rel_path: str) -> ArtifactPaths:
        """Artifact destinations for a document."""
        return ArtifactPaths(
            module_path=f"{self._output_dir}/{rel_path}{self._module_ext}",
            declaration_path=f"{rel_path}{self._declaration_ext}",
        )

    def declaration_path_for_schema(self, primary_file: str) -> str:
        """Declaration destination for a schema (beside its first file)."""
        return f"{primary_file}{self._declaration_ext}"

    def prepare(self) -> Path:
        """
        Create the output root if needed.

        Idempotent and safe to call from concurrent invocations.
        """
        root = self.output_root
        with self._prepare_lock:
            root.mkdir(parents=True, exist_ok=True)
        return root

    def write(self, rel_path: str, module_text: str, declaration_text: str) -> ArtifactPaths:
        """
        Write a document's module and declaration.

        Raises:
            ArtifactWriteError: If either artifact can't be written. Nothing
                is moved into place unless both temp files were written.
        """
        targets = self.paths_for(rel_path)
        self._write_all(
            rel_path,
            [
                (self._paths.absolute(targets.module_path), module_text),
                (self._paths.absolute(targets.declaration_path), declaration_text),
            ],
        )
        logger.debug(f"{WRITER} Wrote {targets.module_path}, {targets.declaration_path}")
        return targets

    def write_schema_declaration(self, primary_file: str, declaration_text: str) -> str:
        """Write a schema's declaration and return its relative path."""
        declaration_path = self.declaration_path_for_schema(primary_file)
        self._write_all(primary_file, [(self._paths.absolute(declaration_path), declaration_text)])
        logger.debug(f"{WRITER} Wrote {declaration_path}")
        return declaration_path

    def exists(self, rel_path: str) -> bool:
        return self._paths.absolute(rel_path).is_file()

    def read_module(self, module_path: str) -> str:
        """Read a previously written module back."""
        try:
            return self._paths.absolute(module_path).read_text(encoding="utf-8")
        except OSError as e:
            raise ArtifactWriteError(f"Failed to read generated module: {e}", path=module_path) from e

    def remove(self, rel_paths: List[str]) -> None:
        """Delete artifacts of documents that no longer exist."""
        for rel_path in rel_paths:
            path = self._paths.absolute(rel_path)
            try:
                path.unlink()
                logger.debug(f"{WRITER} Removed {rel_path}")
            except FileNotFoundError:
                continue

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _write_all(self, owner: str, files: List[Tuple[Path, str]]) -> None:
        staged: List[Tuple[Path, Path]] = []
        try:
            for target, text in files:
                target.parent.mkdir(parents=True, exist_ok=True)
                temp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
                staged.append((temp, target))
                with temp.open("w", encoding="utf-8", newline="") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
            for temp, target in staged:
                os.replace(temp, target)
        except OSError as e:
            raise ArtifactWriteError(f"Failed to write artifacts: {e}", path=owner) from e
        finally:
            for temp, _ in staged:
                if temp.exists():
                    temp.unlink()


__all__ = ["ArtifactPaths", "ArtifactWriter"]
