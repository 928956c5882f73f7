# letgen/codegen/manifest/manager.py
"""
Manifest store for incremental code generation.

Manages reading and writing of .letgen/manifest.json.

Key responsibilities:
- Load the manifest (missing or corrupt = empty, never fatal)
- Commit entries atomically (temp file + replace)
- Serialize concurrent commits and merge with what is on disk

Key non-responsibilities:
- NO artifact writing (that's the writer's job)
- NO staleness logic (that's the differ's job)
"""

from __future__ import annotations

import json
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from letgen.core.exceptions import ManifestCorruptionError
from letgen.logging.logger import get_logger
from letgen.logging.tags import MANIFEST

from .schema import MANIFEST_SCHEMA_VERSION, CodegenContext, Manifest, SchemaEntry

logger = get_logger(__name__)


class ManifestStore:
    """
    Manages one manifest file.

    Usage:
        store = ManifestStore(paths.manifest())
        manifest = store.load()

        # After an entry's artifacts are on disk
        store.commit(entries=[context])

        # Full runs drop entries of documents that no longer exist
        store.commit(removed=["old/query.graphql"])

    Commits are serialized by a lock and merged with the file on disk, so
    several documents finishing at once (or several stores pointing at the
    same file in one process) never lose each other's updates.
    """

    _locks: dict[str, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, path: Path) -> None:
        """
        Initialize the store.

        Args:
            path: Path to the manifest JSON file
        """
        self._path = Path(path)
        self._manifest: Optional[Manifest] = None
        with self._locks_guard:
            self._lock = self._locks.setdefault(str(self._path.resolve()), threading.Lock())

    @property
    def path(self) -> Path:
        """Get manifest file path."""
        return self._path

    @property
    def manifest(self) -> Manifest:
        """Get current manifest, loading if necessary."""
        if self._manifest is None:
            return self.load()
        return self._manifest

    def load(self) -> Manifest:
        """
        Load the manifest from disk.

        A missing manifest is an empty one (first run). A corrupt manifest is
        also treated as empty, which forces a full regeneration.

        Returns:
            Loaded or empty Manifest
        """
        if not self._path.exists():
            logger.info(f"{MANIFEST} No manifest found at {self._path}, starting empty")
            self._manifest = Manifest()
            return self._manifest

        try:
            self._manifest = self._read()
            logger.debug(
                f"{MANIFEST} Loaded {len(self._manifest.documents)} entries from {self._path}"
            )
        except ManifestCorruptionError as e:
            logger.warning(f"{MANIFEST} {e}; regenerating everything")
            self._manifest = Manifest()

        return self._manifest

    def get(self, rel_path: str) -> Optional[CodegenContext]:
        """Get a document entry if it exists."""
        return self.manifest.get(rel_path)

    def get_schema(self, name: str) -> Optional[SchemaEntry]:
        """Get a schema entry if it exists."""
        return self.manifest.get_schema(name)

    def entries(self) -> List[CodegenContext]:
        """All document entries, ordered by path."""
        return [self.manifest.documents[p] for p in sorted(self.manifest.documents)]

    def commit(
        self,
        entries: Iterable[CodegenContext] = (),
        removed: Iterable[str] = (),
        schemas: Iterable[SchemaEntry] = (),
    ) -> None:
        """
        Merge updates into the manifest and write it atomically.

        Callers must only commit entries whose artifacts are already durable.

        Args:
            entries: Document entries to add or replace (last write wins)
            removed: Document paths whose entries should be dropped
            schemas: Schema entries to add or replace
        """
        entries = list(entries)
        removed = list(removed)
        schemas = list(schemas)
        if not (entries or removed or schemas):
            return

        with self._lock:
            merged = self._read_or_empty()
            for path in removed:
                merged.documents.pop(path, None)
            for entry in entries:
                merged.documents[entry.rel_path] = entry.model_copy(update={"skip": False})
            for schema in schemas:
                merged.schemas[schema.name] = schema
            merged.updated_at = datetime.now(timezone.utc)

            self._write(merged)
            self._manifest = merged

        logger.debug(
            f"{MANIFEST} Committed {len(entries)} entries, {len(schemas)} schemas, "
            f"removed {len(removed)}"
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _read(self) -> Manifest:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            manifest = Manifest.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise ManifestCorruptionError(
                f"Failed to read manifest: {e}", path=str(self._path)
            ) from e

        if manifest.schema_version != MANIFEST_SCHEMA_VERSION:
            raise ManifestCorruptionError(
                f"Unsupported manifest version {manifest.schema_version}",
                path=str(self._path),
            )
        return manifest

    def _read_or_empty(self) -> Manifest:
        if not self._path.exists():
            return Manifest()
        try:
            return self._read()
        except ManifestCorruptionError as e:
            logger.warning(f"{MANIFEST} {e}; overwriting")
            return Manifest()

    def _write(self, manifest: Manifest) -> None:
        # Ensure parent directory exists
        self._path.parent.mkdir(parents=True, exist_ok=True)

        # Write atomically using a temp file unique to this writer
        temp_path = self._path.with_name(f"{self._path.name}.{uuid.uuid4().hex}.tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as f:
                json.dump(manifest.model_dump(mode="json"), f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise


__all__ = ["ManifestStore"]
