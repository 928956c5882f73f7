# letgen/codegen/differ.py
"""
Staleness resolution for incremental code generation.

Computes the action plan by comparing:
1. Documents found on disk, with freshly computed fingerprints
2. The manifest (last successful generation per document)
3. The current fingerprint of every schema

A document is regenerated when:
- It has no manifest entry (first run, or newly added)
- Its fingerprint differs from the recorded one
- A recorded artifact is missing on disk (deleted out-of-band)
- The recorded artifact paths are not where the current config puts them
  (output_dir or an extension changed)
- Its schema's fingerprint differs from the recorded one (cascade)

This module ONLY computes actions - it does NOT execute them.
Its only I/O is checking that recorded artifacts exist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Mapping, Optional, Protocol, Set, runtime_checkable

from letgen.logging.logger import get_logger
from letgen.logging.tags import CODEGEN

from .hashing import compute_fingerprint
from .manifest.schema import CodegenContext, SchemaEntry
from .scanner import DocumentSource, SchemaSource
from .writer import ArtifactPaths

logger = get_logger(__name__)


@runtime_checkable
class ManifestReader(Protocol):
    """
    Protocol for reading the manifest.

    Used for skip decisions and orphan detection.
    """

    def get(self, rel_path: str) -> Optional[CodegenContext]:
        """Get a document entry. Returns None if not found."""
        ...

    def get_schema(self, name: str) -> Optional[SchemaEntry]:
        """Get a schema entry. Returns None if not found."""
        ...

    def known_paths(self) -> Set[str]:
        """All document paths with an entry."""
        ...


@dataclass(frozen=True)
class DocumentCandidate:
    """
    A document with its current fingerprint.

    Contains all information needed to generate or skip a document.
    """

    source: DocumentSource
    schema: SchemaSource
    fingerprint: str

    @property
    def rel_path(self) -> str:
        return self.source.rel_path

    @classmethod
    def from_source(
        cls,
        source: DocumentSource,
        schema: SchemaSource,
        options: Mapping[str, object],
    ) -> "DocumentCandidate":
        """Fingerprint a discovered document."""
        return cls(
            source=source,
            schema=schema,
            fingerprint=compute_fingerprint(source.content, schema.fingerprint, options),
        )


@dataclass
class StaleReason:
    """Reason why a document needs regeneration."""

    is_new: bool = False
    fingerprint_changed: bool = False
    schema_changed: bool = False
    artifact_missing: bool = False
    location_changed: bool = False
    forced: bool = False

    @property
    def is_stale(self) -> bool:
        return (
            self.is_new
            or self.fingerprint_changed
            or self.schema_changed
            or self.artifact_missing
            or self.location_changed
            or self.forced
        )

    def __str__(self) -> str:
        reasons = []
        if self.is_new:
            reasons.append("new")
        if self.fingerprint_changed:
            reasons.append("fingerprint_changed")
        if self.schema_changed:
            reasons.append("schema_changed")
        if self.artifact_missing:
            reasons.append("artifact_missing")
        if self.location_changed:
            reasons.append("location_changed")
        if self.forced:
            reasons.append("forced")
        return ", ".join(reasons) if reasons else "none"


@dataclass
class DiffResult:
    """
    Result of staleness resolution.

    - to_generate: Stale documents, with the reason for each
    - to_skip: Fresh documents, with their (unchanged) manifest entry
    - to_prune: Manifest paths whose document no longer exists
    """

    to_generate: List[tuple[DocumentCandidate, StaleReason]] = field(default_factory=list)
    to_skip: List[tuple[DocumentCandidate, CodegenContext]] = field(default_factory=list)
    to_prune: List[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"generate={len(self.to_generate)}, "
            f"skip={len(self.to_skip)}, "
            f"prune={len(self.to_prune)}"
        )


class Differ:
    """
    Classifies documents as Fresh or Stale.

    Usage:
        differ = Differ(
            manifest_reader=store.manifest,
            artifact_exists=writer.exists,
            destinations=writer.paths_for,
        )
        result = differ.compute_diff(candidates)
    """

    def __init__(
        self,
        manifest_reader: ManifestReader,
        artifact_exists: Callable[[str], bool],
        destinations: Optional[Callable[[str], ArtifactPaths]] = None,
    ) -> None:
        """
        Initialize the differ.

        Args:
            manifest_reader: Reader for the previous manifest
            artifact_exists: Existence check for a project-relative artifact path
            destinations: Where the current config puts a document's artifacts;
                entries recorded elsewhere are stale
        """
        self._manifest = manifest_reader
        self._exists = artifact_exists
        self._destinations = destinations

    def check_document(self, candidate: DocumentCandidate, force: bool = False) -> StaleReason:
        """Work out why (or whether) one document is stale."""
        existing = self._manifest.get(candidate.rel_path)

        if existing is None:
            return StaleReason(is_new=True, forced=force)

        reason = StaleReason(forced=force)

        if existing.fingerprint != candidate.fingerprint:
            reason.fingerprint_changed = True

        if existing.schema_name != candidate.schema.name or (
            existing.schema_fingerprint != candidate.schema.fingerprint
        ):
            reason.schema_changed = True

        if not all(self._exists(p) for p in existing.artifact_paths()):
            reason.artifact_missing = True

        if self._destinations is not None:
            expected = self._destinations(candidate.rel_path)
            if (existing.module_path, existing.declaration_path) != (
                expected.module_path,
                expected.declaration_path,
            ):
                reason.location_changed = True

        return reason

    def schema_is_stale(self, schema: SchemaSource, declaration_path: str) -> bool:
        """Whether a schema's declaration artifact must be regenerated."""
        existing = self._manifest.get_schema(schema.name)
        if existing is None:
            return True
        if existing.fingerprint != schema.fingerprint:
            return True
        if existing.declaration_path != declaration_path:
            return True
        return not self._exists(existing.declaration_path)

    def compute_diff(
        self,
        candidates: Iterable[DocumentCandidate],
        force: bool = False,
        prune: bool = True,
        keep: Iterable[str] = (),
    ) -> DiffResult:
        """
        Compute the action plan.

        Args:
            candidates: Fingerprinted documents
            force: Regenerate everything regardless of the manifest
            prune: Report manifest entries without a current document
            keep: Paths that exist but were not candidates (e.g. unreadable
                documents, or documents of a failed schema); never pruned

        Returns:
            DiffResult with the action plan
        """
        result = DiffResult()
        seen: Set[str] = set(keep)

        for candidate in candidates:
            seen.add(candidate.rel_path)
            reason = self.check_document(candidate, force=force)
            existing = self._manifest.get(candidate.rel_path)

            if reason.is_stale or existing is None:
                logger.debug(f"{CODEGEN} Regenerate {candidate.rel_path}: {reason}")
                result.to_generate.append((candidate, reason))
            else:
                result.to_skip.append((candidate, existing.model_copy(update={"skip": True})))

        if prune:
            result.to_prune.extend(sorted(self._manifest.known_paths() - seen))

        logger.info(f"{CODEGEN} Diff computed: {result.summary}")
        return result


__all__ = [
    "ManifestReader",
    "DocumentCandidate",
    "StaleReason",
    "DiffResult",
    "Differ",
]
