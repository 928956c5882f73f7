# letgen/codegen/executor.py
"""
Incremental codegen executor.

Orchestrates the full batch pipeline:
1. Scan schemas and documents of every binding
2. Fingerprint documents
3. Compute diff (manifest + artifact existence and destinations)
4. Regenerate stale schema declarations
5. Regenerate stale documents (thread pool)
6. Prune entries of documents that no longer exist
7. Report summary

Key responsibilities:
- Execute the action plan from Differ
- Isolate documents: one failure never stops the others
- Write-then-commit: a manifest entry is only committed after both of its
  artifacts are durably on disk
- Leave a failed document's previous artifacts and entry untouched

This is the ONLY place where writes happen (artifacts + manifest).
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from letgen.config.loader import load_letgen_config
from letgen.config.schema import LetgenConfig
from letgen.core.exceptions import (
    ArtifactWriteError,
    CodegenRunError,
    GenerationError,
    LetgenError,
    SchemaLoadError,
)
from letgen.core.paths import LetgenPaths
from letgen.logging.logger import get_logger
from letgen.logging.tags import CODEGEN

from .differ import DiffResult, Differ, DocumentCandidate, StaleReason
from .engine import (
    CodegenEngine,
    GeneratedOutput,
    GenerationKind,
    GenerationRequest,
    create_engine,
)
from .manifest import CodegenContext, ManifestStore, SchemaEntry
from .scanner import FileScanner, SchemaSource
from .writer import ArtifactWriter

logger = get_logger(__name__)

DEFAULT_MAX_WORKERS = 8


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OutcomeStatus(str, Enum):
    """What happened to one document in a run."""

    SUCCESS = "success"
    SKIP = "skip"
    ERROR = "error"


@dataclass
class CodegenOutcome:
    """Per-document result of a run."""

    rel_path: str
    status: OutcomeStatus
    context: Optional[CodegenContext] = None
    error: Optional[LetgenError] = None
    reason: Optional[StaleReason] = None
    module_text: Optional[str] = field(default=None, repr=False)

    @property
    def skip(self) -> bool:
        return self.status == OutcomeStatus.SKIP

    @property
    def fingerprint(self) -> Optional[str]:
        return self.context.fingerprint if self.context else None


@dataclass
class CodegenSummary:
    """Summary of a codegen run."""

    scanned: int = 0
    generated: int = 0
    skipped: int = 0
    pruned: int = 0
    errors: int = 0
    schemas_generated: int = 0
    outcomes: List[CodegenOutcome] = field(default_factory=list)
    schema_errors: List[LetgenError] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        """Get duration in seconds."""
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def ok(self) -> bool:
        return self.errors == 0 and not self.schema_errors

    def record(self, outcome: CodegenOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == OutcomeStatus.SUCCESS:
            self.generated += 1
        elif outcome.status == OutcomeStatus.SKIP:
            self.skipped += 1
        else:
            self.errors += 1

    def contexts(self) -> List[CodegenContext]:
        """Manifest entries of every generated or skipped document, by path."""
        return [o.context for o in self.outcomes if o.context is not None]

    def failures(self) -> List[CodegenOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.ERROR]

    def raise_for_errors(self) -> None:
        """Treat any failure as fatal. Raises CodegenRunError if there was one."""
        errors: List[LetgenError] = list(self.schema_errors)
        errors.extend(o.error for o in self.failures() if o.error is not None and o.error not in errors)
        if errors:
            raise CodegenRunError(errors)

    def __str__(self) -> str:
        return (
            f"scanned {self.scanned}, generated {self.generated}, "
            f"skipped {self.skipped}, pruned {self.pruned}, errors {self.errors}"
        )


class CodegenExecutor:
    """
    Executes the incremental codegen pipeline.

    Usage:
        executor = CodegenExecutor(
            config=load_letgen_config("."),
            project_root=".",
            engine=my_engine,
        )

        summary = executor.run()
        print(summary)  # "scanned 10, generated 3, skipped 7, ..."
    """

    def __init__(
        self,
        *,
        config: LetgenConfig,
        project_root: Union[str, Path],
        engine: CodegenEngine,
        config_path: Optional[Union[str, Path]] = None,
        manifest_store: Optional[ManifestStore] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            config: Validated project config
            project_root: Project root directory
            engine: Generation engine
            config_path: Alternate config file the config came from (selects the manifest)
            manifest_store: Store override (defaults to the config's manifest)
            max_workers: Parallel generation workers (1 = sequential)
        """
        self._config = config
        self._paths = LetgenPaths(project_root)
        self._engine = engine
        self._store = manifest_store or ManifestStore(self._paths.manifest(config_path))
        self._writer = ArtifactWriter(
            self._paths,
            config.output_dir,
            module_extension=config.module_extension,
            declaration_extension=config.declaration_extension,
        )
        self._scanner = FileScanner(
            self._paths,
            config.output_dir,
            respect_gitignore=config.respect_gitignore,
        )
        self._options = config.generation_options()
        self._max_workers = max_workers or config.max_workers or min(
            DEFAULT_MAX_WORKERS, os.cpu_count() or 1
        )

    @property
    def paths(self) -> LetgenPaths:
        return self._paths

    @property
    def store(self) -> ManifestStore:
        return self._store

    @property
    def writer(self) -> ArtifactWriter:
        return self._writer

    @property
    def scanner(self) -> FileScanner:
        return self._scanner

    @property
    def options(self) -> Dict[str, object]:
        return dict(self._options)

    # =========================================================================
    # Batch mode
    # =========================================================================

    def run(self, force: bool = False) -> CodegenSummary:
        """
        Run the incremental codegen pipeline over every configured document.

        Args:
            force: Regenerate everything regardless of the manifest

        Returns:
            CodegenSummary with one outcome per document. Failures are
            recorded, never raised.
        """
        summary = CodegenSummary()

        manifest = self._store.load()
        differ = Differ(manifest, self._writer.exists, self._writer.paths_for)
        self._writer.prepare()

        # 1-4. Scan, fingerprint, settle schemas
        candidates, keep = self._collect(summary, differ, force=force, generate_schemas=True)

        # 5. Diff
        diff = differ.compute_diff(candidates, force=force, prune=True, keep=keep)

        for candidate, context in diff.to_skip:
            summary.record(
                CodegenOutcome(rel_path=candidate.rel_path, status=OutcomeStatus.SKIP, context=context)
            )

        # 6. Generate
        logger.info(f"{CODEGEN} Generating {len(diff.to_generate)} document(s)...")
        for outcome in self._generate_all(diff.to_generate):
            summary.record(outcome)

        # 7. Prune
        self._prune(diff.to_prune, summary)

        summary.outcomes.sort(key=lambda o: o.rel_path)
        summary.finished_at = _utcnow()
        logger.info(f"{CODEGEN} Codegen complete: {summary}")
        return summary

    def plan(self, force: bool = False) -> Tuple[DiffResult, CodegenSummary]:
        """
        Compute what run() would do, without calling the engine or writing.

        Returns:
            (diff, summary) where summary only holds scan and schema errors
        """
        summary = CodegenSummary()
        manifest = self._store.load()
        differ = Differ(manifest, self._writer.exists, self._writer.paths_for)
        candidates, keep = self._collect(summary, differ, force=force, generate_schemas=False)
        diff = differ.compute_diff(candidates, force=force, prune=True, keep=keep)
        summary.finished_at = _utcnow()
        return diff, summary

    # =========================================================================
    # Single document
    # =========================================================================

    def generate_document(self, candidate: DocumentCandidate) -> CodegenOutcome:
        """
        Generate, write and commit one stale document.

        Never raises for document-scoped failures; the outcome carries the
        error and the previous artifacts and manifest entry stay as they were.
        """
        rel_path = candidate.rel_path
        request = GenerationRequest(
            kind=GenerationKind.DOCUMENT,
            path=rel_path,
            content=candidate.source.content,
            schema=candidate.schema,
            options=self._options,
        )

        try:
            output = self._engine.generate(request)
        except LetgenError as e:
            return self._failed(rel_path, _with_path(e, rel_path))
        except Exception as e:
            return self._failed(rel_path, GenerationError(str(e), path=rel_path))

        invalid = _invalid_output(output, need_module=True)
        if invalid:
            error = GenerationError(f"Invalid engine output: {invalid}", path=rel_path)
            return self._failed(rel_path, error)

        previous = self._store.get(rel_path)
        try:
            written = self._writer.write(rel_path, output.module, output.declaration)
        except LetgenError as e:
            return self._failed(rel_path, e)
        except Exception as e:
            error = ArtifactWriteError(f"Failed to write artifacts: {e}", path=rel_path)
            return self._failed(rel_path, error)

        context = CodegenContext(
            rel_path=rel_path,
            schema_name=candidate.schema.name,
            schema_fingerprint=candidate.schema.fingerprint,
            fingerprint=candidate.fingerprint,
            module_path=written.module_path,
            declaration_path=written.declaration_path,
        )

        try:
            self._store.commit(entries=[context])
        except OSError as e:
            # Artifacts are newer than the manifest: the next run sees a
            # fingerprint mismatch and regenerates.
            return self._failed(rel_path, LetgenError(f"Failed to commit manifest: {e}", path=rel_path))

        if previous is not None:
            # Output moved (output_dir or an extension changed): drop the old copies.
            moved = [p for p in previous.artifact_paths() if p not in context.artifact_paths()]
            if moved:
                try:
                    self._writer.remove(moved)
                except OSError as e:
                    logger.warning(f"{CODEGEN} Could not remove old artifacts of {rel_path}: {e}")

        logger.debug(f"{CODEGEN} Generated {rel_path}")
        return CodegenOutcome(
            rel_path=rel_path,
            status=OutcomeStatus.SUCCESS,
            context=context,
            module_text=output.module,
        )

    def ensure_schema(
        self,
        schema: SchemaSource,
        differ: Differ,
        force: bool = False,
    ) -> Tuple[bool, Optional[LetgenError]]:
        """
        Regenerate a schema's declaration if it is stale.

        Returns:
            (generated, error). An error means every document bound to this
            schema must be failed.
        """
        declaration_path = self._writer.declaration_path_for_schema(schema.primary_file)
        if not force and not differ.schema_is_stale(schema, declaration_path):
            return False, None

        request = GenerationRequest(
            kind=GenerationKind.SCHEMA,
            path=schema.primary_file,
            content=schema.content,
            schema=schema,
            options=self._options,
        )
        try:
            output = self._engine.generate(request)
        except LetgenError as e:
            return False, SchemaLoadError(e.message, path=e.path or schema.primary_file)
        except Exception as e:
            return False, SchemaLoadError(str(e), path=schema.primary_file)

        invalid = _invalid_output(output, need_module=False)
        if invalid:
            return False, SchemaLoadError(f"Invalid engine output: {invalid}", path=schema.primary_file)

        previous = self._store.get_schema(schema.name)
        try:
            written = self._writer.write_schema_declaration(schema.primary_file, output.declaration)
            self._store.commit(
                schemas=[
                    SchemaEntry(
                        name=schema.name,
                        fingerprint=schema.fingerprint,
                        files=list(schema.files),
                        declaration_path=written,
                    )
                ]
            )
        except LetgenError as e:
            return False, e
        except OSError as e:
            return False, LetgenError(f"Failed to commit manifest: {e}", path=schema.primary_file)

        if previous is not None and previous.declaration_path != written:
            try:
                self._writer.remove([previous.declaration_path])
            except OSError as e:
                logger.warning(f"{CODEGEN} Could not remove old declaration {previous.declaration_path}: {e}")

        logger.info(f"{CODEGEN} Generated schema declaration {written}")
        return True, None

    # =========================================================================
    # Internals
    # =========================================================================

    def _collect(
        self,
        summary: CodegenSummary,
        differ: Differ,
        force: bool,
        generate_schemas: bool,
    ) -> Tuple[List[DocumentCandidate], List[str]]:
        candidates: List[DocumentCandidate] = []
        keep: List[str] = []
        claimed: Set[str] = set()

        for binding in self._config.bindings():
            scan = self._scanner.scan_binding(binding)
            summary.scanned += scan.total_scanned

            for rel_path, error in scan.errors:
                keep.append(rel_path)
                summary.record(CodegenOutcome(rel_path=rel_path, status=OutcomeStatus.ERROR, error=error))

            documents = []
            for doc in scan.documents:
                if doc.rel_path in claimed:
                    logger.warning(
                        f"{CODEGEN} {doc.rel_path} matched by several bindings; "
                        f"keeping the first, ignoring '{binding.name}'"
                    )
                    summary.scanned -= 1
                    continue
                claimed.add(doc.rel_path)
                documents.append(doc)

            schema = scan.schema
            schema_error: Optional[LetgenError] = scan.schema_error
            if schema is not None and generate_schemas:
                generated, schema_error = self.ensure_schema(schema, differ, force=force)
                if generated:
                    summary.schemas_generated += 1

            if schema is not None and schema_error is None:
                candidates.extend(
                    DocumentCandidate.from_source(doc, schema, self._options) for doc in documents
                )
                continue

            if schema_error is None:
                schema_error = SchemaLoadError(
                    "Failed to load schema", path=", ".join(binding.schema_globs)
                )
            logger.warning(f"{CODEGEN} Schema '{binding.name}' failed: {schema_error}")
            summary.schema_errors.append(schema_error)
            for doc in documents:
                keep.append(doc.rel_path)
                summary.record(
                    CodegenOutcome(rel_path=doc.rel_path, status=OutcomeStatus.ERROR, error=schema_error)
                )

        return candidates, keep

    def _generate_all(
        self,
        to_generate: List[Tuple[DocumentCandidate, StaleReason]],
    ) -> List[CodegenOutcome]:
        if not to_generate:
            return []

        reasons = {c.rel_path: r for c, r in to_generate}
        outcomes: List[CodegenOutcome] = []

        if self._max_workers == 1 or len(to_generate) == 1:
            for candidate, _ in to_generate:
                outcomes.append(self.generate_document(candidate))
        else:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                futures = {
                    pool.submit(self.generate_document, candidate): candidate
                    for candidate, _ in to_generate
                }
                for future in as_completed(futures):
                    outcomes.append(future.result())

        for outcome in outcomes:
            outcome.reason = reasons.get(outcome.rel_path)
        return outcomes

    def _prune(self, to_prune: List[str], summary: CodegenSummary) -> None:
        if not to_prune:
            return

        removed: List[str] = []
        for rel_path in to_prune:
            entry = self._store.get(rel_path)
            if entry is not None:
                try:
                    self._writer.remove(entry.artifact_paths())
                except OSError as e:
                    logger.warning(f"{CODEGEN} Could not remove artifacts of {rel_path}: {e}")
                    continue
            removed.append(rel_path)

        self._store.commit(removed=removed)
        summary.pruned = len(removed)
        logger.info(f"{CODEGEN} Pruned {len(removed)} orphaned entr{'y' if len(removed) == 1 else 'ies'}")

    def _failed(self, rel_path: str, error: LetgenError) -> CodegenOutcome:
        logger.warning(f"{CODEGEN} Failed to generate {rel_path}:\n{error}")
        return CodegenOutcome(rel_path=rel_path, status=OutcomeStatus.ERROR, error=error)


def _invalid_output(output: object, need_module: bool) -> Optional[str]:
    """Describe what is wrong with an engine result, or None if it is usable."""
    if not isinstance(output, GeneratedOutput):
        return f"expected GeneratedOutput, got {type(output).__name__}"
    if not isinstance(output.declaration, str):
        return f"declaration must be text, got {type(output.declaration).__name__}"
    if need_module and not isinstance(output.module, str):
        return f"module must be text, got {type(output.module).__name__}"
    return None


def _with_path(error: LetgenError, rel_path: str) -> LetgenError:
    if error.path:
        return error
    return type(error)(error.message, path=rel_path)


def run_codegen(
    project_root: Union[str, Path],
    *,
    config_path: Optional[Union[str, Path]] = None,
    engine: Optional[CodegenEngine] = None,
    force: bool = False,
    max_workers: Optional[int] = None,
) -> CodegenSummary:
    """
    Convenience function for batch mode.

    Args:
        project_root: Project root directory
        config_path: Alternate config file (absolute or project-relative)
        engine: Generation engine; built from the config's 'engine' section if None
        force: Regenerate everything regardless of the manifest
        max_workers: Parallel generation workers

    Returns:
        CodegenSummary with results
    """
    config = load_letgen_config(project_root, config_path)
    executor = CodegenExecutor(
        config=config,
        project_root=project_root,
        engine=engine or create_engine(config.engine),
        config_path=config_path,
        max_workers=max_workers,
    )
    return executor.run(force=force)


__all__ = [
    "OutcomeStatus",
    "CodegenOutcome",
    "CodegenSummary",
    "CodegenExecutor",
    "run_codegen",
]
